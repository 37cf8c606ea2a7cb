"""Column-count diagnostics for pipe tables."""

import logging

from hongdown.formatting.ir import (
    Block,
    BlockQuote,
    CodeBlock,
    Document,
    FormatWarning,
    Heading,
    HtmlBlock,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    Table,
    ThematicBreak,
    VerbatimRegion,
    unhandled,
)

logger = logging.getLogger(__name__)


def _columns(count: int) -> str:
    return f"{count} column" if count == 1 else f"{count} columns"


class TableValidator:
    """Compare every table row against its delimiter row.

    The validator only reads the tree; formatting output never depends on
    what it reports.
    """

    def validate(self, document: Document) -> list[FormatWarning]:
        """Collect warnings for all tables, in document order."""
        warnings: list[FormatWarning] = []
        for block in document.blocks:
            self._visit(block, warnings)
        return warnings

    def _visit(self, block: Block, warnings: list[FormatWarning]) -> None:
        if isinstance(block, Table):
            warnings.extend(self.check_table(block))
        elif isinstance(block, List):
            for item in block.items:
                self._visit(item, warnings)
        elif isinstance(block, (ListItem, BlockQuote)):
            for child in block.children:
                self._visit(child, warnings)
        elif isinstance(
            block,
            (Heading, Paragraph, CodeBlock, ThematicBreak, HtmlBlock, LinkDefinition, VerbatimRegion),
        ):
            return
        else:
            raise unhandled(block)

    def check_table(self, table: Table) -> list[FormatWarning]:
        """Warnings for one table, header first, then body rows."""
        expected = len(table.alignments)
        warnings: list[FormatWarning] = []
        if len(table.header) != expected:
            warnings.append(
                FormatWarning(
                    line=table.line,
                    message=(
                        f"Table header has {_columns(len(table.header))}, "
                        f"but the delimiter row has {_columns(expected)}"
                    ),
                )
            )
        for index, row in enumerate(table.rows):
            if len(row) == expected:
                continue
            line = table.row_lines[index] if index < len(table.row_lines) else table.line
            warnings.append(
                FormatWarning(
                    line=line,
                    message=(
                        f"Table row {index + 1} has {_columns(len(row))}, "
                        f"but expected {_columns(expected)}"
                    ),
                )
            )
        for warning in warnings:
            logger.debug("Table diagnostic: %s", warning)
        return warnings
