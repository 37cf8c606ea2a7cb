"""Render a canonicalized document tree back to Markdown text."""

import re
from typing import Optional

from hongdown.formatting.ir import (
    Alignment,
    Block,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    Document,
    Emphasis,
    HardBreak,
    Heading,
    HeadingStyle,
    HtmlBlock,
    Image,
    Inline,
    Link,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    RawHtml,
    SoftBreak,
    Strong,
    Table,
    Text,
    ThematicBreak,
    VerbatimRegion,
    unhandled,
)
from hongdown.formatting.options import FormatOptions
from hongdown.formatting.syntax import display_width


# Stands for a space the line wrapper must not break at (inside code
# spans, link destinations, images and raw HTML)
NBSP_MARK = "\x00"
# Stands for a hard line break in rendered inline text
HARD_BREAK_MARK = "\n"

MIN_TABLE_COLUMN_WIDTH = 3

_SPACE_RUN = re.compile(r"[ \t]+")


# =============================================================================
# Inline rendering
# =============================================================================

def _atomic(text: str) -> str:
    return text.replace(" ", NBSP_MARK)


def quote_title(title: str) -> str:
    """Wrap a link title in delimiters that do not clash with its text."""
    if '"' not in title:
        return f'"{title}"'
    if "'" not in title:
        return f"'{title}'"
    return "(" + title.replace("(", "\\(").replace(")", "\\)") + ")"


def _link_tail(destination: str, title: Optional[str]) -> str:
    tail = destination
    if title is not None:
        tail += " " + quote_title(title)
    return "(" + tail + ")"


class InlineRenderer:
    """Render inline nodes to Markdown source.

    The result marks unbreakable spaces with ``NBSP_MARK`` and hard breaks
    with ``HARD_BREAK_MARK`` so the line wrapper can reflow it; use
    ``text`` for a plain single-line rendering.
    """

    def render(self, nodes: list[Inline]) -> str:
        return self._nodes(nodes, parent_delimiter="")

    def text(self, nodes: list[Inline]) -> str:
        """Render inline content on a single line."""
        rendered = self.render(nodes).replace(HARD_BREAK_MARK, " ")
        return _SPACE_RUN.sub(" ", rendered).replace(NBSP_MARK, " ").strip()

    def _nodes(self, nodes: list[Inline], parent_delimiter: str) -> str:
        last = len(nodes) - 1
        return "".join(
            self._node(node, parent_delimiter, index in (0, last))
            for index, node in enumerate(nodes)
        )

    def _node(self, node: Inline, parent_delimiter: str, at_edge: bool) -> str:
        if isinstance(node, Text):
            return node.text
        if isinstance(node, (Emphasis, Strong)):
            # Nested emphasis flush against a '*' delimiter switches to '_'
            # so '***' runs never appear
            char = "_" if at_edge and parent_delimiter == "*" else "*"
            delimiter = char if isinstance(node, Emphasis) else char * 2
            return delimiter + self._nodes(node.children, char) + delimiter
        if isinstance(node, CodeSpan):
            return _atomic(node.raw)
        if isinstance(node, Link):
            label = self._nodes(node.children, "")
            return "[" + label + "]" + _atomic(_link_tail(node.destination, node.title))
        if isinstance(node, Image):
            return _atomic("![" + node.alt + "]" + _link_tail(node.destination, node.title))
        if isinstance(node, RawHtml):
            return _atomic(node.raw)
        if isinstance(node, SoftBreak):
            return " "
        if isinstance(node, HardBreak):
            return HARD_BREAK_MARK
        raise unhandled(node)


def escape_table_cell(content: str) -> str:
    """Backslash-escape pipes that are not already escaped."""
    result: list[str] = []
    index = 0
    while index < len(content):
        ch = content[index]
        if ch == "\\" and index + 1 < len(content):
            result.append(content[index : index + 2])
            index += 2
            continue
        result.append("\\|" if ch == "|" else ch)
        index += 1
    return "".join(result)


def _pad(text: str, width: int) -> str:
    return text + " " * (width - display_width(text))


def _delimiter_cell(alignment: Alignment, width: int) -> str:
    if alignment is Alignment.LEFT:
        return ":" + "-" * (width - 1)
    if alignment is Alignment.RIGHT:
        return "-" * (width - 1) + ":"
    if alignment is Alignment.CENTER:
        return ":" + "-" * (width - 2) + ":"
    return "-" * width


# =============================================================================
# Block rendering
# =============================================================================

class Serializer:
    """Render Block nodes to text with one blank line between siblings."""

    def __init__(self, options: Optional[FormatOptions] = None) -> None:
        self.options = options or FormatOptions()
        self.inline = InlineRenderer()

    def serialize(self, document: Document) -> str:
        """Render a document.

        Returns:
            The Markdown text ending in exactly one newline, or the empty
            string when nothing but whitespace would be written
        """
        output = "\n".join(self.blocks(document.blocks)).rstrip("\n")
        if not output.strip():
            return ""
        return output + "\n"

    def blocks(self, blocks: list[Block], tight: bool = False) -> list[str]:
        """Render sibling blocks as lines, blank-separated unless tight."""
        lines: list[str] = []
        previous: Optional[Block] = None
        for block in blocks:
            if previous is not None and not tight:
                if not (isinstance(previous, LinkDefinition) and isinstance(block, LinkDefinition)):
                    lines.append("")
            lines.extend(self.block(block))
            previous = block
        return lines

    def block(self, block: Block) -> list[str]:
        if isinstance(block, Heading):
            return self.heading(block)
        if isinstance(block, Paragraph):
            return self.paragraph(block)
        if isinstance(block, List):
            return self.list_block(block)
        if isinstance(block, ListItem):
            return self.list_item(block, tight=True)
        if isinstance(block, CodeBlock):
            return self.code_block(block)
        if isinstance(block, ThematicBreak):
            return [block.marker or self.options.thematic_break_style]
        if isinstance(block, Table):
            return self.table(block)
        if isinstance(block, BlockQuote):
            return [f"> {line}" if line else ">" for line in self.blocks(block.children)]
        if isinstance(block, HtmlBlock):
            return list(block.lines)
        if isinstance(block, LinkDefinition):
            return [self.link_definition(block)]
        if isinstance(block, VerbatimRegion):
            return [block.raw]
        raise unhandled(block)

    def heading(self, heading: Heading) -> list[str]:
        text = self.inline.text(heading.children)
        if heading.style is HeadingStyle.SETEXT and text:
            underline = "=" if heading.level == 1 else "-"
            return [text, underline * display_width(text)]
        hashes = "#" * heading.level
        return [f"{hashes} {text}" if text else hashes]

    def paragraph(self, paragraph: Paragraph) -> list[str]:
        if paragraph.lines is not None:
            return list(paragraph.lines)
        # Not reflowed: keep hard breaks, join everything else
        rendered = self.inline.render(paragraph.children)
        segments = [
            _SPACE_RUN.sub(" ", segment).replace(NBSP_MARK, " ").strip()
            for segment in rendered.split(HARD_BREAK_MARK)
        ]
        return [segment + "\\" for segment in segments[:-1]] + [segments[-1]]

    def list_block(self, lst: List) -> list[str]:
        lines: list[str] = []
        for index, item in enumerate(lst.items):
            if index and not lst.tight:
                lines.append("")
            lines.extend(self.list_item(item, lst.tight))
        return lines

    def list_item(self, item: ListItem, tight: bool) -> list[str]:
        marker = item.marker or "-"
        indent = " " * (item.indent or len(marker))
        body = self.blocks(item.children, tight=tight)
        if not body:
            return [marker.rstrip()]
        lines = [marker + body[0] if body[0] else marker.rstrip()]
        lines.extend(indent + line if line else "" for line in body[1:])
        return lines

    def code_block(self, code: CodeBlock) -> list[str]:
        fence = (code.fence_char or self.options.fence_char) * max(
            code.fence_length, self.options.min_fence_length
        )
        opening = fence
        if code.language:
            opening += (" " if self.options.space_after_fence else "") + code.language
        return [opening, *code.lines, fence]

    def table(self, table: Table) -> list[str]:
        header = [escape_table_cell(self.inline.text(cell)) for cell in table.header]
        rows = [
            [escape_table_cell(self.inline.text(cell)) for cell in row]
            for row in table.rows
        ]
        widths = [MIN_TABLE_COLUMN_WIDTH] * len(table.alignments)
        for row in [header, *rows]:
            for index, cell in enumerate(row[: len(widths)]):
                widths[index] = max(widths[index], display_width(cell))

        def render_row(cells: list[str]) -> str:
            padded = [
                _pad(cell, widths[index] if index < len(widths) else MIN_TABLE_COLUMN_WIDTH)
                for index, cell in enumerate(cells)
            ]
            return "| " + " | ".join(padded) + " |"

        delimiter = [
            _delimiter_cell(alignment, width)
            for alignment, width in zip(table.alignments, widths)
        ]
        return [render_row(header), "| " + " | ".join(delimiter) + " |"] + [
            render_row(row) for row in rows
        ]

    def link_definition(self, definition: LinkDefinition) -> str:
        line = f"[{definition.label}]: {definition.destination}"
        if definition.title is not None:
            line += " " + quote_title(definition.title)
        return line
