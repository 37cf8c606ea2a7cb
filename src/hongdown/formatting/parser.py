"""Markdown parser for converting source text to the document tree."""

import logging
import re
from typing import Optional

from hongdown.formatting.directives import DirectiveSpan, scan_lines
from hongdown.formatting.inlines import InlineParser
from hongdown.formatting.ir import (
    Alignment,
    Block,
    BlockQuote,
    CodeBlock,
    Document,
    Heading,
    HeadingStyle,
    HtmlBlock,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    Table,
    ThematicBreak,
    VerbatimRegion,
)
from hongdown.formatting.syntax import (
    ATX_CLOSING_PATTERN,
    ATX_HEADING_PATTERN,
    BLOCK_QUOTE_PATTERN,
    LINK_DEFINITION_PATTERN,
    fence_opening,
    has_unescaped_pipe,
    html_block_ends,
    html_block_kind,
    indent_of,
    interrupts_paragraph,
    is_blank,
    is_fence_closing,
    is_table_delimiter,
    is_thematic_break,
    list_marker,
    setext_level,
    split_table_row,
    strip_columns,
)

logger = logging.getLogger(__name__)

# A source line paired with its 1-based line number in the original input
Line = tuple[int, str]

QUOTE_PREFIX_PATTERN = re.compile(r"^( {0,3})>")


class MarkdownParser:
    """Parse Markdown source into a Document of block and inline nodes."""

    def __init__(self) -> None:
        self.inline_parser = InlineParser()

    def parse(
        self,
        markdown_text: str,
        spans: Optional[list[DirectiveSpan]] = None,
    ) -> Document:
        """Convert Markdown text to a Document.

        Args:
            markdown_text: The Markdown source
            spans: Directive spans for the source; scanned when omitted

        Returns:
            Document whose disabled spans are VerbatimRegion blocks
        """
        raw_lines = markdown_text.splitlines(keepends=True)
        if spans is None:
            spans = scan_lines(raw_lines)

        doc = Document()
        for span in spans:
            if span.enabled:
                lines = [
                    (number + 1, raw_lines[number].rstrip("\r\n"))
                    for number in range(span.start, span.end)
                ]
                for block in self.parse_blocks(lines):
                    doc.add_block(block)
            else:
                raw = "".join(raw_lines[span.start : span.end])
                if raw.endswith("\r\n"):
                    raw = raw[:-2]
                elif raw.endswith(("\n", "\r")):
                    raw = raw[:-1]
                doc.add_block(
                    VerbatimRegion(raw=raw, start_line=span.start + 1, end_line=span.end)
                )
        return doc

    def parse_blocks(self, lines: list[Line], depth: int = 0) -> list[Block]:
        """Parse a run of lines into blocks."""
        blocks, _ = _BlockScanner(self, lines, depth).run()
        return blocks


class _BlockScanner:
    """Single-use cursor that splits a run of lines into blocks.

    ``depth`` is the number of enclosing lists.
    """

    def __init__(self, parser: MarkdownParser, lines: list[Line], depth: int) -> None:
        self.parser = parser
        self.lines = lines
        self.depth = depth
        self.pos = 0
        self.blocks: list[Block] = []
        self.blank_between = False

    def _text(self, index: int) -> str:
        return self.lines[index][1]

    def _number(self, index: int) -> int:
        return self.lines[index][0]

    def inline(self, text: str):
        return self.parser.inline_parser.parse(text)

    def run(self) -> tuple[list[Block], bool]:
        """Parse every line.

        Returns:
            Tuple of (blocks, whether a blank line separated two blocks)
        """
        pending_blank = False
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if is_blank(line):
                pending_blank = True
                self.pos += 1
                continue
            if pending_blank and self.blocks:
                self.blank_between = True
            pending_blank = False
            self.blocks.append(self._block())
        return self.blocks, self.blank_between

    def _block(self) -> Block:
        line = self._text(self.pos)

        if indent_of(line) >= 4:
            return self._indented_code()

        opening = fence_opening(line)
        if opening is not None:
            return self._fenced_code(*opening)

        heading = ATX_HEADING_PATTERN.match(line)
        if heading:
            return self._atx_heading(heading)

        if is_thematic_break(line):
            number = self._number(self.pos)
            self.pos += 1
            return ThematicBreak(line=number)

        if BLOCK_QUOTE_PATTERN.match(line):
            return self._block_quote()

        kind = html_block_kind(line)
        if kind:
            return self._html_block(kind)

        if list_marker(line) is not None:
            return self._list()

        if (
            has_unescaped_pipe(line)
            and self.pos + 1 < len(self.lines)
            and is_table_delimiter(self._text(self.pos + 1))
        ):
            return self._table()

        definition = LINK_DEFINITION_PATTERN.match(line)
        if definition:
            return self._link_definition(definition)

        return self._paragraph()

    # -- leaf blocks ---------------------------------------------------------

    def _indented_code(self) -> CodeBlock:
        start = self.pos
        content: list[str] = []
        end = start
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if is_blank(line):
                content.append(strip_columns(line, 4))
            elif indent_of(line) >= 4:
                content.append(strip_columns(line, 4))
                end = self.pos + 1
            else:
                break
            self.pos += 1
        # Trailing blank lines are not part of the block
        content = content[: end - start]
        self.pos = end
        return CodeBlock(language=None, fence_char=None, lines=content, line=self._number(start))

    def _fenced_code(self, indent: int, char: str, length: int, info: str) -> CodeBlock:
        start = self.pos
        self.pos += 1
        content: list[str] = []
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if is_fence_closing(line, char, length):
                self.pos += 1
                break
            content.append(strip_columns(line, indent))
            self.pos += 1
        else:
            logger.debug("Unterminated code fence at line %d", self._number(start))
        return CodeBlock(
            language=info or None,
            fence_char=char,
            fence_length=length,
            lines=content,
            line=self._number(start),
        )

    def _atx_heading(self, match: re.Match) -> Heading:
        number = self._number(self.pos)
        self.pos += 1
        content = match.group(2) or ""
        content = ATX_CLOSING_PATTERN.sub("", content) if content else ""
        if set(content) <= {"#"}:
            content = ""
        return Heading(
            level=len(match.group(1)),
            children=self.inline(content.strip()),
            style=HeadingStyle.ATX,
            line=number,
        )

    def _html_block(self, kind: int) -> HtmlBlock:
        start = self.pos
        content: list[str] = []
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if kind >= 6 and is_blank(line):
                break
            content.append(line)
            self.pos += 1
            if kind <= 5 and html_block_ends(kind, line):
                break
        return HtmlBlock(lines=content, line=self._number(start))

    def _link_definition(self, match: re.Match) -> LinkDefinition:
        number = self._number(self.pos)
        self.pos += 1
        title = match.group(3)
        return LinkDefinition(
            label=match.group(1),
            destination=match.group(2),
            title=title[1:-1] if title else None,
            line=number,
        )

    def _table(self) -> Table:
        header_number = self._number(self.pos)
        header = split_table_row(self._text(self.pos))
        delimiter = split_table_row(self._text(self.pos + 1))
        self.pos += 2

        rows: list[list[str]] = []
        row_lines: list[int] = []
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if is_blank(line) or not has_unescaped_pipe(line):
                break
            rows.append(split_table_row(line))
            row_lines.append(self._number(self.pos))
            self.pos += 1

        return Table(
            header=[self.inline(cell) for cell in header],
            alignments=[_alignment(cell) for cell in delimiter],
            rows=[[self.inline(cell) for cell in row] for row in rows],
            line=header_number,
            row_lines=row_lines,
        )

    def _paragraph(self) -> Block:
        start = self.pos
        content = [self._text(self.pos).lstrip()]
        self.pos += 1
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            if is_blank(line):
                break
            level = setext_level(line)
            if level:
                self.pos += 1
                return Heading(
                    level=level,
                    children=self.inline("\n".join(content)),
                    style=HeadingStyle.SETEXT,
                    line=self._number(start),
                )
            if interrupts_paragraph(line):
                break
            content.append(line.lstrip())
            self.pos += 1
        return Paragraph(children=self.inline("\n".join(content)), line=self._number(start))

    # -- container blocks ----------------------------------------------------

    def _block_quote(self) -> BlockQuote:
        start = self.pos
        inner: list[Line] = []
        while self.pos < len(self.lines):
            number, line = self.lines[self.pos]
            match = QUOTE_PREFIX_PATTERN.match(line)
            if match:
                rest = line[match.end() :]
                # One optional space after '>' belongs to the marker
                rest = strip_columns(rest, 1) if rest[:1] in (" ", "\t") else rest
                inner.append((number, rest))
            elif (
                not is_blank(line)
                and inner
                and not is_blank(inner[-1][1])
                and not interrupts_paragraph(line)
            ):
                # Lazy continuation of a quoted paragraph
                inner.append((number, line.lstrip()))
            else:
                break
            self.pos += 1
        children = self.parser.parse_blocks(inner, self.depth)
        return BlockQuote(children=children, line=self._number(start))

    def _list(self) -> List:
        first_number = self._number(self.pos)
        marker_indent, marker, _ = list_marker(self._text(self.pos))
        ordered = marker[0].isdigit()
        delimiter = marker[-1]
        start_number = int(marker[:-1]) if ordered else 1
        depth = self.depth + 1

        items: list[ListItem] = []
        tight = True
        while self.pos < len(self.lines):
            line = self._text(self.pos)
            found = list_marker(line)
            if found is None or not _same_list(marker, found[1]):
                break
            if indent_of(line) >= 4 or is_thematic_break(line):
                break
            item_lines, trailing_blank = self._list_item(found)
            children, blank_between = _BlockScanner(self.parser, item_lines, depth).run()
            if blank_between:
                tight = False
            items.append(ListItem(children=children, depth=depth))

            if trailing_blank:
                ahead = self.pos
                while ahead < len(self.lines) and is_blank(self._text(ahead)):
                    ahead += 1
                nxt = self._text(ahead) if ahead < len(self.lines) else ""
                next_marker = list_marker(nxt)
                if (
                    next_marker is not None
                    and _same_list(marker, next_marker[1])
                    and not is_thematic_break(nxt)
                ):
                    tight = False
                    self.pos = ahead
                else:
                    break

        return List(
            ordered=ordered,
            items=items,
            tight=tight,
            start=start_number,
            depth=depth,
            line=first_number,
        )

    def _list_item(self, found: tuple[int, str, int]) -> tuple[list[Line], bool]:
        """Collect the lines of one list item, relative to its content column.

        Returns:
            Tuple of (item lines, whether blank lines followed the item)
        """
        marker_indent, marker, content_column = found
        number, line = self.lines[self.pos]
        first = line[len(line) - len(line.lstrip(" \t")) :]
        first = first[len(marker) :]
        marker_end = marker_indent + len(marker)
        first = strip_columns(first, content_column - marker_end, start=marker_end)
        item: list[Line] = [(number, first)]
        self.pos += 1

        blank_run = 0
        while self.pos < len(self.lines):
            number, line = self.lines[self.pos]
            if is_blank(line):
                blank_run += 1
                item.append((number, ""))
                self.pos += 1
                continue
            if indent_of(line) >= content_column:
                item.append((number, strip_columns(line, content_column)))
                blank_run = 0
                self.pos += 1
                continue
            if blank_run == 0 and not interrupts_paragraph(line) and list_marker(line) is None:
                # Lazy continuation line
                item.append((number, line.lstrip()))
                self.pos += 1
                continue
            break

        # Return trailing blank lines to the enclosing scanner
        while item and is_blank(item[-1][1]) and len(item) > 1:
            item.pop()
            self.pos -= 1
        return item, blank_run > 0


def _same_list(marker: str, other: str) -> bool:
    """Check whether two item markers belong to the same list."""
    if marker[0].isdigit():
        return other[0].isdigit() and other[-1] == marker[-1]
    return other == marker


def _alignment(cell: str) -> Alignment:
    cell = cell.strip()
    left = cell.startswith(":")
    right = cell.endswith(":")
    if left and right:
        return Alignment.CENTER
    if left:
        return Alignment.LEFT
    if right:
        return Alignment.RIGHT
    return Alignment.NONE
