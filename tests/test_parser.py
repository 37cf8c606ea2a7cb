"""Tests for the block parser."""

import pytest

from hongdown.formatting.ir import (
    Alignment,
    BlockQuote,
    CodeBlock,
    Heading,
    HeadingStyle,
    HtmlBlock,
    LinkDefinition,
    List,
    Paragraph,
    Table,
    Text,
    ThematicBreak,
    VerbatimRegion,
)
from hongdown.formatting.parser import MarkdownParser
from hongdown.formatting.syntax import indent_of, list_marker, strip_columns


class TestMarkdownParser:
    """Tests for the MarkdownParser class."""

    @pytest.fixture
    def parser(self) -> MarkdownParser:
        """Create a parser instance."""
        return MarkdownParser()

    def test_parse_plain_text(self, parser: MarkdownParser):
        """Test parsing a single paragraph."""
        doc = parser.parse("Hello, world!")

        assert len(doc.blocks) == 1
        assert isinstance(doc.blocks[0], Paragraph)
        assert doc.blocks[0].children == [Text("Hello, world!")]

    def test_parse_empty(self, parser: MarkdownParser):
        """Test that blank input has no blocks."""
        assert parser.parse("").is_empty
        assert parser.parse("\n  \n").is_empty

    def test_parse_multiple_paragraphs(self, parser: MarkdownParser):
        """Test blank lines separate paragraphs."""
        doc = parser.parse("First paragraph.\n\nSecond paragraph.")

        assert len(doc.blocks) == 2
        assert doc.blocks[1].line == 3

    def test_atx_heading(self, parser: MarkdownParser):
        """Test ATX headings with and without closing hashes."""
        doc = parser.parse("## Section ##\n\n###### Deep")

        heading = doc.blocks[0]
        assert isinstance(heading, Heading)
        assert heading.level == 2
        assert heading.style is HeadingStyle.ATX
        assert heading.children == [Text("Section")]
        assert doc.blocks[1].level == 6

    def test_hash_without_space_is_paragraph(self, parser: MarkdownParser):
        """Test '#tag' is not a heading."""
        doc = parser.parse("#hashtag")

        assert isinstance(doc.blocks[0], Paragraph)

    def test_setext_headings(self, parser: MarkdownParser):
        """Test '=' and '-' underlines."""
        doc = parser.parse("Title\n=====\n\nSub\n---")

        assert doc.blocks[0].level == 1
        assert doc.blocks[0].style is HeadingStyle.SETEXT
        assert doc.blocks[1].level == 2

    def test_thematic_break(self, parser: MarkdownParser):
        """Test the three thematic break characters."""
        doc = parser.parse("***\n\n- - -\n\n___")

        assert all(isinstance(block, ThematicBreak) for block in doc.blocks)
        assert len(doc.blocks) == 3

    def test_fenced_code(self, parser: MarkdownParser):
        """Test a fenced code block with an info string."""
        doc = parser.parse("```python\ndef f():\n    return 1\n```")

        code = doc.blocks[0]
        assert isinstance(code, CodeBlock)
        assert code.language == "python"
        assert code.fence_char == "`"
        assert code.fence_length == 3
        assert code.lines == ["def f():", "    return 1"]

    def test_fence_closes_with_longer_run(self, parser: MarkdownParser):
        """Test that a longer closing fence closes the block."""
        doc = parser.parse("~~~\ncode\n~~~~~\n\nafter")

        assert doc.blocks[0].lines == ["code"]
        assert isinstance(doc.blocks[1], Paragraph)

    def test_unterminated_fence(self, parser: MarkdownParser):
        """Test an unterminated fence takes the rest of the document."""
        doc = parser.parse("```\ncode\n\n# not a heading")

        assert len(doc.blocks) == 1
        assert doc.blocks[0].lines == ["code", "", "# not a heading"]

    def test_indented_code(self, parser: MarkdownParser):
        """Test four-space indented code."""
        doc = parser.parse("    x = 1\n    y = 2\n\ntext")

        code = doc.blocks[0]
        assert isinstance(code, CodeBlock)
        assert code.fence_char is None
        assert code.lines == ["x = 1", "y = 2"]

    def test_unordered_list(self, parser: MarkdownParser):
        """Test a tight unordered list."""
        doc = parser.parse("* one\n* two\n* three")

        lst = doc.blocks[0]
        assert isinstance(lst, List)
        assert lst.ordered is False
        assert lst.tight is True
        assert len(lst.items) == 3
        assert lst.items[1].children[0].children == [Text("two")]

    def test_loose_list(self, parser: MarkdownParser):
        """Test blank lines between items make a loose list."""
        doc = parser.parse("- one\n\n- two")

        assert len(doc.blocks) == 1
        assert doc.blocks[0].tight is False

    def test_ordered_list_start(self, parser: MarkdownParser):
        """Test ordered list start number."""
        doc = parser.parse("3. three\n4. four")

        lst = doc.blocks[0]
        assert lst.ordered is True
        assert lst.start == 3

    def test_different_markers_start_new_list(self, parser: MarkdownParser):
        """Test a marker change starts another list."""
        doc = parser.parse("- a\n+ b")

        assert len(doc.blocks) == 2

    def test_nested_list(self, parser: MarkdownParser):
        """Test nesting by content column."""
        doc = parser.parse("- a\n  - b\n  - c\n- d")

        outer = doc.blocks[0]
        assert len(outer.items) == 2
        inner = outer.items[0].children[1]
        assert isinstance(inner, List)
        assert inner.depth == 2
        assert len(inner.items) == 2
        assert inner.items[0].depth == 2

    def test_list_item_lazy_continuation(self, parser: MarkdownParser):
        """Test an unindented line continues the item's paragraph."""
        doc = parser.parse("- a\nb")

        item = doc.blocks[0].items[0]
        assert len(item.children) == 1
        assert len(item.children[0].children) == 3

    def test_tab_after_marker_sets_content_column(self, parser: MarkdownParser):
        """Test a tab after the marker reaches the next tab stop, not the one after."""
        doc = parser.parse("-\tfoo\n\n\tbar")

        assert len(doc.blocks) == 1
        item = doc.blocks[0].items[0]
        assert [child.children for child in item.children] == [[Text("foo")], [Text("bar")]]

    def test_block_quote(self, parser: MarkdownParser):
        """Test quoted blocks are parsed recursively."""
        doc = parser.parse("> # Title\n>\n> text\nlazy")

        quote = doc.blocks[0]
        assert isinstance(quote, BlockQuote)
        assert isinstance(quote.children[0], Heading)
        assert isinstance(quote.children[1], Paragraph)
        assert quote.children[1].children[-1] == Text("lazy")

    def test_html_block(self, parser: MarkdownParser):
        """Test HTML blocks are kept raw."""
        doc = parser.parse("<div>\n  <b>hi</b>\n</div>\n\ntext")

        html = doc.blocks[0]
        assert isinstance(html, HtmlBlock)
        assert html.lines == ["<div>", "  <b>hi</b>", "</div>"]

    def test_html_comment_block(self, parser: MarkdownParser):
        """Test a comment block ends at '-->'."""
        doc = parser.parse("<!--\nnote\n-->\nafter")

        assert doc.blocks[0].lines == ["<!--", "note", "-->"]
        assert isinstance(doc.blocks[1], Paragraph)

    def test_table(self, parser: MarkdownParser):
        """Test pipe tables with alignments and line numbers."""
        doc = parser.parse("| a | b | c |\n|:--|:-:|--:|\n| 1 | 2 | 3 |\n| 4 | 5 | 6 |")

        table = doc.blocks[0]
        assert isinstance(table, Table)
        assert table.alignments == [Alignment.LEFT, Alignment.CENTER, Alignment.RIGHT]
        assert table.header[0] == [Text("a")]
        assert len(table.rows) == 2
        assert table.line == 1
        assert table.row_lines == [3, 4]

    def test_table_keeps_row_arity(self, parser: MarkdownParser):
        """Test rows with a different cell count are not rejected."""
        doc = parser.parse("a | b\n--- | ---\n1 | 2 | 3")

        assert len(doc.blocks[0].rows[0]) == 3

    def test_escaped_pipe_stays_in_cell(self, parser: MarkdownParser):
        """Test an escaped pipe does not split a cell."""
        doc = parser.parse("| a \\| b | c |\n| --- | --- |")

        assert doc.blocks[0].header[0] == [Text("a \\| b")]

    def test_link_definition(self, parser: MarkdownParser):
        """Test link reference definitions."""
        doc = parser.parse('[home]: https://example.com "Home page"')

        definition = doc.blocks[0]
        assert isinstance(definition, LinkDefinition)
        assert definition.label == "home"
        assert definition.destination == "https://example.com"
        assert definition.title == "Home page"

    def test_verbatim_regions(self, parser: MarkdownParser):
        """Test disabled spans become verbatim blocks with exact bytes."""
        text = "<!-- hongdown-disable -->\n*  keep\r\n   this*\n"
        doc = parser.parse(text)

        assert isinstance(doc.blocks[0], HtmlBlock)
        region = doc.blocks[1]
        assert isinstance(region, VerbatimRegion)
        assert region.raw == "*  keep\r\n   this*"
        assert region.start_line == 2
        assert region.end_line == 3

    def test_crlf_input(self, parser: MarkdownParser):
        """Test CRLF line endings are handled."""
        doc = parser.parse("# Title\r\n\r\nText\r\n")

        assert len(doc.blocks) == 2
        assert doc.blocks[0].children == [Text("Title")]
        assert doc.blocks[1].children == [Text("Text")]


class TestColumns:
    """Tests for tab stops in the line helpers."""

    def test_list_marker_tab(self):
        """Test the content column after a tab is counted from the marker."""
        assert list_marker("-\tfoo") == (0, "-", 4)
        assert list_marker("10.\tfoo") == (0, "10.", 4)
        assert list_marker("  -\tfoo") == (2, "-", 4)

    def test_indent_of_start(self):
        """Test tab width depends on the starting column."""
        assert indent_of("\tx") == 4
        assert indent_of("\tx", start=1) == 3
        assert indent_of(" \tx", start=2) == 2

    def test_strip_columns_start(self):
        """Test a tab past the start column is stripped by its real width."""
        assert strip_columns("\tfoo", 3, start=1) == "foo"
        assert strip_columns("\tfoo", 1, start=1) == "  foo"
