"""Tests for the Markdown serializer."""

import pytest

from hongdown.formatting.ir import (
    Alignment,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    Document,
    Emphasis,
    HardBreak,
    Heading,
    HeadingStyle,
    Image,
    Link,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    Strong,
    Table,
    Text,
    ThematicBreak,
    VerbatimRegion,
)
from hongdown.formatting.options import FormatOptions
from hongdown.formatting.serializer import (
    InlineRenderer,
    Serializer,
    escape_table_cell,
    quote_title,
)


def para(text: str) -> Paragraph:
    return Paragraph(children=[Text(text)])


def item(*blocks, marker: str = " -  ", indent: int = 4) -> ListItem:
    return ListItem(children=list(blocks), marker=marker, indent=indent)


class TestInlineRenderer:
    """Tests for inline rendering."""

    @pytest.fixture
    def renderer(self) -> InlineRenderer:
        """Create a renderer instance."""
        return InlineRenderer()

    def test_emphasis_uses_asterisks(self, renderer: InlineRenderer):
        """Test underscores from the source become asterisks."""
        nodes = [Emphasis([Text("a")]), Text(" "), Strong([Text("b")])]

        assert renderer.text(nodes) == "*a* **b**"

    def test_nested_emphasis_at_edge(self, renderer: InlineRenderer):
        """Test nested emphasis flush against a delimiter uses underscores."""
        assert renderer.text([Strong([Emphasis([Text("x")])])]) == "**_x_**"

    def test_nested_emphasis_inside(self, renderer: InlineRenderer):
        """Test nested emphasis away from the edges keeps asterisks."""
        nodes = [Emphasis([Text("a "), Strong([Text("b")]), Text(" c")])]

        assert renderer.text(nodes) == "*a **b** c*"

    def test_code_span_raw(self, renderer: InlineRenderer):
        """Test code spans are written as in the source."""
        assert renderer.text([CodeSpan("``a `b` c``")]) == "``a `b` c``"

    def test_link_and_image(self, renderer: InlineRenderer):
        """Test link and image syntax."""
        nodes = [
            Link([Text("docs")], destination="https://example.com", title="Docs"),
            Text(" "),
            Image(alt="logo", destination="logo.png"),
        ]

        assert renderer.text(nodes) == '[docs](https://example.com "Docs") ![logo](logo.png)'

    def test_quote_title(self):
        """Test title delimiters avoid the quotes in the title."""
        assert quote_title("plain") == '"plain"'
        assert quote_title('a "b"') == "'a \"b\"'"
        assert quote_title("it's \"x\"") == "(it's \"x\")"


class TestSerializer:
    """Tests for the Serializer class."""

    @pytest.fixture
    def serializer(self) -> Serializer:
        """Create a serializer with default options."""
        return Serializer()

    def test_empty_document(self, serializer: Serializer):
        """Test an empty document serializes to the empty string."""
        assert serializer.serialize(Document()) == ""

    def test_blank_line_between_blocks(self, serializer: Serializer):
        """Test siblings are separated by one blank line."""
        doc = Document(blocks=[para("a"), para("b")])

        assert serializer.serialize(doc) == "a\n\nb\n"

    def test_setext_heading(self, serializer: Serializer):
        """Test underline length follows the display width."""
        assert serializer.heading(Heading(1, [Text("Hello")], HeadingStyle.SETEXT)) == [
            "Hello",
            "=====",
        ]
        assert serializer.heading(Heading(2, [Text("한국어")], HeadingStyle.SETEXT)) == [
            "한국어",
            "------",
        ]

    def test_atx_heading(self, serializer: Serializer):
        """Test ATX headings."""
        assert serializer.heading(Heading(3, [Text("Deep")])) == ["### Deep"]

    def test_paragraph_hard_break(self, serializer: Serializer):
        """Test hard breaks in an unwrapped paragraph."""
        paragraph = Paragraph(children=[Text("a"), HardBreak(), Text("b")])

        assert serializer.paragraph(paragraph) == ["a\\", "b"]

    def test_paragraph_prefers_wrapped_lines(self, serializer: Serializer):
        """Test lines from the wrapper are used as-is."""
        paragraph = Paragraph(children=[Text("ignored")], lines=["one", "two"])

        assert serializer.paragraph(paragraph) == ["one", "two"]

    def test_tight_list(self, serializer: Serializer):
        """Test tight lists have no blank lines between items."""
        lst = List(ordered=False, items=[item(para("a")), item(para("b"))])

        assert serializer.list_block(lst) == [" -  a", " -  b"]

    def test_loose_list(self, serializer: Serializer):
        """Test loose lists separate items and their blocks."""
        lst = List(
            ordered=False,
            tight=False,
            items=[item(para("a"), para("b")), item(para("c"))],
        )

        assert serializer.list_block(lst) == [" -  a", "", "    b", "", " -  c"]

    def test_nested_list_indent(self, serializer: Serializer):
        """Test nested lists are indented under the item content."""
        inner = List(ordered=False, items=[item(para("b"))], depth=2)
        outer = List(ordered=False, items=[item(para("a"), inner)])

        assert serializer.list_block(outer) == [" -  a", "     -  b"]

    def test_empty_item(self, serializer: Serializer):
        """Test an item without content is just its marker."""
        lst = List(ordered=True, items=[item(marker="1.  ")])

        assert serializer.list_block(lst) == ["1."]

    def test_list_method_does_not_shadow_builtin(self):
        """Test annotations in the class body still see the builtin ``list``."""
        assert not hasattr(Serializer, "list")
        assert Serializer.blocks.__annotations__["return"] == list[str]

    def test_code_block(self, serializer: Serializer):
        """Test fence and info string."""
        code = CodeBlock(language="python", fence_char="~", fence_length=4, lines=["x = 1"])

        assert serializer.code_block(code) == ["~~~~python", "x = 1", "~~~~"]

    def test_space_after_fence(self):
        """Test the space_after_fence option."""
        serializer = Serializer(FormatOptions(space_after_fence=True))
        code = CodeBlock(language="rust", fence_char="`", fence_length=4, lines=[])

        assert serializer.code_block(code) == ["```` rust", "````"]

    def test_thematic_break(self, serializer: Serializer):
        """Test the canonical marker, falling back to the option."""
        assert serializer.block(ThematicBreak(marker="* * *")) == ["* * *"]
        assert serializer.block(ThematicBreak()) == ["---"]

    def test_block_quote(self, serializer: Serializer):
        """Test quote prefixes, including blank lines."""
        quote = BlockQuote(children=[para("a"), para("b")])

        assert serializer.block(quote) == ["> a", ">", "> b"]

    def test_nested_block_quote(self, serializer: Serializer):
        """Test quotes inside quotes."""
        quote = BlockQuote(children=[BlockQuote(children=[para("a")])])

        assert serializer.block(quote) == ["> > a"]

    def test_link_definitions_grouped(self, serializer: Serializer):
        """Test consecutive definitions are not blank-separated."""
        doc = Document(
            blocks=[
                para("text"),
                LinkDefinition("a", "https://a.example"),
                LinkDefinition("b", "https://b.example", "B"),
            ]
        )

        assert serializer.serialize(doc) == (
            'text\n\n[a]: https://a.example\n[b]: https://b.example "B"\n'
        )

    def test_verbatim_region(self, serializer: Serializer):
        """Test verbatim text is written unchanged."""
        doc = Document(blocks=[VerbatimRegion(raw="*  a\r\n   b*")])

        assert serializer.serialize(doc) == "*  a\r\n   b*\n"


class TestTables:
    """Tests for table rendering."""

    @pytest.fixture
    def serializer(self) -> Serializer:
        """Create a serializer with default options."""
        return Serializer()

    def test_alignment_and_padding(self, serializer: Serializer):
        """Test columns are padded and the delimiter row shows alignment."""
        table = Table(
            header=[[Text("a")], [Text("long header")], [Text("c")], [Text("d")]],
            alignments=[Alignment.LEFT, Alignment.RIGHT, Alignment.CENTER, Alignment.NONE],
            rows=[[[Text("1")], [Text("2")], [Text("3")], [Text("4")]]],
        )

        assert serializer.table(table) == [
            "| a   | long header | c   | d   |",
            "| :-- | ----------: | :-: | --- |",
            "| 1   | 2           | 3   | 4   |",
        ]

    def test_wide_characters(self, serializer: Serializer):
        """Test padding uses display width."""
        table = Table(
            header=[[Text("이름")], [Text("x")]],
            alignments=[Alignment.NONE, Alignment.NONE],
            rows=[[[Text("a")], [Text("y")]]],
        )

        assert serializer.table(table) == [
            "| 이름 | x   |",
            "| ---- | --- |",
            "| a    | y   |",
        ]

    def test_row_arity_kept(self, serializer: Serializer):
        """Test an extra cell is still written."""
        table = Table(
            header=[[Text("a")], [Text("b")]],
            alignments=[Alignment.NONE, Alignment.NONE],
            rows=[[[Text("1")], [Text("2")], [Text("3")]]],
        )

        assert serializer.table(table)[2] == "| 1   | 2   | 3   |"

    def test_pipes_escaped(self):
        """Test unescaped pipes are escaped, escaped ones kept."""
        assert escape_table_cell("a|b\\|c") == "a\\|b\\|c"
