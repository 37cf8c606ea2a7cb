"""Intermediate Representation for Markdown documents.

This module defines the block and inline node types produced by the
parser and consumed by every later pass. ``Block`` and ``Inline`` are
closed unions: each pass handles every member explicitly and treats an
unknown node as a defect.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# =============================================================================
# Inline nodes
# =============================================================================

@dataclass
class Text:
    """Literal text, kept with its source backslash escapes."""

    text: str


@dataclass
class Emphasis:
    """Emphasized span (``*text*``)."""

    children: list["Inline"] = field(default_factory=list)


@dataclass
class Strong:
    """Strongly emphasized span (``**text**``)."""

    children: list["Inline"] = field(default_factory=list)


@dataclass
class CodeSpan:
    """Inline code, including its backtick delimiters.

    Attributes:
        raw: Source text of the span, delimiters included
    """

    raw: str


@dataclass
class Link:
    """Inline link.

    Attributes:
        children: Inline content of the link label
        destination: Destination as written (angle brackets kept)
        title: Title without its delimiters, or None
    """

    children: list["Inline"] = field(default_factory=list)
    destination: str = ""
    title: Optional[str] = None


@dataclass
class Image:
    """Inline image.

    Attributes:
        alt: Alt text as written between the brackets
        destination: Destination as written
        title: Title without its delimiters, or None
    """

    alt: str
    destination: str = ""
    title: Optional[str] = None


@dataclass
class RawHtml:
    """Inline HTML tag, comment or autolink, emitted as-is."""

    raw: str


@dataclass
class SoftBreak:
    """Line ending inside a paragraph."""


@dataclass
class HardBreak:
    """Forced line break (two trailing spaces or a trailing backslash)."""


Inline = Union[
    Text, Emphasis, Strong, CodeSpan, Link, Image, RawHtml, SoftBreak, HardBreak
]


# =============================================================================
# Block nodes
# =============================================================================

class HeadingStyle(str, Enum):
    """Presentation of a heading."""

    ATX = "atx"
    SETEXT = "setext"


class Alignment(str, Enum):
    """Column alignment declared by a table delimiter row."""

    NONE = "none"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass
class Heading:
    """Section heading.

    Attributes:
        level: Heading level, 1 to 6
        children: Inline content
        style: ATX (``#``) or Setext (underlined)
        line: 1-based source line of the heading text
    """

    level: int
    children: list[Inline] = field(default_factory=list)
    style: HeadingStyle = HeadingStyle.ATX
    line: int = 0


@dataclass
class Paragraph:
    """Paragraph of inline content.

    Attributes:
        children: Inline content
        lines: Rendered lines once the line wrapper has run, else None
        line: 1-based source line of the first line
    """

    children: list[Inline] = field(default_factory=list)
    lines: Optional[list[str]] = None
    line: int = 0


@dataclass
class ListItem:
    """A single list item.

    Attributes:
        children: Nested blocks
        depth: List nesting depth, 1 for a top-level list
        marker: Rendered marker including its padding (canonicalizer)
        indent: Indentation of continuation lines (canonicalizer)
    """

    children: list["Block"] = field(default_factory=list)
    depth: int = 1
    marker: str = ""
    indent: int = 0


@dataclass
class List:
    """Ordered or unordered list.

    Attributes:
        ordered: Whether items are numbered
        items: The list items in order
        tight: True when no blank line separates items or their blocks
        start: Number of the first item (ordered lists)
        depth: Nesting depth, 1 for a top-level list
        line: 1-based source line of the first item
    """

    ordered: bool
    items: list[ListItem] = field(default_factory=list)
    tight: bool = True
    start: int = 1
    depth: int = 1
    line: int = 0


@dataclass
class CodeBlock:
    """Fenced or indented code block.

    Attributes:
        language: Info string, or None when absent
        fence_char: Fence character, or None for an indented block
        fence_length: Length of the fence run
        lines: Raw content lines
        line: 1-based source line of the opening fence
    """

    language: Optional[str] = None
    fence_char: Optional[str] = None
    fence_length: int = 0
    lines: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class ThematicBreak:
    """Horizontal rule.

    Attributes:
        marker: Rendered rule including leading spaces (canonicalizer)
    """

    marker: str = ""
    line: int = 0


@dataclass
class Table:
    """Pipe table.

    Attributes:
        header: Header cells
        alignments: One alignment per delimiter-row column
        rows: Body rows, each a list of cells
        line: 1-based source line of the header row
        row_lines: 1-based source line of each body row
    """

    header: list[list[Inline]] = field(default_factory=list)
    alignments: list[Alignment] = field(default_factory=list)
    rows: list[list[list[Inline]]] = field(default_factory=list)
    line: int = 0
    row_lines: list[int] = field(default_factory=list)


@dataclass
class BlockQuote:
    """Block quote containing nested blocks."""

    children: list["Block"] = field(default_factory=list)
    line: int = 0


@dataclass
class HtmlBlock:
    """Raw HTML block, emitted unchanged."""

    lines: list[str] = field(default_factory=list)
    line: int = 0


@dataclass
class LinkDefinition:
    """Link reference definition (``[label]: destination "title"``)."""

    label: str
    destination: str
    title: Optional[str] = None
    line: int = 0


@dataclass
class VerbatimRegion:
    """Directive-disabled source span, emitted byte-identical.

    Attributes:
        raw: Exact source text of the span, without its final line ending
        start_line: 1-based first source line
        end_line: 1-based last source line
    """

    raw: str
    start_line: int = 0
    end_line: int = 0


Block = Union[
    Heading,
    Paragraph,
    List,
    ListItem,
    CodeBlock,
    ThematicBreak,
    Table,
    BlockQuote,
    HtmlBlock,
    LinkDefinition,
    VerbatimRegion,
]


@dataclass
class Document:
    """Root of one formatting operation."""

    blocks: list[Block] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Check whether the document has no blocks."""
        return not self.blocks

    def add_block(self, block: Block) -> None:
        """Append a block to the document."""
        self.blocks.append(block)


@dataclass(frozen=True)
class FormatWarning:
    """Non-fatal diagnostic tied to a line of the original input."""

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass
class FormatResult:
    """Formatted output together with collected diagnostics."""

    output: str
    warnings: list[FormatWarning] = field(default_factory=list)


def unhandled(node: object) -> TypeError:
    """Build the error raised when a pass meets an unknown node type."""
    return TypeError(f"Unhandled node type: {type(node).__name__}")
