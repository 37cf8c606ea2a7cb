"""Typographic punctuation for inline text.

Straight quotes, three periods and hyphen runs in Text nodes are replaced
with their typographic glyphs, as selected by FormatOptions. Code spans,
raw HTML, images and every non-prose block are left untouched.

Quote direction is decided from the surrounding characters of the whole
inline run, not just the Text node holding the quote::

    opening   previous character is start of text, whitespace, an opening
              bracket, a dash or another opening quote, and the next
              character is not whitespace or end of text
    closing   every other case
    apostrophe  a single quote between two letters or digits, or an
              opening single quote directly before a digit ('90s)
"""

from dataclasses import replace

from hongdown.formatting.inlines import ASCII_PUNCTUATION
from hongdown.formatting.ir import (
    Block,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    Document,
    Emphasis,
    HardBreak,
    Heading,
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


LEFT_DOUBLE_QUOTE = "“"
RIGHT_DOUBLE_QUOTE = "”"
LEFT_SINGLE_QUOTE = "‘"
RIGHT_SINGLE_QUOTE = "’"
APOSTROPHE = RIGHT_SINGLE_QUOTE
ELLIPSIS = "…"
EN_DASH = "–"
EM_DASH = "—"

OPENING_CONTEXT = frozenset("([{<-–—\"'" + LEFT_DOUBLE_QUOTE + LEFT_SINGLE_QUOTE)

# Stand-in for atomic inlines (code spans, images, raw HTML) when
# looking at the characters around a quote
ATOM = "x"


class TypographyTransformer:
    """Replace straight punctuation with typographic glyphs."""

    def __init__(self, options: FormatOptions) -> None:
        self.options = options
        self.em_pattern = options.em_dash_pattern

    @property
    def enabled(self) -> bool:
        """Whether any substitution is switched on."""
        opts = self.options
        return any(
            (
                opts.curly_double_quotes,
                opts.curly_single_quotes,
                opts.curly_apostrophes,
                opts.ellipsis,
                opts.en_dash,
                self.em_pattern is not None,
            )
        )

    def apply(self, document: Document) -> Document:
        if not self.enabled:
            return document
        return Document(blocks=[self.block(block) for block in document.blocks])

    def block(self, block: Block) -> Block:
        if isinstance(block, Heading):
            return replace(block, children=self.inlines(block.children))
        if isinstance(block, Paragraph):
            return replace(block, children=self.inlines(block.children))
        if isinstance(block, Table):
            return replace(
                block,
                header=[self.inlines(cell) for cell in block.header],
                rows=[[self.inlines(cell) for cell in row] for row in block.rows],
            )
        if isinstance(block, List):
            return replace(block, items=[self.block(item) for item in block.items])
        if isinstance(block, (ListItem, BlockQuote)):
            return replace(block, children=[self.block(child) for child in block.children])
        if isinstance(
            block, (CodeBlock, ThematicBreak, HtmlBlock, LinkDefinition, VerbatimRegion)
        ):
            return block
        raise unhandled(block)

    def inlines(self, nodes: list[Inline]) -> list[Inline]:
        """Rewrite the Text nodes of one inline run."""
        plain = "".join(_plain(node) for node in nodes)
        rewritten, _ = self._rewrite(nodes, plain, 0)
        return rewritten

    def _rewrite(self, nodes: list[Inline], plain: str, offset: int) -> tuple[list[Inline], int]:
        result: list[Inline] = []
        for node in nodes:
            if isinstance(node, Text):
                result.append(Text(self.text(node.text, plain, offset)))
                offset += len(node.text)
            elif isinstance(node, (Emphasis, Strong)):
                children, offset = self._rewrite(node.children, plain, offset)
                result.append(replace(node, children=children))
            elif isinstance(node, Link):
                children, offset = self._rewrite(node.children, plain, offset)
                result.append(replace(node, children=children))
            elif isinstance(node, (CodeSpan, Image, RawHtml, SoftBreak, HardBreak)):
                result.append(node)
                offset += len(_plain(node))
            else:
                raise unhandled(node)
        return result, offset

    def text(self, text: str, plain: str = "", offset: int = 0) -> str:
        """Apply every enabled substitution to one Text node, left to right.

        Args:
            text: The node's text
            plain: Plain text of the whole inline run containing the node
            offset: Index of the node's first character in ``plain``
        """
        if not plain:
            plain = text
        opts = self.options
        em = self.em_pattern
        out: list[str] = []
        index = 0
        n = len(text)
        while index < n:
            ch = text[index]
            if ch == "\\" and index + 1 < n and text[index + 1] in ASCII_PUNCTUATION:
                out.append(text[index : index + 2])
                index += 2
                continue
            if em and text.startswith(em, index):
                out.append(EM_DASH)
                index += len(em)
                continue
            if opts.en_dash and text.startswith("--", index):
                out.append(EN_DASH)
                index += 2
                continue
            if opts.ellipsis and text.startswith("...", index):
                out.append(ELLIPSIS)
                index += 3
                continue
            if ch in "\"'":
                position = offset + index
                before = plain[position - 1] if position > 0 else ""
                after = plain[position + 1] if position + 1 < len(plain) else ""
                out.append(self.quote(ch, before, after))
                index += 1
                continue
            out.append(ch)
            index += 1
        return "".join(out)

    def quote(self, ch: str, before: str, after: str) -> str:
        """Glyph for a straight quote between ``before`` and ``after``.

        Empty strings stand for the start or end of the inline run.
        """
        opening = _opens(before, after)
        if ch == '"':
            if not self.options.curly_double_quotes:
                return ch
            return LEFT_DOUBLE_QUOTE if opening else RIGHT_DOUBLE_QUOTE
        if _is_apostrophe(before, after, opening):
            return APOSTROPHE if self.options.curly_apostrophes else ch
        if not self.options.curly_single_quotes:
            return ch
        return LEFT_SINGLE_QUOTE if opening else RIGHT_SINGLE_QUOTE


def _opens(before: str, after: str) -> bool:
    if not after or after.isspace():
        return False
    return not before or before.isspace() or before in OPENING_CONTEXT


def _is_apostrophe(before: str, after: str, opening: bool) -> bool:
    if before.isalnum() and after.isalnum():
        return True
    return opening and after.isdigit()


def _plain(node: Inline) -> str:
    """Characters of a node as seen by the quote heuristic."""
    if isinstance(node, Text):
        return node.text
    if isinstance(node, (Emphasis, Strong, Link)):
        return "".join(_plain(child) for child in node.children)
    if isinstance(node, (CodeSpan, Image, RawHtml)):
        return ATOM
    if isinstance(node, (SoftBreak, HardBreak)):
        return " "
    raise unhandled(node)
