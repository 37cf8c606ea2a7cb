"""Greedy reflow of paragraph text to the configured line width."""

import re
from dataclasses import replace

from hongdown.formatting.ir import (
    Block,
    BlockQuote,
    CodeBlock,
    Document,
    Heading,
    HtmlBlock,
    Inline,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    Table,
    ThematicBreak,
    VerbatimRegion,
    unhandled,
)
from hongdown.formatting.options import FormatOptions
from hongdown.formatting.serializer import HARD_BREAK_MARK, NBSP_MARK, InlineRenderer
from hongdown.formatting.syntax import (
    display_width,
    interrupts_paragraph,
    is_thematic_break,
    list_marker,
    setext_level,
)

# Width of the "> " prefix added to every quoted line
QUOTE_PREFIX_WIDTH = 2

_WORD_SEPARATOR = re.compile(r"[ \t]+")


def unsafe_line_start(word: str) -> bool:
    """Check whether a line beginning with ``word`` would change the block structure."""
    return (
        list_marker(word) is not None
        or setext_level(word) > 0
        or is_thematic_break(word)
        or interrupts_paragraph(word + " x")
    )


def _ends_with_backslash(word: str) -> bool:
    stripped = word.rstrip("\\")
    return (len(word) - len(stripped)) % 2 == 1


def wrap_words(words: list[str], width: int) -> list[str]:
    """Greedily pack words into lines no wider than ``width``.

    A word wider than ``width`` gets a line of its own. A word that cannot
    start a line, or that follows a word ending in a lone backslash, stays
    on the current line even when it overflows.
    """
    lines: list[str] = []
    current: list[str] = []
    current_width = 0
    for word in words:
        word_width = display_width(word)
        if (
            current
            and current_width + 1 + word_width > width
            and not unsafe_line_start(word.replace(NBSP_MARK, " "))
            and not _ends_with_backslash(current[-1])
        ):
            lines.append(" ".join(current))
            current = [word]
            current_width = word_width
            continue
        current_width += word_width + (1 if current else 0)
        current.append(word)
    if current:
        lines.append(" ".join(current))
    return [line.replace(NBSP_MARK, " ") for line in lines]


class LineWrapper:
    """Fill in ``Paragraph.lines`` for every paragraph of a document."""

    def __init__(self, options: FormatOptions) -> None:
        self.options = options
        self.renderer = InlineRenderer()

    def apply(self, document: Document) -> Document:
        width = self.options.line_width
        return Document(blocks=[self.block(block, width) for block in document.blocks])

    def block(self, block: Block, width: int) -> Block:
        if isinstance(block, Paragraph):
            return replace(block, lines=self.wrap(block.children, width))
        if isinstance(block, BlockQuote):
            inner = width - QUOTE_PREFIX_WIDTH
            return replace(block, children=[self.block(child, inner) for child in block.children])
        if isinstance(block, List):
            return replace(block, items=[self.block(item, width) for item in block.items])
        if isinstance(block, ListItem):
            inner = width - block.indent
            return replace(block, children=[self.block(child, inner) for child in block.children])
        if isinstance(
            block,
            (Heading, CodeBlock, ThematicBreak, Table, HtmlBlock, LinkDefinition, VerbatimRegion),
        ):
            return block
        raise unhandled(block)

    def wrap(self, children: list[Inline], width: int) -> list[str]:
        """Render inline content as lines of at most ``width`` columns.

        Hard breaks always end a line and are written as a trailing
        backslash.
        """
        width = max(width, 1)
        rendered = self.renderer.render(children)
        lines: list[str] = []
        segments = rendered.split(HARD_BREAK_MARK)
        for index, segment in enumerate(segments):
            words = [word for word in _WORD_SEPARATOR.split(segment) if word]
            wrapped = wrap_words(words, width) or [""]
            if index < len(segments) - 1:
                wrapped[-1] += "\\"
            lines.extend(wrapped)
        return lines
