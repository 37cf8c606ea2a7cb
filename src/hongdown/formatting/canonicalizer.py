"""Block-level canonicalization rules.

Each rule decides how a block is presented (heading style, list markers,
code fences, thematic breaks) without touching its inline content.
"""

import re
from dataclasses import replace

from hongdown.formatting.ir import (
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
    unhandled,
)
from hongdown.formatting.options import FormatOptions

# Markers for a list placed right after another list of the same kind
ALTERNATE_BULLETS = {"-": "*", "*": "-", "+": "-"}
ALTERNATE_DELIMITERS = {".": ")", ")": "."}


class Canonicalizer:
    """Rewrite block presentation according to FormatOptions."""

    def __init__(self, options: FormatOptions) -> None:
        self.options = options

    def apply(self, document: Document) -> Document:
        """Return a new document with canonical block presentation."""
        return Document(blocks=self.blocks(document.blocks))

    def blocks(self, blocks: list[Block]) -> list[Block]:
        """Canonicalize a run of sibling blocks.

        A list that directly follows a list of the same kind takes the
        alternate marker, otherwise both would be read back as one list.
        """
        result: list[Block] = []
        alternate = False
        for block in blocks:
            if isinstance(block, List):
                previous = result[-1] if result else None
                alternate = (
                    isinstance(previous, List)
                    and previous.ordered == block.ordered
                    and not alternate
                )
                result.append(self.list_block(block, alternate))
            else:
                alternate = False
                result.append(self.block(block))
        return result

    def block(self, block: Block) -> Block:
        """Canonicalize a single block (and its descendants)."""
        if isinstance(block, Heading):
            return self.heading(block)
        if isinstance(block, List):
            return self.list_block(block)
        if isinstance(block, CodeBlock):
            return self.code_block(block)
        if isinstance(block, ThematicBreak):
            return self.thematic_break(block)
        if isinstance(block, (BlockQuote, ListItem)):
            return replace(block, children=self.blocks(block.children))
        if isinstance(block, (Paragraph, Table, HtmlBlock, LinkDefinition, VerbatimRegion)):
            return block
        raise unhandled(block)

    def heading(self, heading: Heading) -> Heading:
        """Choose Setext or ATX presentation for a heading."""
        setext = (heading.level == 1 and self.options.setext_h1) or (
            heading.level == 2 and self.options.setext_h2
        )
        if not heading.children:
            # An empty heading has no text to underline
            setext = False
        style = HeadingStyle.SETEXT if setext else HeadingStyle.ATX
        return replace(heading, style=style)

    def list_block(self, lst: List, alternate: bool = False) -> List:
        """Assign markers and continuation indentation to every item."""
        if lst.ordered:
            markers, indent = self._ordered_markers(lst, alternate)
        else:
            markers, indent = self._unordered_markers(lst, alternate)
        items = [
            replace(
                item,
                children=self.blocks(item.children),
                marker=marker,
                indent=indent,
            )
            for item, marker in zip(lst.items, markers)
        ]
        return replace(lst, items=items)

    def _unordered_markers(self, lst: List, alternate: bool) -> tuple[list[str], int]:
        opts = self.options
        bullet = opts.unordered_marker
        if alternate:
            bullet = ALTERNATE_BULLETS[bullet]
        marker = " " * opts.leading_spaces + bullet + " " * opts.trailing_spaces
        indent = max(opts.indent_width, opts.unordered_marker_width)
        return [marker] * len(lst.items), indent

    def _ordered_markers(self, lst: List, alternate: bool) -> tuple[list[str], int]:
        opts = self.options
        delimiter = opts.odd_level_marker if lst.depth % 2 == 1 else opts.even_level_marker
        if alternate:
            delimiter = ALTERNATE_DELIMITERS[delimiter]
        labels = [f"{lst.start + index}{delimiter}" for index in range(len(lst.items))]
        widest = max((len(label) for label in labels), default=2)
        if opts.ordered_list_pad == "start":
            padded = [label.rjust(widest) for label in labels]
        else:
            padded = [label.ljust(widest) for label in labels]
        # Between 1 and 4 spaces may follow the widest marker
        indent = min(max(opts.ordered_list_indent_width, widest + 1), widest + 4)
        return [label + " " * (indent - widest) for label in padded], indent

    def code_block(self, code: CodeBlock) -> CodeBlock:
        """Pick the fence character, fence length and language tag."""
        language = code.language or self.options.default_language or None
        char = self.options.fence_char
        if char == "`" and language and "`" in language:
            char = "~"
        length = max(self.options.min_fence_length, _longest_fence_run(code.lines, char) + 1)
        return replace(code, fence_char=char, fence_length=length, language=language)

    def thematic_break(self, rule: ThematicBreak) -> ThematicBreak:
        """Replace the rule with the configured style."""
        marker = " " * self.options.thematic_break_leading_spaces + self.options.thematic_break_style
        return replace(rule, marker=marker)


def _longest_fence_run(lines: list[str], char: str) -> int:
    """Longest run of ``char`` that opens a content line (0 when none)."""
    pattern = re.compile(rf"^[ \t]*({re.escape(char)}{{3,}})")
    longest = 0
    for line in lines:
        match = pattern.match(line)
        if match:
            longest = max(longest, len(match.group(1)))
    return longest

