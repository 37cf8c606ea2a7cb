"""Formatting directives embedded in HTML comments.

Directive comments count only at column 0, outside any list item or block
quote. The scanner walks the raw source once and splits it into line spans that
are either formatted normally or reproduced byte-for-byte::

    <!-- hongdown-disable-file -->          the whole document
    <!-- hongdown-disable-next-line -->     the following block
    <!-- hongdown-disable-next-section -->  everything up to the next heading
    <!-- hongdown-disable -->               everything up to hongdown-enable
    <!-- hongdown-enable -->                back to normal formatting
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hongdown.formatting.syntax import (
    BLOCK_QUOTE_PATTERN,
    DIRECTIVE_PATTERN,
    fence_opening,
    fenced_lines,
    html_block_ends,
    html_block_kind,
    is_atx_heading,
    is_blank,
    is_fence_closing,
    list_marker,
    setext_level,
)

logger = logging.getLogger(__name__)


class Directive(str, Enum):
    """Directive keywords recognized after the ``hongdown-`` prefix."""

    DISABLE_FILE = "disable-file"
    DISABLE_NEXT_LINE = "disable-next-line"
    DISABLE_NEXT_SECTION = "disable-next-section"
    DISABLE = "disable"
    ENABLE = "enable"


class ScanState(str, Enum):
    """States of the directive scanner."""

    ENABLED = "enabled"
    DISABLED_UNTIL_NEXT_BLOCK = "disabled-until-next-block"
    DISABLED_UNTIL_NEXT_HEADING = "disabled-until-next-heading"
    DISABLED_OPEN = "disabled-open"


@dataclass(frozen=True)
class DirectiveSpan:
    """A run of source lines that is either formatted or left verbatim.

    Attributes:
        start: Index of the first line (0-based)
        end: Index one past the last line
        enabled: Whether formatting applies to these lines
    """

    start: int
    end: int
    enabled: bool


def parse_directive(line: str) -> Optional[Directive]:
    """Return the directive a line consists of, if any."""
    match = DIRECTIVE_PATTERN.match(line.rstrip("\r\n"))
    if not match:
        return None
    return Directive(match.group(1))


def block_end(lines: list[str], start: int) -> int:
    """Index one past the block that begins at ``start``.

    A block runs to the next blank line, except a fenced code block (which
    runs to its closing fence) and an HTML block with an explicit end
    condition (which runs to the line satisfying it).
    """
    n = len(lines)
    opening = fence_opening(lines[start])
    if opening is not None:
        _, char, length, _ = opening
        for index in range(start + 1, n):
            if is_fence_closing(lines[index], char, length):
                return index + 1
        return n
    kind = html_block_kind(lines[start])
    if 1 <= kind <= 5:
        for index in range(start, n):
            if html_block_ends(kind, lines[index]):
                return index + 1
        return n
    index = start
    while index < n and not is_blank(lines[index]):
        index += 1
    return index


def _is_underline_candidate(line: str) -> bool:
    return (
        not is_blank(line)
        and list_marker(line) is None
        and not BLOCK_QUOTE_PATTERN.match(line)
        and fence_opening(line) is None
    )


def is_heading_start(lines: list[str], index: int, fenced: list[bool]) -> bool:
    """Check whether a heading (ATX or Setext text) begins at ``index``."""
    if fenced[index] or is_blank(lines[index]):
        return False
    if is_atx_heading(lines[index]):
        return True
    if index > 0 and not is_blank(lines[index - 1]):
        return False
    # Setext: a paragraph whose last line is followed by an underline
    cursor = index
    while cursor + 1 < len(lines) and _is_underline_candidate(lines[cursor]):
        if setext_level(lines[cursor + 1]):
            return True
        cursor += 1
    return False


def _append(spans: list[DirectiveSpan], start: int, end: int, enabled: bool) -> None:
    if end <= start:
        return
    if spans and spans[-1].enabled == enabled and spans[-1].end == start:
        spans[-1] = DirectiveSpan(spans[-1].start, end, enabled)
    else:
        spans.append(DirectiveSpan(start, end, enabled))


def _trim_blank_edges(lines: list[str], spans: list[DirectiveSpan]) -> list[DirectiveSpan]:
    """Hand blank lines at the edges of disabled spans to enabled spans."""
    trimmed: list[DirectiveSpan] = []
    for span in spans:
        if span.enabled:
            _append(trimmed, span.start, span.end, True)
            continue
        start, end = span.start, span.end
        while start < end and is_blank(lines[start]):
            start += 1
        while end > start and is_blank(lines[end - 1]):
            end -= 1
        _append(trimmed, span.start, start, True)
        _append(trimmed, start, end, False)
        _append(trimmed, end, span.end, True)
    return trimmed


def scan_lines(lines: list[str]) -> list[DirectiveSpan]:
    """Compute the enabled/disabled spans of a document split into lines.

    Args:
        lines: Source lines, with or without line endings

    Returns:
        Ordered spans covering every line exactly once
    """
    n = len(lines)
    if n == 0:
        return []

    bare = [line.rstrip("\r\n") for line in lines]
    fenced = fenced_lines(bare)
    directives = [
        None if fenced[index] else parse_directive(line)
        for index, line in enumerate(bare)
    ]

    if Directive.DISABLE_FILE in directives:
        logger.debug("hongdown-disable-file found; document left verbatim")
        return _trim_blank_edges(lines, [DirectiveSpan(0, n, False)])

    spans: list[DirectiveSpan] = []
    state = ScanState.ENABLED
    segment_start = 0
    region_end: Optional[int] = None
    consumed = False
    index = 0

    while index < n:
        directive = directives[index]

        if state is ScanState.ENABLED:
            next_state = {
                Directive.DISABLE: ScanState.DISABLED_OPEN,
                Directive.DISABLE_NEXT_LINE: ScanState.DISABLED_UNTIL_NEXT_BLOCK,
                Directive.DISABLE_NEXT_SECTION: ScanState.DISABLED_UNTIL_NEXT_HEADING,
            }.get(directive)
            if next_state is not None:
                _append(spans, segment_start, index + 1, True)
                segment_start = index + 1
                state = next_state
                region_end = None
                consumed = False
            index += 1
            continue

        if directive is Directive.ENABLE:
            _append(spans, segment_start, index, False)
            segment_start = index
            state = ScanState.ENABLED
            continue

        if state is ScanState.DISABLED_UNTIL_NEXT_BLOCK:
            if region_end is None and not is_blank(bare[index]):
                region_end = block_end(bare, index)
            if region_end is not None and index >= region_end:
                _append(spans, segment_start, index, False)
                segment_start = index
                state = ScanState.ENABLED
                continue
        elif state is ScanState.DISABLED_UNTIL_NEXT_HEADING:
            if consumed and is_heading_start(bare, index, fenced):
                _append(spans, segment_start, index, False)
                segment_start = index
                state = ScanState.ENABLED
                continue
            if not is_blank(bare[index]):
                consumed = True

        index += 1

    _append(spans, segment_start, n, state is ScanState.ENABLED)
    spans = _trim_blank_edges(lines, spans)
    for span in spans:
        if not span.enabled:
            logger.debug("Lines %d-%d left verbatim", span.start + 1, span.end)
    return spans


def scan_directives(text: str) -> list[DirectiveSpan]:
    """Compute the enabled/disabled line spans of ``text``."""
    return scan_lines(text.splitlines(keepends=True))
