"""Inline Markdown parser.

Turns the text of a paragraph, heading or table cell into inline nodes.
Text nodes keep their backslash escapes so that rendering them again
reproduces the same tree.
"""

import re
from typing import Optional

from hongdown.formatting.ir import (
    CodeSpan,
    Emphasis,
    HardBreak,
    Image,
    Inline,
    Link,
    RawHtml,
    SoftBreak,
    Strong,
    Text,
)


ASCII_PUNCTUATION = frozenset("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")

AUTOLINK_PATTERN = re.compile(
    r"<(?:[A-Za-z][A-Za-z0-9+.-]{1,31}:[^\s<>]*"
    r"|[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*)>"
)
INLINE_HTML_PATTERN = re.compile(
    r"<(?:[A-Za-z][A-Za-z0-9-]*"
    r"(?:\s+[A-Za-z_:][\w.:-]*(?:\s*=\s*(?:[^\s\"'=<>`]+|'[^']*'|\"[^\"]*\"))?)*"
    r"\s*/?>"
    r"|/[A-Za-z][A-Za-z0-9-]*\s*>"
    r"|!--.*?-->"
    r"|\?.*?\?>"
    r"|![A-Za-z][^>]*>"
    r"|!\[CDATA\[.*?\]\]>)",
    re.DOTALL,
)


def _is_punctuation(ch: str) -> bool:
    return ch in ASCII_PUNCTUATION or (not ch.isalnum() and not ch.isspace())


class InlineParser:
    """Parse inline Markdown into a list of inline nodes."""

    def parse(self, text: str) -> list[Inline]:
        """Parse inline content.

        Args:
            text: Inline source; lines joined with ``\\n``

        Returns:
            Inline nodes in source order
        """
        return _InlineScanner(text.strip(" \t\n")).run()


class _InlineScanner:
    """Single-use cursor over one inline source string."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.nodes: list[Inline] = []
        self.buffer: list[str] = []

    # -- buffer handling -----------------------------------------------------

    def _flush(self) -> None:
        if self.buffer:
            self.nodes.append(Text("".join(self.buffer)))
            self.buffer = []

    def _emit(self, node: Inline) -> None:
        self._flush()
        self.nodes.append(node)

    def run(self) -> list[Inline]:
        text = self.text
        n = len(text)
        while self.pos < n:
            ch = text[self.pos]
            if ch == "\\":
                self._backslash()
            elif ch == "`":
                self._code_span()
            elif ch == "!" and text.startswith("[", self.pos + 1):
                if not self._link(image=True):
                    self.buffer.append("!")
                    self.pos += 1
            elif ch == "[":
                if not self._link(image=False):
                    self._literal_bracket()
            elif ch == "<":
                self._angle()
            elif ch in "*_":
                self._emphasis()
            elif ch == "\n":
                self._line_break()
            else:
                self.buffer.append(ch)
                self.pos += 1
        self._flush()
        return self.nodes

    # -- constructs ----------------------------------------------------------

    def _backslash(self) -> None:
        text = self.text
        nxt = text[self.pos + 1] if self.pos + 1 < len(text) else ""
        if nxt == "\n":
            self._emit(HardBreak())
            self.pos = self._skip_indent(self.pos + 2)
        elif nxt in ASCII_PUNCTUATION and nxt:
            self.buffer.append(text[self.pos : self.pos + 2])
            self.pos += 2
        else:
            self.buffer.append("\\")
            self.pos += 1

    def _skip_indent(self, pos: int) -> int:
        while pos < len(self.text) and self.text[pos] in " \t":
            pos += 1
        return pos

    def _line_break(self) -> None:
        trailing = 0
        while self.buffer and self.buffer[-1] in (" ", "\t"):
            trailing += 1
            self.buffer.pop()
        self._emit(HardBreak() if trailing >= 2 else SoftBreak())
        self.pos = self._skip_indent(self.pos + 1)

    def _code_span(self) -> None:
        text = self.text
        start = self.pos
        run = _run_length(text, start, "`")
        search = start + run
        while True:
            close = text.find("`" * run, search)
            if close == -1:
                # No matching run: the backticks are literal
                self.buffer.append("`" * run)
                self.pos = start + run
                return
            close_run = _run_length(text, close, "`")
            if close_run == run:
                break
            search = close + close_run
        raw = text[start : close + run].replace("\n", " ")
        self._emit(CodeSpan(raw))
        self.pos = close + run

    def _angle(self) -> None:
        text = self.text
        for pattern in (AUTOLINK_PATTERN, INLINE_HTML_PATTERN):
            match = pattern.match(text, self.pos)
            if match:
                self._emit(RawHtml(match.group(0).replace("\n", " ")))
                self.pos = match.end()
                return
        self.buffer.append("<")
        self.pos += 1

    def _literal_bracket(self) -> None:
        """Keep a ``[`` that does not open an inline link as plain text."""
        self.buffer.append("[")
        self.pos += 1

    def _find_label_end(self, start: int) -> int:
        """Index of the ``]`` matching the ``[`` at ``start``, or -1."""
        text = self.text
        depth = 0
        pos = start
        while pos < len(text):
            ch = text[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch == "`":
                run = _run_length(text, pos, "`")
                close = text.find("`" * run, pos + run)
                if close != -1:
                    pos = close + run
                    continue
                pos += run
                continue
            if ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    return pos
            pos += 1
        return -1

    def _link(self, image: bool) -> bool:
        text = self.text
        open_pos = self.pos + 1 if image else self.pos
        label_end = self._find_label_end(open_pos)
        if label_end == -1 or not text.startswith("(", label_end + 1):
            return False
        parsed = _parse_destination(text, label_end + 2)
        if parsed is None:
            return False
        destination, title, end = parsed
        label = text[open_pos + 1 : label_end]
        if image:
            node: Inline = Image(alt=label, destination=destination, title=title)
        else:
            node = Link(
                children=_InlineScanner(label).run(),
                destination=destination,
                title=title,
            )
        self._emit(node)
        self.pos = end
        return True

    def _emphasis(self) -> None:
        text = self.text
        start = self.pos
        char = text[start]
        run = _run_length(text, start, char)
        before = text[start - 1] if start > 0 else " "
        after = text[start + run] if start + run < len(text) else " "

        if not _can_open(char, before, after):
            self.buffer.append(char * run)
            self.pos = start + run
            return

        closer = self._find_closer(char, start + run)
        if closer is None:
            self.buffer.append(char * run)
            self.pos = start + run
            return
        close_pos, close_run = closer

        if run >= 3 and close_run >= 3:
            use = 3
        elif run >= 2 and close_run >= 2:
            use = 2
        else:
            use = 1

        # Surplus opening delimiters stay literal before the span
        if run > use:
            self.buffer.append(char * (run - use))
        inner = _InlineScanner(text[start + run : close_pos]).run()
        if use == 3:
            node: Inline = Strong([Emphasis(inner)])
        elif use == 2:
            node = Strong(inner)
        else:
            node = Emphasis(inner)
        self._emit(node)
        self.pos = close_pos + use

    def _find_closer(self, char: str, pos: int) -> Optional[tuple[int, int]]:
        text = self.text
        while pos < len(text):
            ch = text[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch == "`":
                run = _run_length(text, pos, "`")
                close = text.find("`" * run, pos + run)
                pos = close + run if close != -1 else pos + run
                continue
            if ch == "<":
                match = INLINE_HTML_PATTERN.match(text, pos) or AUTOLINK_PATTERN.match(text, pos)
                if match:
                    pos = match.end()
                    continue
            if ch == char:
                run = _run_length(text, pos, char)
                before = text[pos - 1]
                after = text[pos + run] if pos + run < len(text) else " "
                if _can_close(char, before, after):
                    return pos, run
                pos += run
                continue
            pos += 1
        return None


def _run_length(text: str, pos: int, char: str) -> int:
    end = pos
    while end < len(text) and text[end] == char:
        end += 1
    return end - pos


def _can_open(char: str, before: str, after: str) -> bool:
    """Left-flanking test for an emphasis delimiter run."""
    if after.isspace():
        return False
    left_flanking = not _is_punctuation(after) or before.isspace() or _is_punctuation(before)
    if not left_flanking:
        return False
    if char == "_":
        return not before.isalnum()
    return True


def _can_close(char: str, before: str, after: str) -> bool:
    """Right-flanking test for an emphasis delimiter run."""
    if before.isspace():
        return False
    right_flanking = not _is_punctuation(before) or after.isspace() or _is_punctuation(after)
    if not right_flanking:
        return False
    if char == "_":
        return not after.isalnum()
    return True


def _parse_destination(text: str, pos: int) -> Optional[tuple[str, Optional[str], int]]:
    """Parse ``destination "title")`` starting just after the ``(``.

    Returns:
        Tuple of (destination, title, index after the closing paren),
        or None when the text is not a valid inline link tail
    """
    n = len(text)
    pos = _skip_space(text, pos)
    if pos < n and text[pos] == "<":
        end = pos + 1
        while end < n and text[end] not in ">\n":
            end += 2 if text[end] == "\\" else 1
        if end >= n or text[end] != ">":
            return None
        destination = text[pos : end + 1]
        pos = end + 1
    else:
        depth = 0
        end = pos
        while end < n:
            ch = text[end]
            if ch == "\\" and end + 1 < n:
                end += 2
                continue
            if ch.isspace():
                break
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            end += 1
        destination = text[pos:end]
        pos = end

    title: Optional[str] = None
    after_space = _skip_space(text, pos)
    if after_space < n and after_space > pos and text[after_space] in "\"'(":
        opener = text[after_space]
        closer = ")" if opener == "(" else opener
        end = after_space + 1
        while end < n and text[end] != closer:
            end += 2 if text[end] == "\\" else 1
        if end >= n:
            return None
        title = text[after_space + 1 : end]
        pos = end + 1
    pos = _skip_space(text, pos)
    if pos >= n or text[pos] != ")":
        return None
    return destination, title, pos + 1


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\n":
        pos += 1
    return pos
