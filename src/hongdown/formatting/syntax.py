"""Line-level Markdown grammar shared by the scanner, parser and wrapper."""

import re
import unicodedata
from typing import Optional


TAB_STOP = 4

ATX_HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
ATX_CLOSING_PATTERN = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
SETEXT_UNDERLINE_PATTERN = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
THEMATIC_BREAK_LINE_PATTERN = re.compile(
    r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$"
)
FENCE_OPEN_PATTERN = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
BLOCK_QUOTE_PATTERN = re.compile(r"^ {0,3}>")
LIST_ITEM_PATTERN = re.compile(r"^( {0,3})([-+*]|\d{1,9}[.)])(?=[ \t]|$)")
TABLE_DELIMITER_CELL_PATTERN = re.compile(r"^[ \t]*:?-+:?[ \t]*$")
LINK_DEFINITION_PATTERN = re.compile(
    r"^ {0,3}\[((?:[^\]\\]|\\.)+)\]:[ \t]*(<[^>\n]*>|\S+)"
    r"(?:[ \t]+(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|\((?:[^()\\]|\\.)*\)))?[ \t]*$"
)
DIRECTIVE_PATTERN = re.compile(
    r"^<!--[ \t]*hongdown-(disable-file|disable-next-line|"
    r"disable-next-section|disable|enable)[ \t]*-->[ \t]*$"
)

HTML_BLOCK_TAGS = frozenset(
    """address article aside base basefont blockquote body caption center col
    colgroup dd details dialog dir div dl dt fieldset figcaption figure footer
    form frame frameset h1 h2 h3 h4 h5 h6 head header hr html iframe legend li
    link main menu menuitem nav noframes ol optgroup option p param search
    section summary table tbody td tfoot th thead title tr track ul""".split()
)
HTML_RAW_TAGS = ("script", "pre", "style", "textarea")
HTML_TAG_NAME_PATTERN = re.compile(r"^ {0,3}</?([A-Za-z][A-Za-z0-9-]*)(?=[\s/>]|$)")
HTML_COMPLETE_TAG_PATTERN = re.compile(
    r"^ {0,3}(?:<[A-Za-z][A-Za-z0-9-]*"
    r"(?:\s+[A-Za-z_:][\w.:-]*(?:\s*=\s*(?:[^\s\"'=<>`]+|'[^']*'|\"[^\"]*\"))?)*"
    r"\s*/?>|</[A-Za-z][A-Za-z0-9-]*\s*>)[ \t]*$"
)


def is_blank(line: str) -> bool:
    """Check whether a line contains only whitespace."""
    return not line.strip()


def indent_of(line: str, start: int = 0) -> int:
    """Columns of leading whitespace, with tab stops counted from ``start``."""
    column = start
    for ch in line:
        if ch == " ":
            column += 1
        elif ch == "\t":
            column += TAB_STOP - column % TAB_STOP
        else:
            break
    return column - start


def strip_columns(line: str, columns: int, start: int = 0) -> str:
    """Remove up to ``columns`` columns of leading whitespace.

    ``line`` begins at column ``start`` of the source line, which decides
    where its tab stops fall. A tab that straddles the boundary is split
    into the spaces left over.
    """
    column = 0
    index = 0
    while index < len(line) and column < columns:
        ch = line[index]
        if ch == " ":
            column += 1
        elif ch == "\t":
            width = TAB_STOP - (start + column) % TAB_STOP
            if column + width > columns:
                return " " * (column + width - columns) + line[index + 1 :]
            column += width
        else:
            break
        index += 1
    return line[index:]


def fence_opening(line: str) -> Optional[tuple[int, str, int, str]]:
    """Match a code fence opener.

    Returns:
        Tuple of (indent, fence character, fence length, info string),
        or None when the line does not open a fence
    """
    match = FENCE_OPEN_PATTERN.match(line)
    if not match:
        return None
    indent, fence, info = match.groups()
    char = fence[0]
    if char == "`" and "`" in info:
        return None
    return len(indent), char, len(fence), info.strip()


def is_fence_closing(line: str, char: str, length: int) -> bool:
    """Check whether a line closes a fence of the given character and length."""
    if indent_of(line) > 3:
        return False
    stripped = line.strip()
    if len(stripped) < length:
        return False
    return stripped == char * len(stripped)


def fenced_lines(lines: list[str]) -> list[bool]:
    """Flag every line that belongs to a fenced code block, fences included."""
    flags = [False] * len(lines)
    fence: Optional[tuple[str, int]] = None
    for index, line in enumerate(lines):
        if fence is not None:
            flags[index] = True
            if is_fence_closing(line, *fence):
                fence = None
            continue
        opening = fence_opening(line)
        if opening is not None:
            flags[index] = True
            fence = (opening[1], opening[2])
    return flags


def is_atx_heading(line: str) -> bool:
    """Check whether a line is an ATX heading."""
    return ATX_HEADING_PATTERN.match(line) is not None


def is_thematic_break(line: str) -> bool:
    """Check whether a line is a thematic break."""
    return THEMATIC_BREAK_LINE_PATTERN.match(line) is not None


def setext_level(line: str) -> int:
    """Heading level of a Setext underline, or 0 when not an underline."""
    match = SETEXT_UNDERLINE_PATTERN.match(line)
    if not match:
        return 0
    return 1 if match.group(1).startswith("=") else 2


def html_block_kind(line: str) -> int:
    """CommonMark HTML block start condition (1-7), or 0 when none applies."""
    stripped = line.lstrip(" ")
    if indent_of(line) > 3 or not stripped.startswith("<"):
        return 0
    lowered = stripped.lower()
    for tag in HTML_RAW_TAGS:
        if lowered.startswith("<" + tag) and (
            len(lowered) == len(tag) + 1 or lowered[len(tag) + 1] in " \t>"
        ):
            return 1
    if stripped.startswith("<!--"):
        return 2
    if stripped.startswith("<?"):
        return 3
    if stripped.startswith("<![CDATA["):
        return 5
    if len(stripped) > 2 and stripped[1] == "!" and stripped[2].isalpha():
        return 4
    match = HTML_TAG_NAME_PATTERN.match(line)
    if match and match.group(1).lower() in HTML_BLOCK_TAGS:
        return 6
    if HTML_COMPLETE_TAG_PATTERN.match(line):
        return 7
    return 0


def html_block_ends(kind: int, line: str) -> bool:
    """Check whether a line ends an HTML block of start condition 1-5."""
    lowered = line.lower()
    if kind == 1:
        return any(f"</{tag}>" in lowered for tag in HTML_RAW_TAGS)
    if kind == 2:
        return "-->" in line
    if kind == 3:
        return "?>" in line
    if kind == 4:
        return ">" in line
    if kind == 5:
        return "]]>" in line
    return False


def list_marker(line: str) -> Optional[tuple[int, str, int]]:
    """Match a list item marker.

    Returns:
        Tuple of (marker indent, marker text, content column), or None
    """
    match = LIST_ITEM_PATTERN.match(line)
    if not match:
        return None
    indent, marker = match.groups()
    marker_end = len(indent) + len(marker)
    rest = line[marker_end:]
    if is_blank(rest):
        return len(indent), marker, marker_end + 1
    spaces = indent_of(rest, marker_end)
    if spaces > 4:
        # Content starting with 5+ spaces is an indented code block
        spaces = 1
    return len(indent), marker, marker_end + spaces


def interrupts_paragraph(line: str) -> bool:
    """Check whether a line starts a block that can interrupt a paragraph."""
    if indent_of(line) > 3:
        return False
    if is_atx_heading(line) or is_thematic_break(line):
        return True
    if fence_opening(line) is not None or BLOCK_QUOTE_PATTERN.match(line):
        return True
    if 1 <= html_block_kind(line) <= 6:
        return True
    marker = list_marker(line)
    if marker is not None:
        _, text, column = marker
        if is_blank(line[column:] if column <= len(line) else ""):
            return False
        return not text[0].isdigit() or int(text[:-1]) == 1
    return False


def split_table_row(line: str) -> list[str]:
    """Split a pipe table row into raw cell strings.

    Escaped pipes stay inside their cell; leading and trailing pipes are
    optional.
    """
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(row):
        ch = row[index]
        if ch == "\\" and index + 1 < len(row):
            current.append(row[index : index + 2])
            index += 2
            continue
        if ch == "|":
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        index += 1
    cells.append("".join(current).strip())
    return cells


def has_unescaped_pipe(line: str) -> bool:
    """Check whether a line contains a pipe that is not backslash-escaped."""
    return re.search(r"(?<!\\)\|", line) is not None


def is_table_delimiter(line: str) -> bool:
    """Check whether a line is a table delimiter row."""
    if "-" not in line or indent_of(line) > 3:
        return False
    if not has_unescaped_pipe(line) and ":" not in line:
        return False
    cells = split_table_row(line)
    return all(TABLE_DELIMITER_CELL_PATTERN.match(cell) for cell in cells)


def char_width(ch: str) -> int:
    """Display width of a single character."""
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def display_width(text: str) -> int:
    """Display width of a string, counting wide East Asian characters as 2."""
    return sum(char_width(ch) for ch in text)
