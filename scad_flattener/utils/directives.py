"""Pure text processing for OpenSCAD source lines - no file I/O.

Recognises the line shapes the classifier cares about: reference
directives, customizer headers, comments, declaration headers and
variable assignments. Nothing here understands OpenSCAD expressions;
brace and bracket counting is only precise enough to find block ends.
"""

import re
from re import Pattern

# include <path> / use <path>, optional trailing ';' and line comment
DIRECTIVE_PATTERN: Pattern = re.compile(r"^\s*(include|use)\s*<([^>]+)>\s*;?\s*(//.*)?$")

# /* [Label] */ with the closing token optional
CUSTOMIZER_HEADER_PATTERN: Pattern = re.compile(r"^\s*/\*\s*\[([^\[\]]*)\]\s*(\*/)?\s*$")

MODULE_HEADER_PATTERN: Pattern = re.compile(r"^\s*module\s+([A-Za-z_$][\w$]*)\s*\(")

FUNCTION_HEADER_PATTERN: Pattern = re.compile(r"^\s*function\s+([A-Za-z_$][\w$]*)\s*\(")

# name = value; // optional comment
ASSIGNMENT_PATTERN: Pattern = re.compile(r"^\s*([A-Za-z_$][\w$]*)\s*=(?!=)\s*(.*)$")

BLOCK_COMMENT_OPEN = "/*"
BLOCK_COMMENT_CLOSE = "*/"
LINE_COMMENT = "//"

_STRING_PATTERN: Pattern = re.compile(r'"(?:\\.|[^"\\])*"')

_OPENERS = "([{"
_CLOSERS = ")]}"


def parse_directive(line: str) -> tuple[str, str] | None:
    """Return ``(keyword, reference)`` for a directive line, else None.

    Examples:
        >>> parse_directive("include <lib/gears.scad>")
        ('include', 'lib/gears.scad')
        >>> parse_directive("use<shapes.scad>; // helpers")
        ('use', 'shapes.scad')
        >>> parse_directive("x = 1;") is None
        True
    """
    match = DIRECTIVE_PATTERN.match(line)
    if not match:
        return None
    return match.group(1), match.group(2).strip()


def parse_customizer_header(line: str) -> str | None:
    """Return the trimmed section label of a customizer header line, else None.

    Examples:
        >>> parse_customizer_header("/* [Box Size] */")
        'Box Size'
        >>> parse_customizer_header("/* plain comment */") is None
        True
        >>> parse_customizer_header("/* [ ] */") is None
        True
    """
    match = CUSTOMIZER_HEADER_PATTERN.match(line)
    if not match:
        return None
    label = match.group(1).strip()
    return label or None


def scan_section_names(lines: list[str]) -> list[str]:
    """Customizer section names declared at top level, first occurrence order, no repeats.

    Headers inside block comments, module bodies and other brace blocks are
    not section declarations and are skipped.
    """
    names: list[str] = []
    in_comment = False
    in_section = False
    depth = 0
    for line in lines:
        if in_comment:
            in_comment = comment_close_index(line) < 0
            continue

        header = parse_customizer_header(line) if depth == 0 else None
        if header is not None:
            if header not in names:
                names.append(header)
            in_section = True
            continue
        if in_section:
            in_section = not is_customizer_terminator(line)
            continue

        code = line
        if opens_block_comment(line):
            split = split_block_comment(line)
            if split is None:
                in_comment = depth == 0
                continue
            comment, code = split
            name = parse_customizer_header(comment) if depth == 0 else None
            if name is not None and name not in names:
                names.append(name)
        depth = max(depth + brace_delta(code)[0], 0)
    return names


def is_customizer_terminator(line: str) -> bool:
    """A blank line, or a line holding only the comment-close token."""
    stripped = line.strip()
    return stripped == "" or stripped == BLOCK_COMMENT_CLOSE


def is_line_comment(line: str) -> bool:
    return line.lstrip().startswith(LINE_COMMENT)


def opens_block_comment(line: str) -> bool:
    return line.lstrip().startswith(BLOCK_COMMENT_OPEN)


def comment_close_index(line: str, start: int = 0) -> int:
    """Index just past the first ``*/`` at or after ``start``, or -1."""
    end = line.find(BLOCK_COMMENT_CLOSE, start)
    return end + len(BLOCK_COMMENT_CLOSE) if end >= 0 else -1


def split_block_comment(line: str) -> tuple[str, str] | None:
    """Split a line opening a block comment into the comment and the code after it.

    Returns None when the comment stays open past the end of the line.

    Examples:
        >>> split_block_comment("/* note */ x = 1;")
        ('/* note */', ' x = 1;')
        >>> split_block_comment("/*/ still open") is None
        True
    """
    start = line.find(BLOCK_COMMENT_OPEN)
    if start < 0:
        return None
    end = comment_close_index(line, start + len(BLOCK_COMMENT_OPEN))
    if end < 0:
        return None
    return line[:end], line[end:]


def parse_declaration(line: str) -> tuple[str, str] | None:
    """Return ``("module" | "function", name)`` for a declaration header, else None.

    Examples:
        >>> parse_declaration("module box(size = 10) {")
        ('module', 'box')
        >>> parse_declaration("function half(x) = x / 2;")
        ('function', 'half')
    """
    match = MODULE_HEADER_PATTERN.match(line)
    if match:
        return "module", match.group(1)
    match = FUNCTION_HEADER_PATTERN.match(line)
    if match:
        return "function", match.group(1)
    return None


def parse_assignment(line: str) -> tuple[str, str] | None:
    """Return ``(name, value)`` for a complete single-line assignment, else None.

    The value excludes the terminating ``;`` and any trailing line comment.

    Examples:
        >>> parse_assignment("width = 20; // [10:100]")
        ('width', '20')
        >>> parse_assignment("points = [") is None
        True
    """
    match = ASSIGNMENT_PATTERN.match(line)
    if not match:
        return None
    code = remove_line_comment(match.group(2)).rstrip()
    if not strip_code(code).rstrip().endswith(";") or bracket_balance(code) != 0:
        return None
    return match.group(1), code[:-1].strip()


def starts_assignment(line: str) -> bool:
    """True when the line opens an assignment, complete or not."""
    return ASSIGNMENT_PATTERN.match(line) is not None


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def remove_line_comment(line: str) -> str:
    """Drop a trailing ``//`` comment, keeping string literals intact."""
    masked = _STRING_PATTERN.sub(lambda m: '"' + " " * (len(m.group()) - 2) + '"', line)
    comment_at = masked.find(LINE_COMMENT)
    if comment_at >= 0:
        return line[:comment_at]
    return line


def strip_code(line: str) -> str:
    """Drop string literals and a trailing ``//`` comment from a line of code."""
    without_strings = _STRING_PATTERN.sub('""', line)
    comment_at = without_strings.find(LINE_COMMENT)
    if comment_at >= 0:
        without_strings = without_strings[:comment_at]
    return without_strings


def brace_delta(line: str) -> tuple[int, bool]:
    """Return the net ``{``/``}`` count of a line and whether it had any braces.

    Braces inside string literals and line comments are ignored.

    Examples:
        >>> brace_delta('module m() { if (x) { a(); }')
        (1, True)
        >>> brace_delta('echo("{"); // }')
        (0, False)
    """
    code = strip_code(line)
    opened = code.count("{")
    closed = code.count("}")
    return opened - closed, bool(opened or closed)


def bracket_balance(text: str) -> int:
    """Net count of opening minus closing ``()[]{}`` characters outside strings and comments."""
    balance = 0
    for line in text.splitlines() or [text]:
        code = strip_code(line)
        balance += sum(code.count(c) for c in _OPENERS)
        balance -= sum(code.count(c) for c in _CLOSERS)
    return balance


def ends_statement(text: str) -> bool:
    """True when buffered code has balanced brackets and ends with ``;`` or ``}``."""
    if bracket_balance(text) > 0:
        return False
    lines = [strip_code(line).rstrip() for line in text.splitlines()]
    code_lines = [line for line in lines if line]
    if not code_lines:
        return False
    return code_lines[-1].endswith((";", "}"))
