"""Brace matching over a text buffer that ignores quoted spans and comments."""

import logging
from collections.abc import Iterator, Sequence

from struct_autofill.config import MAX_SCAN_LINES
from struct_autofill.core.ports.buffer import TextBuffer
from struct_autofill.models import BraceRange, Position

logger = logging.getLogger(__name__)

_QUOTES = "\"'`"


def iter_code_chars(
    lines: Sequence[str], first_line: int = 0, keep_strings: bool = False
) -> Iterator[tuple[int, int, str]]:
    """Yield ``(line, column, char)`` for every character outside strings and comments.

    Lexing starts in the normal state at the first line. Interpreted strings end at
    the end of their line, raw (backquoted) strings and block comments may span lines.
    With ``keep_strings`` quoted spans are yielded too, so only comments are dropped.
    """
    quote: str | None = None
    in_block_comment = False
    for offset, text in enumerate(lines):
        line = first_line + offset
        if quote in ('"', "'"):
            quote = None
        col = 0
        length = len(text)
        while col < length:
            ch = text[col]
            if in_block_comment:
                if text.startswith("*/", col):
                    in_block_comment = False
                    col += 2
                else:
                    col += 1
                continue
            if quote is not None:
                if ch == "\\" and quote != "`":
                    if keep_strings:
                        yield line, col, ch
                        if col + 1 < length:
                            yield line, col + 1, text[col + 1]
                    col += 2
                    continue
                if ch == quote:
                    quote = None
                if keep_strings:
                    yield line, col, ch
                col += 1
                continue
            if text.startswith("//", col):
                break
            if text.startswith("/*", col):
                in_block_comment = True
                col += 2
                continue
            if ch in _QUOTES:
                quote = ch
                if keep_strings:
                    yield line, col, ch
                col += 1
                continue
            yield line, col, ch
            col += 1


def _window(buffer: TextBuffer, first: int, last: int) -> list[str]:
    return [buffer.line_text(i) for i in range(first, last + 1)]


def _code_char_at(buffer: TextBuffer, position: Position) -> str | None:
    """Return the structural character at ``position``, or None if it is quoted/commented."""
    text = buffer.line_text(position.line)
    for _, col, ch in iter_code_chars([text], position.line):
        if col == position.column:
            return ch
        if col > position.column:
            break
    return None


def find_unmatched_open(buffer: TextBuffer, position: Position) -> Position | None:
    """Scan backward from ``position`` (exclusive) for the innermost unmatched ``{``."""
    if buffer.line_count() == 0:
        return None
    first = max(0, position.line - MAX_SCAN_LINES)
    lines = _window(buffer, first, position.line)
    braces = [
        (line, col, ch)
        for line, col, ch in iter_code_chars(lines, first)
        if ch in "{}" and (line, col) < (position.line, position.column)
    ]
    pending_close = 0
    for line, col, ch in reversed(braces):
        if ch == "}":
            pending_close += 1
        elif pending_close:
            pending_close -= 1
        else:
            return Position(line=line, column=col)
    logger.debug("No unmatched '{' within %d lines above %s", MAX_SCAN_LINES, position.as_tuple())
    return None


def find_matching_close(buffer: TextBuffer, open_brace: Position) -> Position | None:
    """Scan forward from an open brace until its depth returns to zero."""
    last = min(buffer.line_count() - 1, open_brace.line + MAX_SCAN_LINES)
    lines = _window(buffer, open_brace.line, last)
    # blank out everything before the brace so lexing starts in the normal state there
    lines[0] = " " * open_brace.column + lines[0][open_brace.column :]
    depth = 0
    for line, col, ch in iter_code_chars(lines, open_brace.line):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return Position(line=line, column=col)
    logger.debug("No matching '}' within %d lines below %s", MAX_SCAN_LINES, open_brace.as_tuple())
    return None


def range_from_open(buffer: TextBuffer, open_brace: Position) -> BraceRange | None:
    close = find_matching_close(buffer, open_brace)
    if close is None:
        return None
    return BraceRange(
        open_line=open_brace.line,
        open_column=open_brace.column,
        close_line=close.line,
        close_column=close.column,
    )


def find_enclosing_brace(buffer: TextBuffer, position: Position) -> BraceRange | None:
    """Find the brace pair enclosing ``position``.

    A cursor sitting on an opening brace, or right after a closing brace, is treated
    as belonging to that literal.
    """
    if buffer.line_count() == 0 or position.line >= buffer.line_count():
        return None

    line_length = len(buffer.line_text(position.line))
    if position.column < line_length and _code_char_at(buffer, position) == "{":
        return range_from_open(buffer, position)
    if 0 < position.column <= line_length:
        before = Position(line=position.line, column=position.column - 1)
        if _code_char_at(buffer, before) == "}":
            open_brace = find_unmatched_open(buffer, before)
            if open_brace is not None:
                return range_from_open(buffer, open_brace)

    open_brace = find_unmatched_open(buffer, position)
    if open_brace is None:
        return None
    brace_range = range_from_open(buffer, open_brace)
    if brace_range is None:
        return None
    if brace_range.close.as_tuple() < position.as_tuple():
        return None
    return brace_range


def same_line_range(buffer: TextBuffer, line: int) -> BraceRange | None:
    """Degraded-mode range: the first ``{`` on ``line`` whose ``}`` is on the same line."""
    text = buffer.line_text(line)
    opens: list[int] = []
    for _, col, ch in iter_code_chars([text], line):
        if ch == "{":
            opens.append(col)
        elif ch == "}" and opens:
            open_col = opens.pop()
            if not opens:
                return BraceRange(open_line=line, open_column=open_col, close_line=line, close_column=col)
    return None
