"""Parse the ``Name: value`` pairs already written inside a composite literal."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from struct_autofill.core.ports.buffer import TextBuffer
from struct_autofill.models import BraceRange

logger = logging.getLogger(__name__)

_FIELD_START = re.compile(r"(?P<name>[A-Za-z_]\w*)[ \t]*:(?!=)")
_OPENERS = "{(["
_CLOSERS = "})]"


class ScanState(Enum):
    NORMAL = "normal"
    IN_STRING = "in_string"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


@dataclass(frozen=True)
class FieldSpan:
    name: str
    value: str


def skip_blank(text: str, index: int) -> int:
    """Advance past whitespace and comments."""
    length = len(text)
    while index < length:
        if text[index].isspace():
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline + 1
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
        else:
            break
    return index


def _starts_field(text: str, index: int) -> bool:
    return _FIELD_START.match(text, index) is not None


def scan_value(text: str, start: int) -> tuple[int, int]:
    """Scan one value starting at ``start``.

    Returns ``(value_end, next_index)``. The value ends at a top-level comma, or at a
    top-level newline when the next code is another ``name:`` or the end of the body.
    """
    state = ScanState.NORMAL
    quote = ""
    depth = 0
    comment_at: int | None = None
    length = len(text)
    i = start
    while i < length:
        ch = text[i]
        if state is ScanState.IN_STRING:
            if ch == "\\" and quote != "`":
                i += 2
                continue
            if ch == quote or (ch == "\n" and quote != "`"):
                state = ScanState.NORMAL
            i += 1
            continue
        if state is ScanState.BLOCK_COMMENT:
            if text.startswith("*/", i):
                state = ScanState.NORMAL
                i += 2
            else:
                i += 1
            continue
        if state is ScanState.LINE_COMMENT:
            if ch != "\n":
                i += 1
                continue
            state = ScanState.NORMAL

        if ch in "\"'`":
            state = ScanState.IN_STRING
            quote = ch
        elif text.startswith("//", i):
            state = ScanState.LINE_COMMENT
            if depth == 0 and comment_at is None:
                comment_at = i
            i += 2
            continue
        elif text.startswith("/*", i):
            state = ScanState.BLOCK_COMMENT
            i += 2
            continue
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            return i, i + 1
        elif ch == "\n" and depth == 0:
            following = skip_blank(text, i)
            if following >= length or _starts_field(text, following):
                return (comment_at if comment_at is not None else i), i + 1
            comment_at = None
        i += 1
    return (comment_at if comment_at is not None else length), length


def scan_field(text: str, index: int) -> tuple[int, FieldSpan | None]:
    """Scan the next comma/newline separated entry at or after ``index``.

    Returns the index to continue from and the field found there, or None when the
    entry is not a ``name: value`` pair (or the body is exhausted).
    """
    length = len(text)
    while True:
        index = skip_blank(text, index)
        if index < length and text[index] == ",":
            index += 1
            continue
        break
    if index >= length:
        return length, None

    match = _FIELD_START.match(text, index)
    if match is None:
        _, next_index = scan_value(text, index)
        return max(next_index, index + 1), None

    value_start = match.end()
    value_end, next_index = scan_value(text, value_start)
    value = text[value_start:value_end].strip().rstrip(",").rstrip()
    return next_index, FieldSpan(match.group("name"), value)


def extract_fields(body: str) -> dict[str, str]:
    """Map each field name in ``body`` to its raw value text, last occurrence winning."""
    fields: dict[str, str] = {}
    index = 0
    while index < len(body):
        index, span = scan_field(body, index)
        if span is None:
            continue
        if span.name in fields:
            logger.debug("Field %s appears more than once; keeping the last value", span.name)
            del fields[span.name]
        fields[span.name] = span.value
    return fields


def parse_existing_fields(buffer: TextBuffer, brace_range: BraceRange) -> dict[str, str]:
    body = buffer.get_text(brace_range.body_start, brace_range.body_end)
    return extract_fields(body)

