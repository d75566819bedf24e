"""Decide what role a composite literal plays and which type it instantiates.

Classification looks only at the text in front of the literal's ``{``. The rules in
``CONTEXT_RULES`` are tried in order; each one is an independent pattern anchored to
the end of that text, so a rule can be tested (and reordered) on its own.
"""

import logging
import re
from dataclasses import dataclass

from struct_autofill.config import MAX_CONTEXT_LINES, MAX_FALLBACK_LINES, MAX_LOOKBACK_LINES
from struct_autofill.core.braces import (
    find_enclosing_brace,
    find_unmatched_open,
    iter_code_chars,
    range_from_open,
    same_line_range,
)
from struct_autofill.core.ports.buffer import TextBuffer
from struct_autofill.models import BraceRange, LiteralContext, LiteralRole, Position

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_]\w*"
# type arguments (`List[int]`) are matched but left out of the captured name
_TYPE = rf"(?P<type>{_IDENT}(?:\.{_IDENT})?)(?:\[[^\[\]]*\])?"
_MAP_KEY = r"map\s*\[(?:[^\[\]]|\[[^\[\]]*\])*\]"
_ARGS = r"(?:[^()]|\([^()]*\))*"

GO_KEYWORDS = frozenset(
    {
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
    }
)


@dataclass(frozen=True)
class ContextRule:
    role: LiteralRole
    pattern: re.Pattern[str]
    nested: bool = False

    def match(self, text: str) -> LiteralContext | None:
        m = self.pattern.search(text)
        if m is None:
            return None
        type_name = m.group("type")
        if not _is_type_name(type_name):
            return None
        return LiteralContext(type_name=type_name, role=self.role, is_nested=self.nested)


CONTEXT_RULES: tuple[ContextRule, ...] = (
    ContextRule(
        LiteralRole.NESTED_FIELD,
        re.compile(rf"(?:^|[\s{{,(]){_IDENT}\s*:\s*&?{_TYPE}\s*$"),
        nested=True,
    ),
    ContextRule(LiteralRole.SLICE_ELEMENT, re.compile(rf"(?<!map)\[[^\[\]]*\]\s*\*?{_TYPE}\s*\{{\s*$")),
    ContextRule(LiteralRole.MAP_VALUE, re.compile(rf"{_MAP_KEY}\s*\*?{_TYPE}\s*\{{\s*$")),
    ContextRule(LiteralRole.MAP_VALUE, re.compile(rf"[\"'`][^\"'`]*[\"'`]\s*:\s*&?{_TYPE}\s*$")),
    ContextRule(LiteralRole.APPEND_ARGUMENT, re.compile(rf"\bappend\s*\({_ARGS},\s*&?{_TYPE}\s*$")),
    ContextRule(LiteralRole.FUNCTION_ARGUMENT, re.compile(rf"[\w.]+\s*\((?:{_ARGS},)?\s*&?{_TYPE}\s*$")),
    ContextRule(
        LiteralRole.ASSIGNMENT,
        re.compile(rf"(?:\bvar\s+)?{_IDENT}(?:\s*,\s*{_IDENT})*(?:\s+[\w.*\[\]]+)?\s*(?::=|=)\s*&?{_TYPE}\s*$"),
    ),
    ContextRule(LiteralRole.ASSIGNMENT, re.compile(rf"\breturn\s+(?:.*,\s*)?&?{_TYPE}\s*$")),
)

_BARE_TYPE = re.compile(rf"(?:^|(?<=[\s{{,(]))&?{_TYPE}\s*$")
_SLICE_CONTAINER = re.compile(rf"(?<!map)\[[^\[\]]*\]\s*\*?{_TYPE}\s*$")
_MAP_CONTAINER = re.compile(rf"{_MAP_KEY}\s*\*?{_TYPE}\s*$")
_CALL_OPENER = re.compile(r"(?P<callee>[\w.]+)\s*$")
_BARE_OPENERS = ("{", ",", "(")


def _is_type_name(name: str) -> bool:
    return all(part not in GO_KEYWORDS for part in name.split("."))


def preceding_text(buffer: TextBuffer, open_brace: Position, max_lines: int = MAX_CONTEXT_LINES) -> str:
    """Text in front of the brace on its line, widened to earlier lines when that is blank."""
    text = buffer.line_text(open_brace.line)[: open_brace.column]
    if text.strip():
        return text
    first = max(0, open_brace.line - max_lines)
    parts = [buffer.line_text(i) for i in range(first, open_brace.line)]
    parts.append(text)
    return "\n".join(parts)


def _strip_comments(text: str) -> str:
    lines = text.split("\n")
    kept: list[list[str]] = [[] for _ in lines]
    for line, _, ch in iter_code_chars(lines, keep_strings=True):
        kept[line].append(ch)
    return "\n".join("".join(chars) for chars in kept)


def match_rules(text: str) -> LiteralContext | None:
    for rule in CONTEXT_RULES:
        context = rule.match(text)
        if context is not None:
            return context
    return None


def _container_element(buffer: TextBuffer, container: Position) -> tuple[LiteralRole, str] | None:
    """Element type of a slice/array/map literal that opens at ``container``."""
    text = _strip_comments(preceding_text(buffer, container)).rstrip()
    m = _MAP_CONTAINER.search(text)
    if m is not None and _is_type_name(m.group("type")):
        return LiteralRole.MAP_VALUE, m.group("type")
    m = _SLICE_CONTAINER.search(text)
    if m is not None and _is_type_name(m.group("type")):
        return LiteralRole.SLICE_ELEMENT, m.group("type")
    return None


def _classify_elided(buffer: TextBuffer, open_brace: Position) -> LiteralContext | None:
    container = find_unmatched_open(buffer, open_brace)
    if container is None:
        return None
    element = _container_element(buffer, container)
    if element is None:
        logger.debug("Brace at %s has no type and no typed container", open_brace.as_tuple())
        return None
    role, type_name = element
    return LiteralContext(type_name=type_name, role=role)


def _lookback_role(buffer: TextBuffer, open_brace: Position) -> LiteralRole:
    """Explain a bare type name by the innermost unclosed bracket above it."""
    first = max(0, open_brace.line - MAX_LOOKBACK_LINES)
    lines = [buffer.line_text(i) for i in range(first, open_brace.line + 1)]
    lines[-1] = lines[-1][: open_brace.column]
    chars = list(iter_code_chars(lines, first))
    depth = 0
    for index in range(len(chars) - 1, -1, -1):
        line, col, ch = chars[index]
        if ch in ")]}":
            depth += 1
        elif ch in "([{":
            if depth:
                depth -= 1
                continue
            if ch == "{":
                element = _container_element(buffer, Position(line=line, column=col))
                return element[0] if element is not None else LiteralRole.ASSIGNMENT
            if ch == "(":
                before = "".join(c for _, _, c in chars[:index]).rstrip()
                m = _CALL_OPENER.search(before)
                if m is None:
                    return LiteralRole.ASSIGNMENT
                if m.group("callee") == "append":
                    return LiteralRole.APPEND_ARGUMENT
                if m.group("callee") not in GO_KEYWORDS:
                    return LiteralRole.FUNCTION_ARGUMENT
            return LiteralRole.ASSIGNMENT
    return LiteralRole.ASSIGNMENT


def classify(buffer: TextBuffer, open_brace: Position) -> LiteralContext | None:
    """Classify the literal opening at ``open_brace``, or return None."""
    text = _strip_comments(preceding_text(buffer, open_brace))
    stripped = text.rstrip()
    if not stripped or stripped.endswith(("{", ",")) or (stripped.endswith(":") and not stripped.endswith(":=")):
        # no type in front of the brace: an element whose type comes from its container
        context = match_rules(stripped) if stripped.endswith("{") else None
        return context or _classify_elided(buffer, open_brace)

    # the brace opening a []T{ or map[K]T{ container is not itself a record literal
    if _SLICE_CONTAINER.search(stripped) or _MAP_CONTAINER.search(stripped):
        logger.debug("Brace at %s opens a container literal", open_brace.as_tuple())
        return None

    context = match_rules(stripped)
    if context is not None:
        return context

    bare = _BARE_TYPE.search(stripped)
    if bare is None or not _is_type_name(bare.group("type")):
        return None
    before = stripped[: bare.start()].rstrip()
    if before and not before.endswith(_BARE_OPENERS):
        # `switch v {`, `x == y {` and friends are blocks, not literals
        return None
    role = _lookback_role(buffer, open_brace)
    return LiteralContext(type_name=bare.group("type"), role=role)


def classify_near_cursor(buffer: TextBuffer, position: Position) -> tuple[LiteralContext, BraceRange] | None:
    """Find and classify the literal around the cursor.

    Tries the innermost enclosing brace first, then the cursor's own line, then a
    wider backward scan over every brace that still contains the cursor.
    """
    if position.line >= buffer.line_count():
        return None
    brace_range = find_enclosing_brace(buffer, position)
    if brace_range is None:
        brace_range = same_line_range(buffer, position.line)
        if brace_range is not None:
            logger.debug("Using same-line literal on line %d", position.line)
    if brace_range is not None:
        context = classify(buffer, brace_range.open)
        if context is not None:
            return context, brace_range

    first = max(0, position.line - MAX_FALLBACK_LINES)
    lines = [buffer.line_text(i) for i in range(first, position.line + 1)]
    opens = [
        Position(line=line, column=col)
        for line, col, ch in iter_code_chars(lines, first)
        if ch == "{" and (line, col) < position.as_tuple()
    ]
    for open_brace in reversed(opens):
        if brace_range is not None and open_brace == brace_range.open:
            continue
        candidate = range_from_open(buffer, open_brace)
        if candidate is None or candidate.close.as_tuple() < position.as_tuple():
            continue
        context = classify(buffer, open_brace)
        if context is not None:
            logger.debug("Fallback scan classified brace at %s", open_brace.as_tuple())
            return context, candidate
    return None
