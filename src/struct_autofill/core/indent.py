from collections.abc import Sequence

from struct_autofill.core.ports.buffer import TextBuffer
from struct_autofill.models import BraceRange, IndentSpec, ReconciledField

_NEIGHBOR_LINES = 5


def leading_whitespace(text: str) -> str:
    return text[: len(text) - len(text.lstrip(" \t"))]


def _first_field_indent(buffer: TextBuffer, brace_range: BraceRange) -> str | None:
    for line in range(brace_range.open_line + 1, brace_range.close_line):
        text = buffer.line_text(line)
        if text.strip():
            return leading_whitespace(text)
    return None


def _neighbor_indent(buffer: TextBuffer, line: int) -> str | None:
    """Indentation of the closest indented line around ``line``."""
    for distance in range(1, _NEIGHBOR_LINES + 1):
        for candidate in (line - distance, line + distance):
            if 0 <= candidate < buffer.line_count():
                indent = leading_whitespace(buffer.line_text(candidate))
                if indent and buffer.line_text(candidate).strip():
                    return indent
    return None


def _space_unit(indent: str) -> int:
    return 4 if len(indent) % 4 == 0 else 2


def compute_indent(buffer: TextBuffer, brace_range: BraceRange) -> IndentSpec:
    base = leading_whitespace(buffer.line_text(brace_range.open_line))
    field_line = _first_field_indent(buffer, brace_range)

    if field_line is not None and len(field_line) > len(base) and field_line.startswith(base):
        uses_tabs = "\t" in field_line
        return IndentSpec(
            uses_tabs=uses_tabs,
            unit_width=1 if uses_tabs else len(field_line) - len(base),
            base_indent=base,
            field_indent=field_line,
        )

    cue = base or field_line or _neighbor_indent(buffer, brace_range.open_line)
    if not cue or "\t" in cue:
        return IndentSpec(uses_tabs=True, unit_width=1, base_indent=base, field_indent=base + "\t")
    width = _space_unit(cue)
    return IndentSpec(uses_tabs=False, unit_width=width, base_indent=base, field_indent=base + " " * width)


def render_fields(fields: Sequence[ReconciledField], indent: IndentSpec) -> str:
    """Body text for the literal: one ``Name: value,`` line per field."""
    lines = [f"\n{indent.field_indent}{field.name}: {field.value_text}," for field in fields]
    return "".join(lines) + f"\n{indent.base_indent}"
