"""One fill invocation: find the literal, work out its fields, rewrite its body."""

import logging
from pathlib import Path

from struct_autofill.core.context import classify_near_cursor
from struct_autofill.core.fields import parse_existing_fields
from struct_autofill.core.indent import compute_indent, render_fields
from struct_autofill.core.ports.buffer import TextBuffer
from struct_autofill.core.ports.intelligence import LanguageIntelligence
from struct_autofill.core.reconcile import reconcile, undeclared_fields
from struct_autofill.core.schema import DEFAULT_MAX_FILES, fields_from_completions, qualify_fields, resolve_field_order
from struct_autofill.models import FILL_MESSAGES, FillResult, FillStatus, LiteralContext, Position

logger = logging.getLogger(__name__)


def full_text(buffer: TextBuffer) -> str:
    count = buffer.line_count()
    if count == 0:
        return ""
    last = count - 1
    return buffer.get_text(Position(line=0, column=0), Position(line=last, column=len(buffer.line_text(last))))


def _failure(status: FillStatus, context: LiteralContext | None = None, **details: str) -> FillResult:
    return FillResult(
        status=status,
        message=FILL_MESSAGES[status].format(**details),
        type_name=context.type_name if context else None,
        role=context.role if context else None,
    )


async def run_fill(
    buffer: TextBuffer,
    position: Position,
    collaborator: LanguageIntelligence,
    file_path: Path,
    max_files: int = DEFAULT_MAX_FILES,
) -> FillResult:
    """Fill the missing fields of the literal at ``position``.

    Never raises: collaborator errors are logged and reported as
    ``COLLABORATOR_FAILURE``. The buffer is replaced at most once, and only after
    everything else succeeded.
    """
    try:
        return await _fill(buffer, position, collaborator, file_path, max_files)
    except Exception as exc:
        logger.exception("Fill failed at %s:%d:%d", file_path, position.line, position.column)
        return _failure(FillStatus.COLLABORATOR_FAILURE, error=str(exc) or type(exc).__name__)


async def _fill(
    buffer: TextBuffer,
    position: Position,
    collaborator: LanguageIntelligence,
    file_path: Path,
    max_files: int,
) -> FillResult:
    located = classify_near_cursor(buffer, position)
    if located is None:
        logger.info("No record literal at %s:%d:%d", file_path, position.line, position.column)
        return _failure(FillStatus.NO_ENCLOSING_LITERAL)
    context, brace_range = located
    logger.debug(
        "Literal %s (%s, nested=%s) spans %s-%s",
        context.type_name,
        context.role.value,
        context.is_nested,
        brace_range.open.as_tuple(),
        brace_range.close.as_tuple(),
    )

    existing = parse_existing_fields(buffer, brace_range)
    logger.debug("Existing fields: %s", list(existing))

    declared = await resolve_field_order(
        context.type_name, file_path, collaborator, current_text=full_text(buffer), max_files=max_files
    )
    if not declared:
        logger.debug("No declaration of %s; asking the language service", context.type_name)
        items = await collaborator.completions_at(file_path, brace_range.body_start)
        declared = fields_from_completions(items, same_package=context.qualifier is None)
        if context.qualifier is not None:
            declared = qualify_fields(declared, context.qualifier)
    if not declared:
        return _failure(FillStatus.NO_SCHEMA_FOUND, context)

    merged, added = reconcile(declared, existing)
    dropped = undeclared_fields(declared, existing)
    if not added:
        return FillResult(
            status=FillStatus.NOTHING_TO_FILL,
            message=FILL_MESSAGES[FillStatus.NOTHING_TO_FILL],
            type_name=context.type_name,
            role=context.role,
            dropped_fields=dropped,
        )

    indent = compute_indent(buffer, brace_range)
    new_text = render_fields(merged, indent)
    await buffer.replace(brace_range.body_start, brace_range.body_end, new_text)
    logger.info("Filled %s with %d field(s)", context.type_name, len(added))

    return FillResult(
        status=FillStatus.FILLED,
        message=FILL_MESSAGES[FillStatus.FILLED].format(count=len(added), names=", ".join(added)),
        type_name=context.type_name,
        role=context.role,
        added_fields=added,
        dropped_fields=dropped,
        replaced_range=brace_range,
        new_text=new_text,
    )
