import logging
from collections.abc import Mapping, Sequence

from struct_autofill.models import FieldDeclaration, ReconciledField

logger = logging.getLogger(__name__)

NIL = "nil"

_INTEGER_TYPES = frozenset(
    {
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
        "complex64",
        "complex128",
    }
)
_FLOAT_TYPES = frozenset({"float32", "float64"})
_NIL_TYPES = frozenset({"error", "any"})
_NIL_PREFIXES = ("*", "[", "map[", "chan ", "chan<-", "<-chan", "func(", "func ", "interface{", "interface {")


def default_value(declared_type: str, field_name: str = "") -> str:
    """Zero-value literal text for a field of ``declared_type``.

    Composite types get an empty literal of their own, which is itself a valid
    target for the next fill.
    """
    declared = " ".join(declared_type.split())
    if not declared:
        return f"{field_name}{{}}"
    if declared.startswith("[") and not declared.startswith("[]"):
        # fixed-size arrays have no nil
        return f"{declared}{{}}"
    if declared.startswith(_NIL_PREFIXES) or declared in _NIL_TYPES or declared == "func":
        return NIL
    if declared == "string":
        return '""'
    if declared in _INTEGER_TYPES:
        return "0"
    if declared in _FLOAT_TYPES:
        return "0.0"
    if declared == "bool":
        return "false"
    return f"{declared}{{}}"


def reconcile(
    declared_fields: Sequence[FieldDeclaration], existing_fields: Mapping[str, str]
) -> tuple[list[ReconciledField], list[str]]:
    """Merge declared and existing fields in declaration order.

    Returns the merged list and the names of the fields that were added.
    """
    merged: list[ReconciledField] = []
    added: list[str] = []
    for declared in declared_fields:
        if declared.name in existing_fields:
            merged.append(ReconciledField(name=declared.name, value_text=existing_fields[declared.name]))
            continue
        value = default_value(declared.declared_type, declared.name)
        merged.append(ReconciledField(name=declared.name, value_text=value, is_new=True))
        added.append(declared.name)

    dropped = undeclared_fields(declared_fields, existing_fields)
    if dropped:
        logger.debug("Dropping fields not in the declaration: %s", ", ".join(dropped))
    return merged, added


def undeclared_fields(declared_fields: Sequence[FieldDeclaration], existing_fields: Mapping[str, str]) -> list[str]:
    declared_names = {f.name for f in declared_fields}
    return [name for name in existing_fields if name not in declared_names]
