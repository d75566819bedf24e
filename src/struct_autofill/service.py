from pathlib import Path

from struct_autofill.config import Settings, get_settings
from struct_autofill.core.fill import run_fill
from struct_autofill.core.modules import find_go_mod
from struct_autofill.core.reconcile import default_value
from struct_autofill.core.schema import resolve_field_order
from struct_autofill.models import FieldDeclaration, FillResult, Position
from struct_autofill.workspace.buffer import FileBuffer
from struct_autofill.workspace.intelligence import WorkspaceIntelligence


def default_workspace(path: Path) -> Path:
    """The directory holding the file's go.mod, or the file's own directory."""
    go_mod = find_go_mod(path.parent)
    return go_mod.parent if go_mod is not None else path.parent


async def fill_file(
    path: str | Path,
    position: Position,
    workspace: str | Path | None = None,
    dry_run: bool = False,
    settings: Settings | None = None,
) -> tuple[FillResult, str]:
    """Fill the literal at ``position`` in a file on disk.

    Returns the result and the resulting file text. The file is written only when
    fields were added and ``dry_run`` is false.
    """
    settings = settings or get_settings()
    buffer = FileBuffer.load(path)
    root = Path(workspace) if workspace else default_workspace(buffer.path)
    intelligence = WorkspaceIntelligence(root, settings)

    result = await run_fill(buffer, position, intelligence, buffer.path, settings.max_schema_files)
    if buffer.dirty and not dry_run:
        buffer.save()
    return result, buffer.text


async def describe_struct(
    type_name: str,
    path: str | Path,
    workspace: str | Path | None = None,
    settings: Settings | None = None,
) -> list[tuple[FieldDeclaration, str]]:
    """Declared fields of ``type_name`` as seen from ``path``, each with its zero value."""
    settings = settings or get_settings()
    file_path = Path(path)
    root = Path(workspace) if workspace else default_workspace(file_path)
    intelligence = WorkspaceIntelligence(root, settings)
    fields = await resolve_field_order(type_name, file_path, intelligence, max_files=settings.max_schema_files)
    return [(field, default_value(field.declared_type, field.name)) for field in fields]
