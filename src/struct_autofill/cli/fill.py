import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from struct_autofill.config import configure_logging, get_settings
from struct_autofill.models import FillStatus, Position
from struct_autofill.service import describe_struct, fill_file

console = Console()

_VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Log diagnostics (also: STRUCT_AUTOFILL_VERBOSE=1).")
]
_WorkspaceOption = Annotated[
    str | None, typer.Option(help="Workspace root to search for declarations (default: the go.mod directory).")
]


def fill(
    path: Annotated[str, typer.Argument(help="Go file to edit.")],
    line: Annotated[int, typer.Option(min=1, help="Cursor line (1-based).")],
    column: Annotated[int, typer.Option(min=1, help="Cursor column (1-based).")],
    workspace: _WorkspaceOption = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the result instead of writing the file.")] = False,
    verbose: _VerboseOption = False,
) -> None:
    """Fill the struct literal at the cursor with its missing fields."""
    settings = get_settings(verbose=True if verbose else None)
    configure_logging(settings.verbose)
    position = Position(line=line - 1, column=column - 1)

    try:
        result, text = asyncio.run(fill_file(path, position, workspace=workspace, dry_run=dry_run, settings=settings))
    except FileNotFoundError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None

    if result.status is FillStatus.FILLED:
        console.print(f"[green]Filled[/green] {result.type_name} ({result.role.value if result.role else '?'})")
        console.print(f"Added {len(result.added_fields)} field(s): {', '.join(result.added_fields)}")
        if result.dropped_fields:
            console.print(f"[yellow]Dropped[/yellow] undeclared field(s): {', '.join(result.dropped_fields)}")
        if dry_run:
            console.print(Syntax(text, "go", line_numbers=False))
    elif result.status is FillStatus.NOTHING_TO_FILL:
        console.print(f"[green]{result.message}[/green]")
    else:
        console.print(f"[red]{escape(result.message)}[/red]")
        raise typer.Exit(1)


def fields(
    type_name: Annotated[str, typer.Argument(help="Struct type name, optionally package-qualified.")],
    file: Annotated[str, typer.Option(help="File the type is referenced from.")],
    workspace: _WorkspaceOption = None,
    verbose: _VerboseOption = False,
) -> None:
    """List a struct type's fields in declaration order."""
    settings = get_settings(verbose=True if verbose else None)
    configure_logging(settings.verbose)
    if not Path(file).is_file():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)

    rows = asyncio.run(describe_struct(type_name, file, workspace=workspace, settings=settings))
    if not rows:
        console.print(f"[red]cannot determine the fields of {type_name}[/red]")
        raise typer.Exit(1)

    table = Table(show_lines=False)
    for header in ("name", "type", "default"):
        table.add_column(header)
    for field, default in rows:
        table.add_row(field.name, escape(field.declared_type), escape(default))
    console.print(table)
    console.print(f"({len(rows)} fields)")
