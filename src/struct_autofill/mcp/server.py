"""FastMCP server exposing struct-autofill tools."""

from __future__ import annotations

from pathlib import Path

from fastmcp import FastMCP

from struct_autofill.config import Settings, get_settings
from struct_autofill.models import Position
from struct_autofill.service import describe_struct, fill_file


def create_mcp_server(workspace: str | Path = ".", settings: Settings | None = None) -> FastMCP:
    """Create a FastMCP server whose tools search ``workspace`` for declarations."""

    settings = settings or get_settings()
    root = Path(workspace)
    mcp = FastMCP("struct-autofill", instructions="Fill Go struct literals with their missing fields.")

    @mcp.tool()
    async def fill_struct(path: str, line: int, column: int, dry_run: bool = False) -> dict[str, object]:
        """Fill the struct literal at a 1-based line/column of a Go file."""
        if line < 1 or column < 1:
            return {"status": "error", "message": "line and column are 1-based"}
        result, text = await fill_file(
            path, Position(line=line - 1, column=column - 1), workspace=root, dry_run=dry_run, settings=settings
        )
        payload: dict[str, object] = result.model_dump(mode="json", exclude={"replaced_range"})
        if dry_run:
            payload["text"] = text
        return payload

    @mcp.tool()
    async def struct_fields(type_name: str, path: str) -> list[dict[str, str]]:
        """List a struct type's fields in declaration order, with zero values."""
        rows = await describe_struct(type_name, path, workspace=root, settings=settings)
        return [{"name": f.name, "type": f.declared_type, "default": default} for f, default in rows]

    return mcp
