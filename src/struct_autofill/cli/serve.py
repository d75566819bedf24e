from typing import Annotated

import typer
from rich.console import Console

from struct_autofill.config import configure_logging, get_settings

serve_app = typer.Typer(help="Start servers.")
console = Console(stderr=True)


@serve_app.command("mcp")
def mcp(
    workspace: Annotated[str, typer.Option(help="Default workspace root for declaration lookups.")] = ".",
    transport: str = "stdio",
) -> None:
    """Start the MCP server."""
    from struct_autofill.mcp.server import create_mcp_server

    settings = get_settings()
    configure_logging(settings.verbose)
    server = create_mcp_server(workspace, settings)
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]
