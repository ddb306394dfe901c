"""astplane serve command - expose the index over MCP."""

from pathlib import Path

import click

from astplane.config import load_config, resolve_db_path
from astplane.core.errors import AstPlaneError
from astplane.core.logging import configure_logging
from astplane.mcp.server import run_server


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="Override server.transport",
)
@click.option("--port", "-p", type=int, default=None, help="Override server.port (http only)")
def serve_command(path: Path, transport: str | None, port: int | None) -> None:
    """Serve structural queries for the index of PATH over MCP."""
    repo_root = path.resolve()
    overrides: dict[str, object] = {}
    if transport is not None:
        overrides["transport"] = transport
    if port is not None:
        overrides["port"] = port

    try:
        config = load_config(repo_root, **({"server": overrides} if overrides else {}))
        # stdout carries the protocol on stdio; logs go to the configured outputs
        configure_logging(config=config.logging)
        run_server(resolve_db_path(config, repo_root), config.server)
    except AstPlaneError as e:
        raise click.ClickException(e.message) from e
