"""astplane CLI."""

import click

from astplane.cli.build import build_command
from astplane.cli.query import methods_command, query_command
from astplane.cli.serve import serve_command
from astplane.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="astplane")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """astplane - structural index and queries for Ruby codebases."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(build_command, name="build")
cli.add_command(query_command, name="query")
cli.add_command(methods_command, name="methods")
cli.add_command(serve_command, name="serve")


if __name__ == "__main__":
    cli()
