"""astplane build command - index a directory."""

import json
from pathlib import Path

import click

from astplane.config import load_config, resolve_db_path
from astplane.core.errors import AstPlaneError
from astplane.core.progress import pluralize, status
from astplane.index.builder import IndexBuilder


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Index database to write (default: PATH/.astplane/index.db)",
)
@click.option("--workers", "-w", type=int, default=None, help="Parallel extraction workers")
@click.option("--json", "as_json", is_flag=True, help="Output build statistics as JSON")
def build_command(path: Path, db_path: Path | None, workers: int | None, as_json: bool) -> None:
    """Build a fresh index of every Ruby file under PATH.

    Any existing index is replaced once the new one is complete.
    """
    target = path.resolve()
    try:
        overrides = {"indexer": {"max_workers": workers}} if workers is not None else {}
        config = load_config(target, **overrides)
        builder = IndexBuilder(target, db_path or resolve_db_path(config, target), config)
        result = builder.build(show_progress=not as_json)
    except AstPlaneError as e:
        raise click.ClickException(e.message) from e

    if as_json:
        click.echo(
            json.dumps(
                {
                    "db_path": str(result.db_path),
                    "files_indexed": result.files_indexed,
                    "files_skipped": result.files_skipped,
                    "symbols": result.symbols_indexed,
                    "references": result.references_indexed,
                    "errors": result.errors,
                    "duration_seconds": round(result.duration_seconds, 3),
                }
            )
        )
        return

    status(
        f"Indexed {pluralize(result.files_indexed, 'file')}: "
        f"{pluralize(result.symbols_indexed, 'symbol')}, "
        f"{pluralize(result.references_indexed, 'reference')} "
        f"({result.duration_seconds:.2f}s)",
        style="success",
    )
    if result.files_skipped:
        status(f"Skipped {pluralize(result.files_skipped, 'file')}", style="warning")
        for error in result.errors:
            status(error, style="none", indent=2)
    status(f"Index: {result.db_path}", style="none")
