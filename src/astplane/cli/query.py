"""astplane query / methods commands - run structural queries from the shell."""

import json
from pathlib import Path

import click

from astplane.config import load_config, resolve_db_path
from astplane.core.errors import AstPlaneError
from astplane.index.ops import StructuralQueryEngine
from astplane.mcp import registry


def _parse_params(pairs: tuple[str, ...]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--param")
        params[key] = value
    return params


@click.command()
@click.argument("method")
@click.option("--param", "-p", "pairs", multiple=True, help="Method parameter as KEY=VALUE")
@click.option(
    "--repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Indexed directory (default: current directory)",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Index database (default: REPO/.astplane/index.db)",
)
def query_command(method: str, pairs: tuple[str, ...], repo: Path, db_path: Path | None) -> None:
    """Run METHOD against the index and print the JSON response.

    Example: astplane query get_call_hierarchy -p file_path=cat.rb -p line=12
    """
    repo_root = repo.resolve()
    params = _parse_params(pairs)
    try:
        config = load_config(repo_root)
        engine = StructuralQueryEngine.open(db_path or resolve_db_path(config, repo_root))
    except AstPlaneError as e:
        raise click.ClickException(e.message) from e

    try:
        response = registry.dispatch(engine, method, params)
    finally:
        engine.close()

    click.echo(json.dumps(response, indent=2))
    if not response["success"]:
        raise SystemExit(1)


@click.command()
def methods_command() -> None:
    """List the available query methods and their parameters."""
    for spec in registry.get_all():
        fields = ", ".join(spec.params_model.model_fields) or "-"
        click.echo(f"{spec.name:<20} {fields:<22} {spec.description}")
