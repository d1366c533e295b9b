"""code-search CLI."""

from pathlib import Path

import click

from codesearch.cli.config import config_command
from codesearch.cli.delete import delete_command
from codesearch.cli.index import index_command
from codesearch.cli.search import search_command
from codesearch.cli.status import status_command
from codesearch.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="code-search")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file layered over the global one",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """code-search - incremental local code indexing with hybrid search."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(index_command, name="index")
cli.add_command(search_command, name="search")
cli.add_command(status_command, name="status")
cli.add_command(delete_command, name="delete")
cli.add_command(config_command, name="config")


if __name__ == "__main__":
    cli()
