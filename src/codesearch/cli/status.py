"""code-search status command - show index statistics."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from codesearch.cli.utils import cli_errors, load_cli_config, open_store
from codesearch.index.manifest import codebase_id
from codesearch.index.store import CodebaseStats


@click.command()
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--list", "list_all", is_flag=True, help="List every indexed codebase")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, path: Path | None, list_all: bool, as_json: bool) -> None:
    """Show index statistics.

    With PATH, shows that codebase; with --list, every codebase; otherwise totals.
    """
    config = load_cli_config(ctx)
    store = open_store(config)
    try:
        with cli_errors():
            if list_all:
                _show_list(store.list_codebases(), as_json)
            elif path is not None:
                cid = codebase_id(path)
                stats = store.codebase_stats(cid)
                if stats is None:
                    if as_json:
                        click.echo(json.dumps({"path": str(path.resolve()), "codebase_id": cid, "indexed": False}))
                    else:
                        click.echo(f"Not indexed: {path.resolve()}")
                    return
                if as_json:
                    click.echo(json.dumps({"path": str(path.resolve()), "indexed": True, **stats.to_dict()}))
                else:
                    click.echo(f"Codebase: {path.resolve()} ({cid})")
                    click.echo(f"Files: {stats.file_count}")
                    click.echo(f"Chunks: {stats.chunk_count}")
            else:
                totals = store.global_stats()
                if as_json:
                    click.echo(json.dumps(totals.to_dict()))
                else:
                    click.echo(f"Codebases: {totals.codebase_count}")
                    click.echo(f"Files: {totals.file_count}")
                    click.echo(f"Chunks: {totals.chunk_count}")
    finally:
        store.close()


def _show_list(codebases: list[CodebaseStats], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([c.to_dict() for c in codebases]))
        return
    if not codebases:
        click.echo("No codebases indexed.")
        return
    table = Table("Codebase ID", "Files", "Chunks")
    for c in codebases:
        table.add_row(c.codebase_id, str(c.file_count), str(c.chunk_count))
    Console().print(table)
