"""code-search delete command - drop a codebase from the index."""

from pathlib import Path

import click

from codesearch.cli.utils import cli_errors, load_cli_config, open_manifests, open_store
from codesearch.core.errors import IndexingError
from codesearch.core.progress import pluralize, status
from codesearch.index.manifest import codebase_id


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def delete_command(ctx: click.Context, path: Path) -> None:
    """Delete the indexed chunks and manifest of the codebase at PATH."""
    config = load_cli_config(ctx)
    store = open_store(config)
    try:
        with cli_errors():
            cid = codebase_id(path)
            had_manifest = open_manifests(config).delete(cid)
            removed = store.delete_codebase(cid)
            if not removed and not had_manifest:
                raise IndexingError.codebase_not_indexed(str(path.resolve()))
    finally:
        store.close()

    status(f"Deleted {pluralize(removed, 'chunk')} for {path.resolve()}", style="success")
