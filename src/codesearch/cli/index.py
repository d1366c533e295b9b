"""code-search index command - index or re-index a codebase."""

from pathlib import Path

import click

from codesearch.cli.utils import (
    build_embedder,
    cli_errors,
    load_cli_config,
    model_overrides,
    open_manifests,
    open_store,
    resolve_dir,
)
from codesearch.core.progress import pluralize, spinner, status
from codesearch.index.pipeline import IndexingPipeline


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Drop existing chunks and re-index every file")
@click.option("--no-gitignore", is_flag=True, help="Ignore .gitignore files")
@click.option("--model", type=click.Choice(["minilm", "nomic"]), default=None, help="Embedding model")
@click.pass_context
def index_command(ctx: click.Context, path: Path, force: bool, no_gitignore: bool, model: str | None) -> None:
    """Index the codebase at PATH (default: current directory).

    Only files whose content changed since the last run are re-chunked,
    unless --force is given.
    """
    root = resolve_dir(path)
    config = load_cli_config(ctx, **model_overrides(model))
    store = open_store(config)
    try:
        pipeline = IndexingPipeline(store, build_embedder(config), open_manifests(config), config)
        with spinner(f"Indexing {root}"), cli_errors():
            stats = pipeline.run(root, force=force, use_gitignore=False if no_gitignore else None)
    finally:
        store.close()

    status(
        f"Indexed {pluralize(stats.files_indexed, 'file')} in {stats.duration_s:.2f}s",
        style="success",
    )
    status(f"{pluralize(stats.chunks_created, 'chunk')} created, {stats.chunks_removed} removed", indent=2)
    if stats.files_skipped:
        status(f"{pluralize(stats.files_skipped, 'file')} skipped (unchanged or unreadable)", indent=2)
    if stats.files_removed:
        status(f"{pluralize(stats.files_removed, 'file')} removed", indent=2)
    if stats.degraded:
        status("Embedding model unavailable; stored zero vectors (lexical search only)", style="warning")
