"""code-search search command - hybrid search over indexed chunks."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from codesearch.cli.utils import build_embedder, cli_errors, load_cli_config, model_overrides, open_store
from codesearch.search.ranker import HybridRanker, SearchResult


def _render_pretty(query: str, results: list[SearchResult]) -> None:
    console = Console()
    if not results:
        console.print(f"[yellow]No results[/yellow] for {query!r}")
        return
    for result in results:
        chunk = result.chunk
        title = f"#{result.rank} {chunk.file_path}:{chunk.start_line}-{chunk.end_line}"
        body = Syntax(
            chunk.content,
            chunk.language or "text",
            line_numbers=True,
            start_line=chunk.start_line,
            word_wrap=True,
        )
        console.print(Panel(body, title=title, subtitle=f"score {result.score:.3f}", title_align="left"))


@click.command()
@click.argument("query")
@click.option(
    "--codebase",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Only search this indexed directory",
)
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Maximum results")
@click.option("--vector-only", is_flag=True, help="Skip full-text search")
@click.option("--pretty", is_flag=True, help="Render results instead of printing JSON")
@click.option("--model", type=click.Choice(["minilm", "nomic"]), default=None, help="Embedding model")
@click.pass_context
def search_command(
    ctx: click.Context,
    query: str,
    codebase: Path | None,
    limit: int | None,
    vector_only: bool,
    pretty: bool,
    model: str | None,
) -> None:
    """Search indexed code for QUERY.

    Prints JSON by default; --pretty renders highlighted snippets.
    """
    config = load_cli_config(ctx, **model_overrides(model))
    limit = limit or config.search.default_limit
    store = open_store(config)
    try:
        ranker = HybridRanker.from_config(store, build_embedder(config), config.search)
        with cli_errors():
            results = ranker.search(query, codebase, limit, vector_only=vector_only)
    finally:
        store.close()

    if pretty:
        _render_pretty(query, results)
        return

    payload = {"query": query, "count": len(results), "results": [r.to_dict() for r in results]}
    click.echo(json.dumps(payload, indent=2))
