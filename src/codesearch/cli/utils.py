"""CLI utilities shared by the code-search commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from codesearch.config.loader import get_db_path, get_manifest_dir, load_config
from codesearch.config.models import CodeSearchConfig
from codesearch.core.errors import CodeSearchError
from codesearch.core.logging import configure_logging
from codesearch.index.embedding import EmbeddingService, ModelType
from codesearch.index.manifest import ManifestStore
from codesearch.index.store import ChunkStore


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn domain errors into click errors (message on stderr, exit code 1)."""
    try:
        yield
    except CodeSearchError as e:
        raise click.ClickException(str(e)) from e


def load_cli_config(ctx: click.Context, **overrides: Any) -> CodeSearchConfig:
    """Load config from the group's --config path and reconfigure logging from it.

    Args:
        ctx: Click context; ``ctx.obj`` holds ``config_path`` and ``verbose``.
        **overrides: Section overrides, e.g. ``model={"model_type": "nomic"}``.
    """
    obj = ctx.ensure_object(dict)
    with cli_errors():
        config = load_config(obj.get("config_path"), **overrides)

    logging_config = config.logging
    if obj.get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    return config


def open_store(config: CodeSearchConfig) -> ChunkStore:
    with cli_errors():
        return ChunkStore.open(get_db_path(config))


def open_manifests(config: CodeSearchConfig) -> ManifestStore:
    return ManifestStore(get_manifest_dir(config))


def build_embedder(config: CodeSearchConfig) -> EmbeddingService:
    """One embedding service per command invocation; the model loads on first use."""
    return EmbeddingService(
        ModelType.parse(config.model.model_type),
        auto_download=config.model.auto_download,
        batch_size=config.indexing.batch_size,
    )


def model_overrides(model: str | None) -> dict[str, Any]:
    return {"model": {"model_type": model}} if model else {}


def resolve_dir(path: Path) -> Path:
    resolved = path.resolve()
    if not resolved.is_dir():
        raise click.ClickException(f"Not a directory: {path}")
    return resolved
