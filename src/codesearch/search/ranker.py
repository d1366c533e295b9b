"""Hybrid lexical + vector search.

Fusion is lexical-first and exclusive: chunks found by full-text search all
score ``fts_weight``; chunks found only by the vector scan score
``cosine * vector_weight``. A chunk in both sets keeps its lexical score.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np
import structlog

from codesearch.core.logging import clear_run_id, set_run_id
from codesearch.index.manifest import codebase_id

if TYPE_CHECKING:
    from collections.abc import Sequence

    from codesearch.config.models import SearchConfig
    from codesearch.index.embedding import EmbeddingService
    from codesearch.index.store import ChunkStore, StoredChunk

log = structlog.get_logger()

CANDIDATE_MULTIPLIER = 2


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity; 0.0 for empty, zero or mismatched-length vectors."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.size == 0 or va.shape != vb.shape:
        return 0.0
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


@dataclass
class SearchResult:
    """One ranked hit. ``rank`` is 1-based and assigned after truncation."""

    chunk: StoredChunk
    score: float
    rank: int = 0

    @property
    def chunk_id(self) -> str:
        return self.chunk.chunk_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "score": round(self.score, 6),
            "file_path": self.chunk.file_path,
            "start_line": self.chunk.start_line,
            "end_line": self.chunk.end_line,
            "language": self.chunk.language,
            "codebase_id": self.chunk.codebase_id,
            "content": self.chunk.content,
        }


class HybridRanker:
    """Runs both sub-searches and fuses them into one ranked list."""

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingService,
        *,
        fts_weight: float = 0.6,
        vector_weight: float = 0.4,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.fts_weight = fts_weight
        self.vector_weight = vector_weight

    @classmethod
    def from_config(cls, store: ChunkStore, embedder: EmbeddingService, config: SearchConfig) -> HybridRanker:
        return cls(store, embedder, fts_weight=config.fts_weight, vector_weight=config.vector_weight)

    def search(
        self,
        query: str,
        codebase: Path | str | None = None,
        limit: int = 10,
        *,
        vector_only: bool = False,
    ) -> list[SearchResult]:
        """Search one codebase (given as a directory) or all of them.

        Raises:
            IndexingError: If ``codebase`` doesn't exist.
            StorageError: On store failures.
        """
        if not query.strip() or limit <= 0:
            return []

        scope = codebase_id(Path(codebase)) if codebase is not None else None
        set_run_id()
        try:
            lexical = [] if vector_only else self.store.fts_search(query, scope, limit * CANDIDATE_MULTIPLIER)
            vector = self._vector_search(query, scope, limit * CANDIDATE_MULTIPLIER)
            results = self.fuse(lexical, vector, limit)
            log.debug(
                "search.complete",
                codebase_id=scope,
                lexical=len(lexical),
                vector=len(vector),
                returned=len(results),
            )
            return results
        finally:
            clear_run_id()

    def _vector_search(self, query: str, scope: str | None, limit: int) -> list[tuple[StoredChunk, float]]:
        """Exhaustive cosine scan; empty when the embedding backend is unavailable."""
        if not self.embedder.is_available():
            log.warning("search.vector_unavailable", model=self.embedder.model_type.model_name)
            return []

        query_vec = self.embedder.embed(query, is_query=True)
        scored = [
            (chunk, cosine_similarity(query_vec, vec)) for chunk, vec in self.store.load_embeddings(scope)
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:limit]

    def fuse(
        self,
        lexical: Sequence[StoredChunk],
        vector: Sequence[tuple[StoredChunk, float]],
        limit: int,
    ) -> list[SearchResult]:
        """Merge lexical hits first, then vector-only hits; sort, truncate, rank."""
        merged: dict[str, SearchResult] = {}
        for chunk in lexical:
            merged.setdefault(chunk.chunk_id, SearchResult(chunk=chunk, score=self.fts_weight))
        for chunk, similarity in vector:
            merged.setdefault(chunk.chunk_id, SearchResult(chunk=chunk, score=similarity * self.vector_weight))

        ranked = sorted(merged.values(), key=lambda r: r.score, reverse=True)[:limit]
        for rank, result in enumerate(ranked, start=1):
            result.rank = rank
        return ranked
