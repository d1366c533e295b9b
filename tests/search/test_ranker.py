"""Tests for hybrid ranking and score fusion."""

from __future__ import annotations

from pathlib import Path

import pytest

from codesearch.config.models import SearchConfig
from codesearch.core.errors import IndexingError
from codesearch.index.embedding import EmbeddingService
from codesearch.index.manifest import codebase_id
from codesearch.index.pipeline import IndexingPipeline
from codesearch.index.store import ChunkStore, StoredChunk
from codesearch.search.ranker import HybridRanker, cosine_similarity


def _chunk(path: str, row_id: int = 1, start: int = 1, end: int = 10) -> StoredChunk:
    return StoredChunk(
        row_id=row_id,
        codebase_id="cb",
        file_path=path,
        start_line=start,
        end_line=end,
        content=f"contents of {path}",
        language="python",
        hash="0" * 16,
    )


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self) -> None:
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ([0.0, 0.0], [1.0, 0.0]),
            ([1.0, 0.0], [1.0, 0.0, 0.0]),
            ([], []),
        ],
        ids=["zero", "mismatched", "empty"],
    )
    def test_degenerate_inputs_score_zero(self, a: list[float], b: list[float]) -> None:
        assert cosine_similarity(a, b) == 0.0


class TestFuse:
    """Lexical-first, exclusive fusion."""

    @pytest.fixture
    def ranker(self, store: ChunkStore, embedder: EmbeddingService) -> HybridRanker:
        return HybridRanker(store, embedder)

    def test_lexical_hit_keeps_flat_score_even_if_vector_matches(self, ranker: HybridRanker) -> None:
        a = _chunk("a.py")

        [result] = ranker.fuse([a], [(a, 0.9)], limit=10)

        assert result.score == pytest.approx(0.6)

    def test_vector_only_hits_scale_by_weight(self, ranker: HybridRanker) -> None:
        a, b = _chunk("a.py", 1), _chunk("b.py", 2)

        results = ranker.fuse([a], [(a, 0.9), (b, 0.5)], limit=10)

        assert [(r.chunk.file_path, r.rank) for r in results] == [("a.py", 1), ("b.py", 2)]
        assert results[1].score == pytest.approx(0.2)

    def test_vector_hits_sort_by_similarity(self, ranker: HybridRanker) -> None:
        b, c = _chunk("b.py", 2), _chunk("c.py", 3)

        results = ranker.fuse([], [(b, 0.3), (c, 0.8)], limit=10)

        assert [r.chunk.file_path for r in results] == ["c.py", "b.py"]

    def test_truncates_then_ranks(self, ranker: HybridRanker) -> None:
        chunks = [_chunk(f"f{i}.py", i) for i in range(5)]

        results = ranker.fuse([], [(c, 0.1 * (i + 1)) for i, c in enumerate(chunks)], limit=3)

        assert [r.rank for r in results] == [1, 2, 3]
        assert [r.chunk.file_path for r in results] == ["f4.py", "f3.py", "f2.py"]

    def test_chunks_are_deduplicated_by_id(self, ranker: HybridRanker) -> None:
        a = _chunk("a.py")

        results = ranker.fuse([a, a], [], limit=10)

        assert len(results) == 1

    def test_custom_weights_from_config(self, store: ChunkStore, embedder: EmbeddingService) -> None:
        ranker = HybridRanker.from_config(store, embedder, SearchConfig(fts_weight=0.7, vector_weight=0.3))
        a, b = _chunk("a.py", 1), _chunk("b.py", 2)

        results = ranker.fuse([a], [(b, 1.0)], limit=10)

        assert [r.score for r in results] == pytest.approx([0.7, 0.3])


class TestSearch:
    """End-to-end search over an indexed codebase."""

    @pytest.fixture
    def indexed(self, pipeline: IndexingPipeline, codebase: Path) -> Path:
        pipeline.run(codebase)
        return codebase

    def test_lexical_match_ranks_first(self, store: ChunkStore, embedder: EmbeddingService, indexed: Path) -> None:
        results = HybridRanker(store, embedder).search("tokenize", indexed, limit=3)

        assert len(results) == 3
        assert results[0].chunk.file_path == "src/util.rs"
        assert results[0].score == pytest.approx(0.6)
        assert all(r.score <= 0.4 + 1e-6 for r in results[1:])

    def test_vector_only_skips_lexical(self, store: ChunkStore, embedder: EmbeddingService, indexed: Path) -> None:
        results = HybridRanker(store, embedder).search("tokenize", indexed, vector_only=True)

        assert len(results) == 4
        assert all(r.score <= 0.4 + 1e-6 for r in results)

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query_returns_nothing(self, store: ChunkStore, embedder: EmbeddingService, query: str) -> None:
        assert HybridRanker(store, embedder).search(query) == []

    def test_zero_limit_returns_nothing(self, store: ChunkStore, embedder: EmbeddingService, indexed: Path) -> None:
        assert HybridRanker(store, embedder).search("tokenize", indexed, limit=0) == []

    def test_scoped_to_one_codebase(
        self,
        store: ChunkStore,
        embedder: EmbeddingService,
        pipeline: IndexingPipeline,
        indexed: Path,
        tmp_path: Path,
    ) -> None:
        # Given a second indexed codebase defining the same name
        other = tmp_path / "other"
        other.mkdir()
        (other / "lexer.py").write_text("def tokenize(text):\n    return text.split()\n")
        pipeline.run(other)
        ranker = HybridRanker(store, embedder)

        # When / Then
        scoped = ranker.search("tokenize", indexed)
        everywhere = ranker.search("tokenize")

        assert {r.chunk.codebase_id for r in scoped} == {codebase_id(indexed)}
        assert {r.chunk.codebase_id for r in everywhere} == {codebase_id(indexed), codebase_id(other)}
        assert [r.score for r in everywhere[:2]] == pytest.approx([0.6, 0.6])

    def test_missing_codebase_path_raises(self, store: ChunkStore, embedder: EmbeddingService, tmp_path: Path) -> None:
        with pytest.raises(IndexingError):
            HybridRanker(store, embedder).search("tokenize", tmp_path / "nope")

    def test_unavailable_embedder_falls_back_to_lexical(
        self,
        store: ChunkStore,
        unavailable_embedder: EmbeddingService,
        indexed: Path,
    ) -> None:
        results = HybridRanker(store, unavailable_embedder).search("tokenize", indexed)

        assert [(r.chunk.file_path, r.rank) for r in results] == [("src/util.rs", 1)]

    def test_to_dict(self, store: ChunkStore, embedder: EmbeddingService, indexed: Path) -> None:
        [top] = HybridRanker(store, embedder).search("tokenize", indexed, limit=1)

        data = top.to_dict()

        assert data["rank"] == 1
        assert data["file_path"] == "src/util.rs"
        assert data["start_line"] == 1
        assert data["end_line"] == 3
        assert data["language"] == "rust"
        assert "fn tokenize" in data["content"]
