"""Index module - incremental chunk indexing.

This module provides:
- Path filtering: hierarchical .gitignore rules plus static deny-lists
- Change detection: content-hash manifests diffed per run
- Chunking: overlapping line windows with stable range IDs
- Embedding: fastembed models behind a lazily-loaded service
- Storage: SQLite chunk table with an FTS5 shadow index

IndexingPipeline ties these together for one codebase.
"""

from codesearch.index.chunker import Chunk, chunk_id, split_file
from codesearch.index.embedding import EmbeddingService, ModelType
from codesearch.index.ignore import DenyList, IgnoreRuleSet, PathFilter
from codesearch.index.manifest import ChangeSet, ManifestStore, codebase_id, content_hash, diff
from codesearch.index.pipeline import IndexingPipeline, IndexingStats, RunState, ScannedFile
from codesearch.index.store import ChunkStore, CodebaseStats, GlobalStats, StoredChunk

__all__ = [
    # Filtering
    "DenyList",
    "IgnoreRuleSet",
    "PathFilter",
    # Manifests
    "ChangeSet",
    "ManifestStore",
    "codebase_id",
    "content_hash",
    "diff",
    # Chunking
    "Chunk",
    "chunk_id",
    "split_file",
    # Embedding
    "EmbeddingService",
    "ModelType",
    # Storage
    "ChunkStore",
    "CodebaseStats",
    "GlobalStats",
    "StoredChunk",
    # Pipeline
    "IndexingPipeline",
    "IndexingStats",
    "RunState",
    "ScannedFile",
]
