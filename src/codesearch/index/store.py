"""ChunkStore: transactional chunk persistence plus lexical search.

Wraps the SQLite database from ``codesearch.index.db``. Every SQL failure is
re-raised as ``StorageError`` so callers only deal with the domain
hierarchy.
"""

from __future__ import annotations

import time
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from codesearch.core.errors import StorageError
from codesearch.index.chunker import Chunk, chunk_id
from codesearch.index.db import FTS_TABLE, Database
from codesearch.index.models import ChunkRecord

log = structlog.get_logger()

MIN_TERM_LENGTH = 2

_CHUNK_COLUMNS = "c.id, c.codebase_id, c.file_path, c.start_line, c.end_line, c.content, c.language, c.hash"


@dataclass(frozen=True, slots=True)
class StoredChunk:
    """A chunk row as read back from the store (without its embedding)."""

    row_id: int
    codebase_id: str
    file_path: str
    start_line: int
    end_line: int
    content: str
    language: str | None
    hash: str

    @property
    def chunk_id(self) -> str:
        return chunk_id(self.file_path, self.start_line, self.end_line)

    @classmethod
    def from_row(cls, row: Any) -> StoredChunk:
        return cls(
            row_id=row.id,
            codebase_id=row.codebase_id,
            file_path=row.file_path,
            start_line=row.start_line,
            end_line=row.end_line,
            content=row.content,
            language=row.language,
            hash=row.hash,
        )


@dataclass(frozen=True, slots=True)
class CodebaseStats:
    codebase_id: str
    chunk_count: int
    file_count: int
    last_indexed_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "codebase_id": self.codebase_id,
            "chunks": self.chunk_count,
            "files": self.file_count,
            "last_indexed_at": self.last_indexed_at,
        }


@dataclass(frozen=True, slots=True)
class GlobalStats:
    chunk_count: int
    file_count: int
    codebase_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunks": self.chunk_count,
            "files": self.file_count,
            "codebases": self.codebase_count,
        }


def build_fts_query(query: str) -> str | None:
    """Turn free text into an FTS5 OR-query of quoted terms.

    Terms are whitespace-separated; terms shorter than two characters are
    dropped. Returns None when nothing is left to search for.
    """
    terms = [t for t in query.split() if len(t) >= MIN_TERM_LENGTH]
    if not terms:
        return None
    return " OR ".join('"' + t.replace('"', '""') + '"' for t in terms)


def encode_embedding(vector: np.ndarray | None) -> bytes | None:
    if vector is None:
        return None
    return np.asarray(vector, dtype="<f4").tobytes()


def decode_embedding(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype="<f4").astype(np.float32)


class ChunkStore:
    """Chunk persistence for all indexed codebases in one SQLite file."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @classmethod
    def open(cls, db_path: Path) -> ChunkStore:
        """Open (creating if needed) the store at db_path."""
        store = cls(Database(db_path))
        store.create_schema()
        return store

    @property
    def db(self) -> Database:
        return self._db

    def close(self) -> None:
        self._db.dispose()

    @contextmanager
    def _guard(self, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            log.error("store.operation_failed", operation=operation, error=str(e))
            raise StorageError.database(operation, str(e)) from e

    def create_schema(self) -> None:
        with self._guard("create_schema"):
            self._db.create_all()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace_file_chunks(
        self,
        codebase_id: str,
        file_path: str,
        chunks: Sequence[Chunk],
    ) -> tuple[int, int]:
        """Replace every chunk of one file in a single transaction.

        Returns:
            (rows removed, rows inserted).
        """
        now = time.time()
        records = [
            {
                "codebase_id": codebase_id,
                "file_path": file_path,
                "start_line": c.start_line,
                "end_line": c.end_line,
                "content": c.content,
                "language": c.language,
                "hash": c.file_hash,
                "embedding": encode_embedding(c.embedding),
                "indexed_at": now,
            }
            for c in chunks
        ]
        with self._guard("replace_file_chunks"), self._db.bulk_writer() as writer:
            removed = writer.delete_where(
                ChunkRecord,
                "codebase_id = :cid AND file_path = :path",
                {"cid": codebase_id, "path": file_path},
            )
            inserted = writer.insert_or_replace_many(ChunkRecord, records)
        return removed, inserted

    def delete_file_chunks(self, codebase_id: str, file_path: str) -> int:
        with self._guard("delete_file_chunks"), self._db.bulk_writer() as writer:
            return writer.delete_where(
                ChunkRecord,
                "codebase_id = :cid AND file_path = :path",
                {"cid": codebase_id, "path": file_path},
            )

    def delete_codebase(self, codebase_id: str) -> int:
        """Delete every chunk of a codebase, returning the row count."""
        with self._guard("delete_codebase"), self._db.bulk_writer() as writer:
            removed = writer.delete_where(ChunkRecord, "codebase_id = :cid", {"cid": codebase_id})
        log.debug("store.codebase_deleted", codebase_id=codebase_id, chunks=removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fts_search(self, query: str, codebase_id: str | None = None, limit: int = 10) -> list[StoredChunk]:
        """Lexical search ordered by bm25 (best first)."""
        match = build_fts_query(query)
        if match is None or limit <= 0:
            return []

        scope = "AND c.codebase_id = :cid" if codebase_id is not None else ""
        sql = f"""
            SELECT {_CHUNK_COLUMNS}
            FROM {FTS_TABLE}
            JOIN chunks c ON c.id = {FTS_TABLE}.rowid
            WHERE {FTS_TABLE} MATCH :match {scope}
            ORDER BY bm25({FTS_TABLE})
            LIMIT :limit
        """
        params: dict[str, Any] = {"match": match, "limit": limit}
        if codebase_id is not None:
            params["cid"] = codebase_id

        with self._guard("fts_search"), self._db.connect() as conn:
            rows = conn.execute(text(sql), params).all()
        return [StoredChunk.from_row(row) for row in rows]

    def load_embeddings(self, codebase_id: str | None = None) -> list[tuple[StoredChunk, np.ndarray]]:
        """Every chunk that has an embedding, for an exhaustive vector scan."""
        scope = "AND c.codebase_id = :cid" if codebase_id is not None else ""
        sql = f"""
            SELECT {_CHUNK_COLUMNS}, c.embedding
            FROM chunks c
            WHERE c.embedding IS NOT NULL {scope}
        """
        params = {"cid": codebase_id} if codebase_id is not None else {}
        with self._guard("load_embeddings"), self._db.connect() as conn:
            rows = conn.execute(text(sql), params).all()
        return [(StoredChunk.from_row(row), decode_embedding(row.embedding)) for row in rows]

    def codebase_stats(self, codebase_id: str) -> CodebaseStats | None:
        """Chunk and file counts for one codebase; None if it has no chunks."""
        sql = """
            SELECT COUNT(*) AS chunks, COUNT(DISTINCT file_path) AS files, MAX(indexed_at) AS last_indexed
            FROM chunks WHERE codebase_id = :cid
        """
        with self._guard("codebase_stats"), self._db.connect() as conn:
            row = conn.execute(text(sql), {"cid": codebase_id}).one()
        if not row.chunks:
            return None
        return CodebaseStats(codebase_id, row.chunks, row.files, row.last_indexed)

    def global_stats(self) -> GlobalStats:
        sql = """
            SELECT COUNT(*) AS chunks,
                   COUNT(DISTINCT codebase_id || ':' || file_path) AS files,
                   COUNT(DISTINCT codebase_id) AS codebases
            FROM chunks
        """
        with self._guard("global_stats"), self._db.connect() as conn:
            row = conn.execute(text(sql)).one()
        return GlobalStats(row.chunks, row.files, row.codebases)

    def list_codebases(self) -> list[CodebaseStats]:
        sql = """
            SELECT codebase_id, COUNT(*) AS chunks, COUNT(DISTINCT file_path) AS files,
                   MAX(indexed_at) AS last_indexed
            FROM chunks
            GROUP BY codebase_id
            ORDER BY codebase_id
        """
        with self._guard("list_codebases"), self._db.connect() as conn:
            rows = conn.execute(text(sql)).all()
        return [CodebaseStats(r.codebase_id, r.chunks, r.files, r.last_indexed) for r in rows]
