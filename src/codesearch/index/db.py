"""SQLite engine and bulk writer for the chunk store.

This module provides:
- Database: engine with WAL, busy timeout and recursive triggers
- BulkWriter: Core-SQL writes inside one transaction
- Schema DDL that SQLModel can't express (unique key, FTS5 table, triggers)

Reads go through short-lived connections; every write for one file goes
through a single BulkWriter so it commits or rolls back as a unit.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Connection, event, text
from sqlmodel import SQLModel, create_engine

from codesearch.index.models import ChunkRecord

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

FTS_TABLE = "chunks_fts"

SCHEMA_STATEMENTS = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_chunks_identity "
    "ON chunks(codebase_id, file_path, start_line, end_line)",
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} "
    "USING fts5(content, file_path, content='chunks', content_rowid='id')",
    # External-content FTS tables are kept in sync by hand
    f"""CREATE TRIGGER IF NOT EXISTS chunks_ai AFTER INSERT ON chunks BEGIN
        INSERT INTO {FTS_TABLE}(rowid, content, file_path)
        VALUES (new.id, new.content, new.file_path);
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS chunks_ad AFTER DELETE ON chunks BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, content, file_path)
        VALUES ('delete', old.id, old.content, old.file_path);
    END""",
    f"""CREATE TRIGGER IF NOT EXISTS chunks_au AFTER UPDATE ON chunks BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, content, file_path)
        VALUES ('delete', old.id, old.content, old.file_path);
        INSERT INTO {FTS_TABLE}(rowid, content, file_path)
        VALUES (new.id, new.content, new.file_path);
    END""",
]


class Database:
    """SQLite connection manager for the chunk store."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _configure_pragmas)
        return engine

    def create_all(self) -> None:
        """Create the chunks table, its indexes, the FTS table and triggers. Idempotent."""
        SQLModel.metadata.create_all(self.engine, tables=[ChunkRecord.__table__])  # type: ignore[attr-defined]
        with self.engine.begin() as conn:
            for sql in SCHEMA_STATEMENTS:
                conn.execute(text(sql))
        logger.debug("db.schema_ready", path=str(self.db_path))

    @contextmanager
    def connect(self) -> Generator[Connection, None, None]:
        """Core connection for raw reads (FTS queries, aggregates)."""
        with self.engine.connect() as conn:
            yield conn

    @contextmanager
    def bulk_writer(self) -> Generator[BulkWriter, None, None]:
        """
        Bulk writer for one logical unit of writes.

        Auto-commits on successful exit, rolls back on exception.
        """
        writer = BulkWriter(self.engine)
        try:
            yield writer
            writer.commit()
        except Exception:
            writer.rollback()
            raise
        finally:
            writer.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
    """Configure SQLite for concurrent readers and FTS trigger consistency."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second wait
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    # INSERT OR REPLACE only fires the delete trigger with this on
    cursor.execute("PRAGMA recursive_triggers=ON")
    cursor.execute("PRAGMA cache_size=-64000")  # 64MB cache
    cursor.close()


class BulkWriter:
    """Bulk writes using Core SQL, bypassing ORM overhead."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.conn = engine.connect()
        self.transaction = self.conn.begin()

    def insert_or_replace_many(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Bulk INSERT OR REPLACE, returning count written."""
        if not records:
            return 0

        table = model_class.__table__  # type: ignore[attr-defined]
        self.conn.execute(table.insert().prefix_with("OR REPLACE"), records)
        return len(records)

    def delete_where(
        self,
        model_class: type[SQLModel],
        condition: str,
        params: dict[str, Any],
    ) -> int:
        """Bulk delete rows matching condition, returning count affected."""
        table = model_class.__table__  # type: ignore[attr-defined]
        sql = f"DELETE FROM {table.name} WHERE {condition}"
        result = self.conn.execute(text(sql), params)
        return int(result.rowcount)

    def commit(self) -> None:
        """Commit the current transaction."""
        self.transaction.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.transaction.rollback()

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
