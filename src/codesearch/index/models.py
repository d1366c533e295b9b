"""SQLModel definitions for the chunk store.

One table, ``chunks``, holds every indexed line range across all codebases.
Uniqueness on (codebase_id, file_path, start_line, end_line) and the FTS5
shadow table are created as raw DDL in ``codesearch.index.db``.
"""

from sqlalchemy import Column, LargeBinary
from sqlmodel import Field, SQLModel


class ChunkRecord(SQLModel, table=True):
    """One stored chunk with its embedding as a little-endian float32 blob."""

    __tablename__ = "chunks"

    id: int | None = Field(default=None, primary_key=True)
    codebase_id: str = Field(index=True)
    file_path: str = Field(index=True)
    start_line: int
    end_line: int
    content: str
    language: str | None = None
    hash: str = Field(index=True)  # content hash of the owning file
    embedding: bytes | None = Field(default=None, sa_column=Column(LargeBinary, nullable=True))
    indexed_at: float | None = None
