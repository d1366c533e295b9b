"""Line-window chunking.

Files are cut into overlapping windows of ``chunk_size`` lines. A window's
stable ID depends only on its path and line range, so the same range hashes
identically across re-indexes even when the content changed.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

import numpy as np

from codesearch.core.languages import UNKNOWN_LANGUAGE, detect_language

__all__ = ["Chunk", "chunk_id", "detect_language", "split_file"]

DEFAULT_CHUNK_SIZE = 50
DEFAULT_OVERLAP = 10


def chunk_id(path: str, start_line: int, end_line: int) -> str:
    """Stable ID for a line range: first 16 hex chars of sha256("path:start-end")."""
    return hashlib.sha256(f"{path}:{start_line}-{end_line}".encode()).hexdigest()[:16]


@dataclass
class Chunk:
    """One contiguous, 1-based inclusive line range of a file.

    ``file_hash`` is the content hash of the whole owning file, not of this
    chunk's text. ``embedding`` is filled in by the pipeline after splitting.
    """

    file_path: str
    start_line: int
    end_line: int
    content: str
    language: str = UNKNOWN_LANGUAGE
    codebase_id: str = ""
    file_hash: str = ""
    embedding: np.ndarray | None = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> str:
        return chunk_id(self.file_path, self.start_line, self.end_line)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


def _split_lines(content: str) -> list[str]:
    """Split on line feeds only, dropping one carriage return before each.

    A final line feed does not start an extra empty line. Form feeds,
    U+2028 and the other separators that str.splitlines() honours stay
    inside their line.
    """
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def split_file(
    path: str,
    content: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    *,
    codebase_id: str = "",
    file_hash: str = "",
) -> list[Chunk]:
    """Split file content into overlapping line windows.

    Each window after the first starts ``overlap`` lines before the previous
    one ended, but always at least one line after the previous start, so an
    overlap >= chunk_size still terminates. The last window ends on the
    file's last line and may be shorter than ``chunk_size``.

    Args:
        path: Root-relative file path, used for IDs and language detection.
        content: Decoded file text with LF or CRLF line endings.
        chunk_size: Maximum lines per window.
        overlap: Lines shared by consecutive windows.

    Returns:
        Chunks in file order; empty for empty content.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be >= 0, got {overlap}")

    lines = _split_lines(content)
    total = len(lines)
    if total == 0:
        return []

    language = detect_language(path)
    chunks: list[Chunk] = []
    start = 0
    while True:
        end = min(start + chunk_size, total)
        chunks.append(
            Chunk(
                file_path=path,
                start_line=start + 1,
                end_line=end,
                content="\n".join(lines[start:end]),
                language=language,
                codebase_id=codebase_id,
                file_hash=file_hash,
            )
        )
        if end >= total:
            break
        start = max(end - overlap, start + 1)

    return chunks
