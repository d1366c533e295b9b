"""code-search error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Indexing
- 4xxx: Storage
- 5xxx: Embedding

Skippable errors (FILE_READ, EMBEDDING_INFERENCE) are caught at the per-file
boundary by the indexing pipeline. Everything else propagates to the caller.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Indexing (3xxx)
    INDEX_IO_ERROR = 3001
    INDEX_FILE_READ = 3002
    INDEX_MANIFEST_ERROR = 3003
    INDEX_SERIALIZATION = 3004
    INDEX_CODEBASE_NOT_INDEXED = 3005

    # Storage (4xxx)
    STORAGE_DATABASE = 4001

    # Embedding (5xxx)
    EMBEDDING_MODEL_LOAD = 5001
    EMBEDDING_INFERENCE = 5002


@dataclass(frozen=True, slots=True)
class CodeSearchError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'INDEX_FILE_READ')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeSearchError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class IndexingError(CodeSearchError):
    """Errors raised while scanning, diffing or committing a codebase."""

    @classmethod
    def io_error(cls, path: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_IO_ERROR,
            message=f"I/O error at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def file_read(cls, path: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_FILE_READ,
            message=f"Failed to read file {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def manifest_error(cls, path: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_MANIFEST_ERROR,
            message=f"Manifest error at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def serialization(cls, path: str, reason: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_SERIALIZATION,
            message=f"Failed to (de)serialize {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def codebase_not_indexed(cls, path: str) -> "IndexingError":
        return cls(
            code=ErrorCode.INDEX_CODEBASE_NOT_INDEXED,
            message=f"Codebase not indexed: {path}",
            details={"path": path},
        )


class StorageError(CodeSearchError):
    """Chunk store failures. Always fatal for an indexing run."""

    @classmethod
    def database(cls, operation: str, reason: str) -> "StorageError":
        return cls(
            code=ErrorCode.STORAGE_DATABASE,
            message=f"Database error during {operation}: {reason}",
            details={"operation": operation, "reason": reason},
        )


class EmbeddingError(CodeSearchError):
    """Embedding backend errors."""

    @classmethod
    def model_load(cls, model: str, reason: str) -> "EmbeddingError":
        return cls(
            code=ErrorCode.EMBEDDING_MODEL_LOAD,
            message=f"Failed to load embedding model {model}: {reason}",
            details={"model": model, "reason": reason},
        )

    @classmethod
    def inference(cls, model: str, reason: str) -> "EmbeddingError":
        return cls(
            code=ErrorCode.EMBEDDING_INFERENCE,
            message=f"Embedding inference failed ({model}): {reason}",
            retryable=True,
            details={"model": model, "reason": reason},
        )

