"""Core module exports."""

from codesearch.core.errors import (
    CodeSearchError,
    ConfigError,
    EmbeddingError,
    ErrorCode,
    IndexingError,
    StorageError,
)
from codesearch.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from codesearch.core.progress import spinner, status

__all__ = [
    # Errors
    "CodeSearchError",
    "ConfigError",
    "EmbeddingError",
    "ErrorCode",
    "IndexingError",
    "StorageError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "spinner",
    "status",
]
