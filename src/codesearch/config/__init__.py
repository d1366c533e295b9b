"""Config module exports."""

from codesearch.config.loader import (
    get_data_dir,
    get_db_path,
    get_manifest_dir,
    load_config,
    write_default_config,
)
from codesearch.config.models import (
    ChunkingConfig,
    CodeSearchConfig,
    DatabaseConfig,
    IndexingConfig,
    LoggingConfig,
    ModelConfig,
    SearchConfig,
)

__all__ = [
    "load_config",
    "write_default_config",
    "get_data_dir",
    "get_db_path",
    "get_manifest_dir",
    "CodeSearchConfig",
    "ChunkingConfig",
    "DatabaseConfig",
    "IndexingConfig",
    "LoggingConfig",
    "ModelConfig",
    "SearchConfig",
]
