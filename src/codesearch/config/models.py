"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CODESEARCH__SECTION__KEY)
3. Explicit YAML file passed to load_config()
4. Global YAML (~/.config/code-search/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CODESEARCH__<SECTION>__<KEY>=<VALUE>

Examples:
    CODESEARCH__MODEL__MODEL_TYPE=nomic
    CODESEARCH__CHUNKING__CHUNK_SIZE=80
    CODESEARCH__SEARCH__FTS_WEIGHT=0.7
    CODESEARCH__DATABASE__DATA_DIR=/tmp/code-search
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from codesearch.core.excludes import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, DEFAULT_SKIP_FILES

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ModelName = Literal["minilm", "nomic"]

_MODEL_ALIASES = {
    "all-minilm-l6-v2": "minilm",
    "nomic-embed-text-v1.5": "nomic",
}


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CODESEARCH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ModelConfig(BaseModel):
    """Embedding model configuration.

    Env vars:
        CODESEARCH__MODEL__MODEL_TYPE: minilm (384 dims) or nomic (768 dims)
        CODESEARCH__MODEL__AUTO_DOWNLOAD: Fetch weights on first use
    """

    model_config = ConfigDict(protected_namespaces=())

    model_type: ModelName = Field(
        default="minilm",
        description="Embedding model. Changing it requires a forced re-index "
        "because stored vectors have the old model's dimension.",
    )
    auto_download: bool = Field(
        default=True,
        description="Download model weights on first use. When false, only the local cache is used.",
    )

    @field_validator("model_type", mode="before")
    @classmethod
    def normalize_model_type(cls, v: object) -> object:
        if isinstance(v, str):
            name = v.strip().lower()
            return _MODEL_ALIASES.get(name, name)
        return v


class IndexingConfig(BaseModel):
    """Codebase scanning configuration.

    Env vars:
        CODESEARCH__INDEXING__USE_GITIGNORE: Respect .gitignore files
        CODESEARCH__INDEXING__BATCH_SIZE: Embedding batch size
        CODESEARCH__INDEXING__MAX_WORKERS: Worker threads (default: executor default)
    """

    extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTENSIONS),
        description="Allow-list of file extensions. Files without an extension are not filtered.",
    )
    skip_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_DIRS),
        description="Directory names skipped anywhere in the tree.",
    )
    skip_files: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_FILES),
        description="File name glob patterns to skip (e.g. *.lock).",
    )
    use_gitignore: bool = Field(
        default=True,
        description="Apply .gitignore files found in the codebase.",
    )
    batch_size: int = Field(
        default=32,
        description="Number of chunks sent to the embedding model per call.",
    )
    max_workers: int | None = Field(
        default=None,
        description="Worker threads for scanning and chunking. None uses the executor default.",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class ChunkingConfig(BaseModel):
    """Line-window chunking configuration.

    Env vars:
        CODESEARCH__CHUNKING__CHUNK_SIZE: Lines per chunk
        CODESEARCH__CHUNKING__CHUNK_OVERLAP: Lines shared by consecutive chunks
    """

    chunk_size: int = Field(default=50, description="Lines per chunk.")
    chunk_overlap: int = Field(default=10, description="Lines shared by consecutive chunks.")

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"chunk_size must be >= 1, got {v}")
        return v

    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"chunk_overlap must be >= 0, got {v}")
        return v


class SearchConfig(BaseModel):
    """Hybrid search configuration.

    Env vars:
        CODESEARCH__SEARCH__DEFAULT_LIMIT: Results returned when no limit is given
        CODESEARCH__SEARCH__FTS_WEIGHT: Score assigned to lexical hits
        CODESEARCH__SEARCH__VECTOR_WEIGHT: Multiplier for cosine similarity
    """

    default_limit: int = Field(default=10, description="Results returned when no limit is given.")
    fts_weight: float = Field(
        default=0.6,
        description="Flat score for chunks found by full-text search.",
    )
    vector_weight: float = Field(
        default=0.4,
        description="Multiplier applied to cosine similarity for vector-only hits.",
    )

    @field_validator("default_limit")
    @classmethod
    def validate_default_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"default_limit must be >= 1, got {v}")
        return v


class DatabaseConfig(BaseModel):
    """Storage location configuration.

    Env vars:
        CODESEARCH__DATABASE__DATA_DIR: Directory holding the database and manifests
        CODESEARCH__DATABASE__DB_NAME: SQLite file name inside data_dir
    """

    data_dir: str = Field(
        default="~/.local/share/code-search",
        description="Directory holding the SQLite database and the manifests/ folder.",
        validate_default=True,
    )
    db_name: str = Field(default="index.db", description="SQLite database file name.")

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: str) -> str:
        return str(Path(v).expanduser())


class CodeSearchConfig(BaseModel):
    """Root configuration for code-search.

    All settings can be configured via:
    1. Environment variables: CODESEARCH__SECTION__KEY
    2. YAML config files (explicit path or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
