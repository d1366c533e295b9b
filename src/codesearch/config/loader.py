"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CODESEARCH__SECTION__KEY)
3. Explicit config file (``code-search --config PATH``)
4. Global config (~/.config/code-search/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from codesearch.config.models import (
    ChunkingConfig,
    CodeSearchConfig,
    DatabaseConfig,
    IndexingConfig,
    LoggingConfig,
    ModelConfig,
    SearchConfig,
)
from codesearch.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/code-search/config.yaml").expanduser()

MANIFESTS_DIRNAME = "manifests"

CONFIG_HEADER = """\
# code-search configuration
#
# Every key can be overridden with an environment variable:
#   CODESEARCH__<SECTION>__<KEY>=<VALUE>   e.g. CODESEARCH__SEARCH__FTS_WEIGHT=0.7
#
# Changing model.model_type requires 'code-search index --force'.

"""


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class CodeSearchSettings(BaseSettings):
        """Root config. Env vars: CODESEARCH__MODEL__MODEL_TYPE, CODESEARCH__SEARCH__FTS_WEIGHT, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CODESEARCH__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        model: ModelConfig = ModelConfig()
        indexing: IndexingConfig = IndexingConfig()
        chunking: ChunkingConfig = ChunkingConfig()
        search: SearchConfig = SearchConfig()
        database: DatabaseConfig = DatabaseConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CodeSearchSettings


def load_config(config_path: Path | None = None, **kwargs: Any) -> CodeSearchConfig:
    """Load config: defaults < global yaml < explicit yaml < env vars < kwargs.

    Args:
        config_path: Optional YAML file layered over the global config.
                     Must exist when given.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML, or validation errors.
    """
    yaml_config = _load_yaml(GLOBAL_CONFIG_PATH)

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError.file_not_found(str(config_path))
        yaml_config = _deep_merge(yaml_config, _load_yaml(config_path))

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    return CodeSearchConfig.model_validate(settings.model_dump())


def write_default_config(path: Path, config: CodeSearchConfig | None = None) -> None:
    """Write a config file with a usage header.

    Args:
        path: Destination YAML path (parent directories are created).
        config: Values to write (uses defaults if None).
    """
    cfg = config or CodeSearchConfig()
    data = cfg.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    content = CONFIG_HEADER + yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    path.write_text(content)


def get_data_dir(config: CodeSearchConfig) -> Path:
    return Path(config.database.data_dir)


def get_db_path(config: CodeSearchConfig) -> Path:
    """SQLite database path: {data_dir}/{db_name}."""
    return get_data_dir(config) / config.database.db_name


def get_manifest_dir(config: CodeSearchConfig) -> Path:
    """Manifest directory: {data_dir}/manifests."""
    return get_data_dir(config) / MANIFESTS_DIRNAME
