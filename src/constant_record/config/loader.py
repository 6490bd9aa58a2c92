"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (CONSTANT_RECORD__SECTION__KEY)
3. YAML config file, when a path is given
4. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from constant_record.config.models import (
    CollectionDefaults,
    ConstantRecordConfig,
    DatabaseConfig,
    DataConfig,
    LoggingConfig,
)
from constant_record.core.errors import ConfigError


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(loaded, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return loaded


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
    """Create a Settings class bound to one YAML source."""

    class ConstantRecordSettings(BaseSettings):
        """Root config. Env vars: CONSTANT_RECORD__DATA__DATA_DIR, etc."""

        model_config = SettingsConfigDict(
            env_prefix="CONSTANT_RECORD__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        data: DataConfig = DataConfig()
        database: DatabaseConfig = DatabaseConfig()
        collections: CollectionDefaults = CollectionDefaults()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return ConstantRecordSettings


def load_config(config_path: Path | None = None, **kwargs: Any) -> ConstantRecordConfig:
    """Load config: defaults < YAML file < env vars < kwargs.

    Args:
        config_path: Optional YAML file with any subset of the config sections.
        **kwargs: Override values (highest precedence), e.g. ``data={"data_dir": "x"}``.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    yaml_config = _load_yaml(config_path) if config_path else {}

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return ConstantRecordConfig.model_validate(settings.model_dump())
