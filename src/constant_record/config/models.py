"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONSTANT_RECORD__SECTION__KEY)
3. YAML config file passed to load_config(config_path=...)
4. Built-in defaults (this file)

Environment Variable Format:
    CONSTANT_RECORD__<SECTION>__<KEY>=<VALUE>

Examples:
    CONSTANT_RECORD__LOGGING__LEVEL=DEBUG
    CONSTANT_RECORD__DATA__DATA_DIR=/srv/app/config/data
    CONSTANT_RECORD__DATABASE__POOL_SIZE=1
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from constant_record.config.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_DATA_FILE_SUFFIX,
    DEFAULT_NAME_COLUMN,
    DEFAULT_PRIMARY_KEY,
    JSON_SUFFIXES,
    MEMORY_DATABASE,
    YAML_SUFFIXES,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

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
        CONSTANT_RECORD__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every defined record.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DataConfig(BaseModel):
    """Where structured data files live.

    Env vars:
        CONSTANT_RECORD__DATA__DATA_DIR: Base directory for <collection>.yml files
        CONSTANT_RECORD__DATA__FILE_SUFFIX: Suffix of default data files
    """

    data_dir: str = Field(
        default=DEFAULT_DATA_DIR,
        description="Base directory for data files. Relative paths resolve against the CWD.",
    )
    file_suffix: str = Field(
        default=DEFAULT_DATA_FILE_SUFFIX,
        description="Suffix of the default data file (<collection><suffix>).",
    )

    @field_validator("file_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if v not in YAML_SUFFIXES | JSON_SUFFIXES:
            raise ValueError(f"Unsupported data file suffix: {v}")
        return v


class DatabaseConfig(BaseModel):
    """In-memory storage connection parameters.

    Env vars:
        CONSTANT_RECORD__DATABASE__ADAPTER: SQLAlchemy dialect (only sqlite)
        CONSTANT_RECORD__DATABASE__DATABASE: In-memory location marker
        CONSTANT_RECORD__DATABASE__POOL_SIZE: Connection pool size
    """

    adapter: Literal["sqlite"] = Field(
        default="sqlite",
        description="SQLAlchemy dialect for the in-memory relations.",
    )
    database: str = Field(
        default=MEMORY_DATABASE,
        description="Database location. Must stay in memory; relations are rebuilt from data.",
    )
    pool_size: int = Field(
        default=5,
        description="Connections kept by the pool; one per concurrently reading thread.",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements through the sqlalchemy.engine logger.",
    )

    @field_validator("database")
    @classmethod
    def validate_database(cls, v: str) -> str:
        if v not in (MEMORY_DATABASE, ""):
            raise ValueError(f"Constant records must use an in-memory database, got {v}")
        return v

    @field_validator("pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Pool size must be >= 1, got {v}")
        return v


class CollectionDefaults(BaseModel):
    """Per-collection defaults, overridable when a collection is created.

    Env vars:
        CONSTANT_RECORD__COLLECTIONS__PRIMARY_KEY: Primary key column
        CONSTANT_RECORD__COLLECTIONS__NAME_COLUMN: Column symbols are derived from
    """

    primary_key: str = Field(default=DEFAULT_PRIMARY_KEY)
    name_column: str = Field(
        default=DEFAULT_NAME_COLUMN,
        description="Human-readable column symbols (ROCK, HIP_HOP) are derived from.",
    )


class ConstantRecordConfig(BaseModel):
    """Root configuration for constant-record."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    collections: CollectionDefaults = Field(default_factory=CollectionDefaults)
