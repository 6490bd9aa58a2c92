"""Config module exports."""

from constant_record.config.loader import load_config
from constant_record.config.models import (
    CollectionDefaults,
    ConstantRecordConfig,
    DatabaseConfig,
    DataConfig,
    LoggingConfig,
    LogOutputConfig,
)

__all__ = [
    "load_config",
    "CollectionDefaults",
    "ConstantRecordConfig",
    "DataConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "LogOutputConfig",
]
