"""Core module exports."""

from constant_record.core.errors import (
    BadDataFileError,
    ConfigError,
    ConstantRecordError,
    DuplicateKeyError,
    ErrorCode,
    InvalidInputError,
    ReadOnlyError,
    RecordNotFoundError,
)
from constant_record.core.logging import configure_logging, get_logger

__all__ = [
    # Errors
    "BadDataFileError",
    "ConfigError",
    "ConstantRecordError",
    "DuplicateKeyError",
    "ErrorCode",
    "InvalidInputError",
    "ReadOnlyError",
    "RecordNotFoundError",
    # Logging
    "configure_logging",
    "get_logger",
]
