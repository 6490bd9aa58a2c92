"""constant-record error types with typed error codes.

Error code ranges:
- 1xxx: Records (input, duplicates, data files, read-only, lookups)
- 2xxx: Config
- 9xxx: Internal

Conditions raised by collaborators are not wrapped: a missing data file
surfaces as ``FileNotFoundError``, an unknown column as SQLAlchemy's
``CompileError`` and a never-materialized relation as ``NoSuchTableError``.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Input (10xx)
    INVALID_INPUT = 1001
    MISSING_PRIMARY_KEY = 1002

    # Identity (11xx)
    DUPLICATE_KEY = 1101

    # Data files (12xx)
    BAD_DATA_FILE = 1201

    # Read-only (13xx)
    READ_ONLY_RECORD = 1301

    # Lookup (14xx)
    RECORD_NOT_FOUND = 1401

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class ConstantRecordError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'DUPLICATE_KEY')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class InvalidInputError(ConstantRecordError, ValueError):
    """Attribute mapping is not a usable key/value structure."""

    @classmethod
    def not_a_mapping(cls, collection: str, value: Any) -> "InvalidInputError":
        return cls(
            code=ErrorCode.INVALID_INPUT,
            message=f"{collection}.data expects a mapping of attributes: {value!r}",
            details={"collection": collection, "value": repr(value)},
        )

    @classmethod
    def missing_primary_key(
        cls, collection: str, primary_key: str, attributes: dict[str, Any]
    ) -> "InvalidInputError":
        return cls(
            code=ErrorCode.MISSING_PRIMARY_KEY,
            message=f"{collection}.data missing primary key '{primary_key}': {attributes!r}",
            details={"collection": collection, "primary_key": primary_key},
        )

    @classmethod
    def invalid_primary_key(
        cls, collection: str, primary_key: str, value: Any
    ) -> "InvalidInputError":
        return cls(
            code=ErrorCode.INVALID_INPUT,
            message=f"{collection}.data primary key '{primary_key}' must be a scalar: {value!r}",
            details={"collection": collection, "primary_key": primary_key, "value": repr(value)},
        )


class DuplicateKeyError(ConstantRecordError):
    """A primary key was defined twice in the same collection."""

    @classmethod
    def conflict(
        cls,
        collection: str,
        key: Any,
        old: dict[str, Any],
        new: dict[str, Any],
    ) -> "DuplicateKeyError":
        return cls(
            code=ErrorCode.DUPLICATE_KEY,
            message=f"Duplicate {collection} id={key!r} found: {new!r} vs {old!r}",
            details={"collection": collection, "key": key, "old": old, "new": new},
        )


class BadDataFileError(ConstantRecordError):
    """Data file parsed, but not into a non-empty list of mappings."""

    @classmethod
    def expected_list(cls, path: str, parsed: Any) -> "BadDataFileError":
        return cls(
            code=ErrorCode.BAD_DATA_FILE,
            message=f"Expected list of mappings in data file {path}: {parsed!r}",
            details={"path": path},
        )


class ReadOnlyError(ConstantRecordError):
    """Application code tried to change a constant record."""

    @classmethod
    def mutation(cls, collection: str, operation: str) -> "ReadOnlyError":
        return cls(
            code=ErrorCode.READ_ONLY_RECORD,
            message=f"{collection} is read-only: {operation} is not allowed",
            details={"collection": collection, "operation": operation},
        )


class RecordNotFoundError(ConstantRecordError, LookupError):
    """No record with the requested primary key."""

    @classmethod
    def for_key(cls, collection: str, key: Any) -> "RecordNotFoundError":
        return cls(
            code=ErrorCode.RECORD_NOT_FOUND,
            message=f"Couldn't find {collection} with id={key!r}",
            details={"collection": collection, "key": key},
        )


class ConfigError(ConstantRecordError):
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
