"""constant-record: read-only, in-memory reference data with relational queries."""

from constant_record.catalog import Catalog
from constant_record.config import ConstantRecordConfig, load_config
from constant_record.core.errors import (
    BadDataFileError,
    ConstantRecordError,
    DuplicateKeyError,
    ErrorCode,
    InvalidInputError,
    ReadOnlyError,
    RecordNotFoundError,
)
from constant_record.store import (
    Association,
    AssociationStrategy,
    Collection,
    CollectionState,
    Database,
    ModelSource,
    Record,
    derive_symbol,
)

__version__ = "0.1.0"

__all__ = [
    "Association",
    "AssociationStrategy",
    "BadDataFileError",
    "Catalog",
    "Collection",
    "CollectionState",
    "ConstantRecordConfig",
    "ConstantRecordError",
    "Database",
    "DuplicateKeyError",
    "ErrorCode",
    "InvalidInputError",
    "ModelSource",
    "ReadOnlyError",
    "Record",
    "RecordNotFoundError",
    "derive_symbol",
    "load_config",
]
