"""In-memory constant collections and their associations."""

from constant_record.store.associations import Association, AssociationStrategy
from constant_record.store.collection import Collection, CollectionState
from constant_record.store.database import Database
from constant_record.store.engine import MemoryEngine
from constant_record.store.records import Record
from constant_record.store.schema import ColumnType, ValueKind, infer_schema
from constant_record.store.sources import ModelSource
from constant_record.store.symbols import SymbolTable, derive_symbol

__all__ = [
    "Association",
    "AssociationStrategy",
    "Collection",
    "CollectionState",
    "ColumnType",
    "Database",
    "MemoryEngine",
    "ModelSource",
    "Record",
    "SymbolTable",
    "ValueKind",
    "derive_symbol",
    "infer_schema",
]
