"""Constant collections: read-only, in-memory relations built from data.

A collection is defined inline::

    genres = catalog.collection("genres")
    genres.data({"id": 1, "name": "Rock", "slug": "rock"})
    genres.data({"id": 2, "name": "Hip-Hop", "slug": "hiphop"})

or loaded from ``<data_dir>/<name>.yml``::

    catalog.collection("publishers").load_data()

The first record fixes the schema. Every defined mapping is retained so the
relation can be replayed whenever the in-memory database is replaced, which
callers never observe: every read goes through ``ensure_fresh()`` first.
After load, records cannot be changed through the collection or a record.

Lifecycle::

    EMPTY -> SCHEMA_INFERRED -> LOADED
      ^                           |
      +--- storage reset (replay)-+
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Column, MetaData, Table

from constant_record.core.errors import (
    BadDataFileError,
    DuplicateKeyError,
    InvalidInputError,
    ReadOnlyError,
    RecordNotFoundError,
)
from constant_record.store.associations import AssociationsMixin, RecordSource, SourceLookup
from constant_record.store.definitions import DefinitionStore
from constant_record.store.loader import is_record_list, load_records
from constant_record.store.records import Record
from constant_record.store.schema import ColumnType, coerce_value, column_type, infer_schema
from constant_record.store.symbols import SymbolTable

if TYPE_CHECKING:
    from sqlalchemy.engine import RowMapping
    from sqlalchemy.sql import ColumnElement
    from sqlalchemy.sql.base import ReadOnlyColumnCollection

    from constant_record.config.models import ConstantRecordConfig
    from constant_record.store.engine import MemoryEngine

logger = structlog.get_logger()


class CollectionState(str, Enum):
    EMPTY = "empty"
    SCHEMA_INFERRED = "schema_inferred"
    LOADED = "loaded"


class Collection(AssociationsMixin):
    """A named group of constant records sharing one inferred schema."""

    def __init__(
        self,
        name: str,
        engine: MemoryEngine,
        config: ConstantRecordConfig,
        *,
        primary_key: str | None = None,
        name_column: str | None = None,
        lookup: SourceLookup | None = None,
    ) -> None:
        self.name = name
        self.engine = engine
        self.primary_key = primary_key or config.collections.primary_key
        self.name_column = name_column or config.collections.name_column
        self._config = config
        self._lookup = lookup
        self._associations = {}

        self._definitions = DefinitionStore(self.primary_key)
        self._symbols = SymbolTable()
        self._schema: dict[str, ColumnType] | None = None
        self._table: Table | None = None
        self._seen_generation: int | None = None

        self._loaded = False
        self._file_backed = False
        self._data_file: Path | None = None
        self._default_data_file: Path | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._loaded

    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def state(self) -> CollectionState:
        if self._table is None:
            return CollectionState.EMPTY
        if self._loaded:
            return CollectionState.LOADED
        return CollectionState.SCHEMA_INFERRED

    @property
    def schema(self) -> dict[str, ColumnType]:
        """Inferred column types, excluding the primary key. Empty before the first record."""
        return dict(self._schema or {})

    @property
    def symbols(self) -> Mapping[str, Any]:
        return self._symbols

    def symbol(self, token: str) -> Any:
        """Primary key bound to ``token`` (``genres.symbol("HIP_HOP") == 2``)."""
        return self._symbols[token]

    @property
    def data_file(self) -> Path:
        """Explicit file from ``load_data(path)``, else ``<data_dir>/<name><suffix>``."""
        if self._data_file is not None:
            return self._data_file
        if self._default_data_file is None:
            # Config is read once, on first use
            data = self._config.data
            self._default_data_file = Path(data.data_dir) / f"{self.name}{data.file_suffix}"
        return self._default_data_file

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def data(self, attributes: Mapping[str, Any]) -> Record:
        """Define one constant record: ``data({"id": 1, "name": "California"})``.

        Raises:
            InvalidInputError: Not a non-empty mapping, or no primary key value.
            DuplicateKeyError: The primary key is already defined.
            sqlalchemy.exc.CompileError: A column the first record did not have.
        """
        self.ensure_fresh()
        return self._define(attributes, check_duplicates=True)

    def load_data(self, path: Path | str | None = None) -> None:
        """Set (or reset to the default) the data file and reload from it."""
        self._data_file = Path(path) if path is not None else None
        self._file_backed = True
        self.reload()

    def load(self, reload: bool = False) -> None:
        """Load the data file unless already loaded.

        Raises:
            FileNotFoundError: The data file does not exist.
            BadDataFileError: The file is not a non-empty list of mappings.
        """
        if self._loaded and not reload:
            return

        path = self.data_file
        parsed = load_records(path)
        if not is_record_list(parsed):
            raise BadDataFileError.expected_list(str(path), parsed)

        self._loaded = False
        self._file_backed = True
        self._reset_relation()
        for attributes in parsed:
            self._define(attributes, check_duplicates=True)

        self._loaded = True
        logger.info("data_file_loaded", collection=self.name, path=str(path), records=len(parsed))

    def reload(self) -> None:
        """Rebuild from the data file, or from retained definitions when inline-defined.

        Duplicate checks start from scratch for this pass.
        """
        if self._file_backed:
            self.load(reload=True)
            return

        mappings = self._definitions.snapshot()
        self._loaded = False
        self._reset_relation()
        for attributes in mappings:
            self._define(attributes, check_duplicates=True)
        self._loaded = True
        logger.info("collection_reloaded", collection=self.name, records=len(mappings))

    def ensure_fresh(self) -> bool:
        """Replay definitions if the storage handle changed. Returns True if replayed."""
        if self._seen_generation is None:
            return False
        generation = self.engine.generation
        if generation == self._seen_generation:
            return False

        mappings = self._definitions.snapshot()
        self._table = None
        self._schema = None
        self._definitions.clear()
        for attributes in mappings:
            self._define(attributes, check_duplicates=False)
        self._seen_generation = self.engine.generation

        logger.info(
            "collection_replayed",
            collection=self.name,
            generation=self._seen_generation,
            records=len(mappings),
        )
        return True

    def _reset_relation(self) -> None:
        self._discard_relation()
        self._definitions.clear()
        self._symbols.clear()

    def _define(self, attributes: Mapping[str, Any], *, check_duplicates: bool) -> Record:
        if not isinstance(attributes, Mapping) or not attributes:
            raise InvalidInputError.not_a_mapping(self.name, attributes)

        attrs = {str(column): value for column, value in attributes.items()}
        key = attrs.get(self.primary_key)
        if key is None or key is False or key == "":
            raise InvalidInputError.missing_primary_key(self.name, self.primary_key, attrs)
        if isinstance(key, Mapping | list | tuple | set | frozenset):
            raise InvalidInputError.invalid_primary_key(self.name, self.primary_key, key)

        materialized = self._table is None
        if materialized:
            self._materialize(attrs)

        if check_duplicates:
            existing = self._definitions.get(key)
            if existing is None:
                row = self.engine.get(self._relation_table(), self.primary_key, key)
                existing = dict(row) if row is not None else None
            if existing is not None:
                raise DuplicateKeyError.conflict(self.name, key, existing, attrs)

        record = Record(self, attrs, new_record=True)
        try:
            record.save()
        except Exception:
            if materialized:
                # Schema came from a record that was never stored
                self._discard_relation()
            raise

        self._definitions.append(attrs)
        if self._schema and self.name_column in self._schema:
            name = attrs.get(self.name_column)
            if name not in (None, ""):
                self._symbols.bind_name(name, key)

        logger.debug("record_defined", collection=self.name, key=key)
        return record

    def _discard_relation(self) -> None:
        if self._table is not None:
            self.engine.drop_table(self._table)
        self._table = None
        self._schema = None
        self._seen_generation = None

    def _materialize(self, attributes: Mapping[str, Any]) -> None:
        self._schema = infer_schema(attributes, self.primary_key)
        self._table = self._build_table(self._schema, attributes[self.primary_key])
        self.engine.ensure_table(self._table)
        self._seen_generation = self.engine.generation
        logger.info(
            "relation_materialized",
            collection=self.name,
            columns={name: kind.value for name, kind in self._schema.items()},
        )

    def _build_table(self, schema: Mapping[str, ColumnType], key: Any) -> Table:
        key_type = column_type(key)
        columns = [
            Column(
                self.primary_key,
                key_type.sql_type(),
                primary_key=True,
                autoincrement=key_type is ColumnType.INTEGER,
            )
        ]
        columns.extend(Column(name, kind.sql_type()) for name, kind in schema.items())
        return Table(self.name, MetaData(), *columns)

    def _insert_record(self, record: Record) -> None:
        """Write a new record's row. The only storage mutation path."""
        schema = self._schema or {}
        row = {
            column: coerce_value(schema[column], value) if column in schema else value
            for column, value in record.to_dict().items()
        }
        self.engine.insert(self._relation_table(), row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _relation_table(self) -> Table:
        if self._table is None:
            # Raises NoSuchTableError for a relation that was never materialized
            return self.engine.reflect(self.name)
        return self._table

    def _relation(self) -> Table:
        self.ensure_fresh()
        return self._relation_table()

    def _records(self, rows: Sequence[RowMapping]) -> list[Record]:
        return [Record(self, row) for row in rows]

    @property
    def c(self) -> ReadOnlyColumnCollection[str, Column[Any]]:
        """Columns of the relation, for ``filter()`` expressions."""
        return self._relation().c

    def find(self, key: Any) -> Record:
        """Record by primary key. Raises ``RecordNotFoundError``."""
        row = self.engine.get(self._relation(), self.primary_key, key)
        if row is None:
            raise RecordNotFoundError.for_key(self.name, key)
        return Record(self, row)

    def find_by(self, **criteria: Any) -> Record | None:
        rows = self.engine.select(self._relation(), criteria, order_by=self.primary_key, limit=1)
        return Record(self, rows[0]) if rows else None

    def exists(self, key: Any) -> bool:
        return self.engine.get(self._relation(), self.primary_key, key) is not None

    def where(self, **criteria: Any) -> list[Record]:
        """Records matching every ``column=value`` (lists match any value)."""
        rows = self.engine.select(self._relation(), criteria, order_by=self.primary_key)
        return self._records(rows)

    def where_in(self, column: str, values: Sequence[Any]) -> list[Record]:
        table = self._relation()
        if not values:
            return []
        return self._records(
            self.engine.select_in(table, column, values, order_by=self.primary_key)
        )

    def filter(self, *conditions: ColumnElement[bool]) -> list[Record]:
        """Records matching SQLAlchemy expressions built from ``c``."""
        table = self._relation()
        return self._records(
            self.engine.select_where(table, conditions, order_by=self.primary_key)
        )

    def pluck(self, column: str, where: Mapping[str, Any] | None = None) -> list[Any]:
        return self.engine.pluck(self._relation(), column, where, order_by=self.primary_key)

    def all(self) -> list[Record]:
        return self.where()

    def first(self) -> Record | None:
        return self.find_by()

    def count(self, **criteria: Any) -> int:
        """Number of rows. A collection with no data yet has none."""
        self.ensure_fresh()
        if self._table is None:
            return 0
        return self.engine.count(self._table, criteria)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Record]:
        return iter(self.all())

    # ------------------------------------------------------------------
    # Read-only guard
    # ------------------------------------------------------------------

    def _reject(self, operation: str) -> None:
        logger.warning("read_only_violation", collection=self.name, operation=operation)
        raise ReadOnlyError.mutation(self.name, operation)

    def update_all(self, *args: Any, **kwargs: Any) -> None:  # noqa: ARG002
        self._reject("update_all")

    def delete_all(self, *args: Any, **kwargs: Any) -> None:  # noqa: ARG002
        self._reject("delete_all")

    def destroy_all(self, *args: Any, **kwargs: Any) -> None:  # noqa: ARG002
        self._reject("destroy_all")

    def delete(self, key_or_keys: Any) -> None:  # noqa: ARG002
        self._reject("delete")

    def destroy(self, key_or_keys: Any) -> None:  # noqa: ARG002
        self._reject("destroy")

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    def _lookup_source(self, name: str) -> RecordSource:
        if self._lookup is not None:
            return self._lookup(name)
        if name == self.name:
            return self
        raise LookupError(f"{self.name} cannot resolve source {name!r} outside a catalog")

    def __repr__(self) -> str:
        return f"Collection({self.name!r}, state={self.state.value}, records={len(self._definitions)})"
