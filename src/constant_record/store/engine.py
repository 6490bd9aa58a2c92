"""In-memory SQLite engine holding every collection's relation.

This module provides:
- MemoryEngine: SQLAlchemy engine on a named, shared in-memory SQLite database
- Generation tracking: a stamp in the database header identifies each database
- Table helpers used by collections (create, insert, key lookups, filters)

Every pooled connection (one per thread that reads) opens the same named
in-memory database, which lives as long as at least one connection to it
is open. When the pool is disposed (explicitly through ``reset()`` or by
anything else holding the engine) the next checkout opens a fresh, empty
database. A new database is recognized by its unset ``user_version``; the
``connect`` event stamps it with the next ``generation`` so collections can
notice and replay their definitions before they are queried. Further
connections to a stamped database leave the generation alone.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import MetaData, Table, create_engine, event, func, inspect, select
from sqlalchemy.pool import QueuePool

from constant_record.config.models import DatabaseConfig

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.engine import RowMapping
    from sqlalchemy.sql import ColumnElement

logger = structlog.get_logger()


class MemoryEngine:
    """SQLAlchemy engine for constant-record relations.

    Connections come from a ``QueuePool`` of ``pool_size`` connections, all
    attached to one shared-cache in-memory database private to this engine,
    so readers on other threads see the relations built by the loading
    thread.
    """

    def __init__(self, config: DatabaseConfig | None = None) -> None:
        self.config = config or DatabaseConfig()
        self.name = f"constant_record_{uuid.uuid4().hex}"
        self._generation = 0
        self._stamp_lock = threading.Lock()
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"{self.config.adapter}:///file:{self.name}?mode=memory&cache=shared&uri=true",
            poolclass=QueuePool,
            pool_size=self.config.pool_size,
            connect_args={"check_same_thread": False},
            echo=self.config.echo,
        )
        event.listen(engine, "connect", self._on_connect)
        return engine

    def _on_connect(self, dbapi_conn: Any, _connection_record: Any) -> None:
        with self._stamp_lock:
            cursor = dbapi_conn.cursor()
            try:
                stamp = cursor.execute("PRAGMA user_version").fetchone()[0]
                if stamp:
                    return
                # Fresh database
                self._generation += 1
                cursor.execute(f"PRAGMA user_version = {int(self._generation)}")
            finally:
                cursor.close()
        logger.debug("memory_database_opened", generation=self._generation)

    @property
    def generation(self) -> int:
        """Identity of the current in-memory database.

        Checks a connection out first, so a disposed pool is replaced (and
        counted) before the caller compares generations.
        """
        with self.engine.connect():
            pass
        return self._generation

    def reset(self) -> None:
        """Discard every relation by closing the pooled connections."""
        self.engine.dispose()
        logger.info("storage_reset", previous_generation=self._generation)

    def dispose(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def has_table(self, name: str) -> bool:
        with self.engine.connect() as conn:
            return inspect(conn).has_table(name)

    def ensure_table(self, table: Table) -> bool:
        """Create the relation unless it exists. Returns True if created."""
        with self.engine.begin() as conn:
            if inspect(conn).has_table(table.name):
                return False
            table.create(conn)
        logger.debug("relation_created", table=table.name, columns=list(table.columns.keys()))
        return True

    def drop_table(self, table: Table) -> None:
        with self.engine.begin() as conn:
            table.drop(conn, checkfirst=True)

    def reflect(self, name: str) -> Table:
        """Load a relation's definition from the database.

        Raises:
            sqlalchemy.exc.NoSuchTableError: The relation was never materialized.
        """
        with self.engine.connect() as conn:
            return Table(name, MetaData(), autoload_with=conn)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def insert(self, table: Table, row: Mapping[str, Any]) -> None:
        """Insert one row with explicit values.

        ``values(**row)`` makes SQLAlchemy reject columns the table lacks
        (``CompileError: Unconsumed column names``).
        """
        with self.engine.begin() as conn:
            conn.execute(table.insert().values(**row))

    def get(self, table: Table, key_column: str, key: Any) -> RowMapping | None:
        stmt = select(table).where(table.c[key_column] == key)
        with self.engine.connect() as conn:
            return conn.execute(stmt).mappings().first()

    def select(
        self,
        table: Table,
        criteria: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[RowMapping]:
        """Rows matching every equality in ``criteria``."""
        stmt = select(table)
        for column, value in (criteria or {}).items():
            stmt = stmt.where(_equals(table, column, value))
        if order_by is not None:
            stmt = stmt.order_by(table.c[order_by])
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.engine.connect() as conn:
            return list(conn.execute(stmt).mappings())

    def select_in(
        self,
        table: Table,
        column: str,
        values: Sequence[Any],
        order_by: str | None = None,
    ) -> list[RowMapping]:
        """Rows whose ``column`` is one of ``values``. Callers never pass an empty list."""
        stmt = select(table).where(table.c[column].in_(list(values)))
        if order_by is not None:
            stmt = stmt.order_by(table.c[order_by])
        with self.engine.connect() as conn:
            return list(conn.execute(stmt).mappings())

    def select_where(
        self,
        table: Table,
        conditions: Iterable[ColumnElement[bool]],
        order_by: str | None = None,
    ) -> list[RowMapping]:
        """Rows matching arbitrary SQLAlchemy boolean expressions."""
        stmt = select(table)
        for condition in conditions:
            stmt = stmt.where(condition)
        if order_by is not None:
            stmt = stmt.order_by(table.c[order_by])
        with self.engine.connect() as conn:
            return list(conn.execute(stmt).mappings())

    def pluck(
        self,
        table: Table,
        column: str,
        criteria: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Any]:
        stmt = select(table.c[column])
        for key, value in (criteria or {}).items():
            stmt = stmt.where(_equals(table, key, value))
        if order_by is not None:
            stmt = stmt.order_by(table.c[order_by])
        with self.engine.connect() as conn:
            return list(conn.execute(stmt).scalars())

    def count(self, table: Table, criteria: Mapping[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(table)
        for column, value in (criteria or {}).items():
            stmt = stmt.where(_equals(table, column, value))
        with self.engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())


def _equals(table: Table, column: str, value: Any) -> Any:
    """Equality predicate; ``None`` becomes IS NULL and lists become IN."""
    col = table.c[column]
    if value is None:
        return col.is_(None)
    if isinstance(value, list | tuple | set | frozenset):
        return col.in_(list(value))
    return col == value


def distinct(values: Iterable[Any]) -> list[Any]:
    """De-duplicate, keeping first-seen order."""
    return list(dict.fromkeys(values))
