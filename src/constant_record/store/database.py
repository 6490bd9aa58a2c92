"""Persistent SQLite database for regular (mutable) SQLModel tables.

Constant collections live in memory; the records that point at them
(articles with an ``author_id``, join rows like ``article_publishers``)
usually live in an ordinary database. This module provides:
- Database: file-backed engine with WAL mode, SQLModel table creation
- session(): ORM session for reads and writes on those tables

Usage::

    db = Database(Path("app.db"))
    db.create_all()

    with db.session() as session:
        session.add(Article(author_id=1))
        session.commit()
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class Database:
    """SQLite connection manager for SQLModel tables."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _configure_pragmas)
        return engine

    def create_all(self, *models: type[SQLModel]) -> None:
        """Create tables from SQLModel metadata, optionally only for ``models``."""
        tables = [model.__table__ for model in models] or None  # type: ignore[attr-defined]
        SQLModel.metadata.create_all(self.engine, tables=tables)
        logger.debug("database_tables_created", path=str(self.db_path))

    def drop_all(self) -> None:
        """Drop all tables. Use with caution."""
        SQLModel.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session. Commit explicitly; closed on exit."""
        with Session(self.engine) as session:
            yield session

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any) -> None:
    """Configure SQLite for concurrent readers."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second wait
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.close()
