"""SQLModel tables as association sources.

Wrapping a table model in a ``ModelSource`` lets it sit on either side of
an association with a constant collection::

    articles = catalog.register(ModelSource(Article, db))
    articles.belongs_to("author")
    articles.has_many("publishers", through="article_publishers")

Lookups go through the model's own database with plain ``select``
statements, one per resolver step.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlmodel import SQLModel, select

from constant_record.store.associations import AssociationsMixin, RecordSource, SourceLookup

if TYPE_CHECKING:
    from constant_record.store.database import Database


class ModelSource(AssociationsMixin):
    """Query surface over one SQLModel table model."""

    def __init__(
        self,
        model: type[SQLModel],
        database: Database,
        *,
        name: str | None = None,
        lookup: SourceLookup | None = None,
    ) -> None:
        table = model.__table__  # type: ignore[attr-defined]
        self.model = model
        self.database = database
        self.name = name or str(table.name)
        self.primary_key = next(iter(table.primary_key.columns)).name
        self._lookup = lookup
        self._associations = {}

    def bind(self, lookup: SourceLookup) -> None:
        self._lookup = lookup

    def _column(self, column: str) -> Any:
        return getattr(self.model, column)

    def _statement(self, criteria: Mapping[str, Any]) -> Any:
        stmt = select(self.model)
        for column, value in criteria.items():
            stmt = stmt.where(self._column(column) == value)
        return stmt.order_by(self._column(self.primary_key))

    def where(self, **criteria: Any) -> list[Any]:
        with self.database.session() as session:
            return list(session.exec(self._statement(criteria)).all())

    def where_in(self, column: str, values: Sequence[Any]) -> list[Any]:
        if not values:
            return []
        stmt = (
            select(self.model)
            .where(self._column(column).in_(list(values)))
            .order_by(self._column(self.primary_key))
        )
        with self.database.session() as session:
            return list(session.exec(stmt).all())

    def pluck(self, column: str, where: Mapping[str, Any] | None = None) -> list[Any]:
        stmt = select(self._column(column))
        for key, value in (where or {}).items():
            stmt = stmt.where(self._column(key) == value)
        stmt = stmt.order_by(self._column(self.primary_key))
        with self.database.session() as session:
            return list(session.exec(stmt).all())

    def find_by(self, **criteria: Any) -> Any | None:
        with self.database.session() as session:
            return session.exec(self._statement(criteria)).first()

    def count(self, **criteria: Any) -> int:
        return len(self.where(**criteria))

    def _lookup_source(self, name: str) -> RecordSource:
        if self._lookup is not None:
            return self._lookup(name)
        if name == self.name:
            return self
        raise LookupError(f"{self.name} cannot resolve source {name!r} outside a catalog")

    def __repr__(self) -> str:
        return f"ModelSource({self.model.__name__}, name={self.name!r})"
