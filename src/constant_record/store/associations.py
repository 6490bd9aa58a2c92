"""Associations between constant collections and other record sources.

Two collections may live in different databases (an in-memory constant
collection and a regular table in a persistent database), so associations
are never resolved with a SQL join. Each association names its strategy:

- ``DIRECT``: one-to-many on a foreign key in the target, a single lookup
  on the target using its own query path.
- ``THROUGH``: many-to-many through a join source, two sequential lookups:
  join keys first, then target rows by primary key.
- ``BELONGS_TO``: the inverse of ``DIRECT``, a primary-key lookup on the
  target using the foreign key stored on the record.

Naming follows table conventions: ``publishers`` has many ``articles``
through ``article_publishers`` on ``article_publishers.publisher_id`` and
``article_publishers.article_id``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from constant_record.core.inflection import foreign_key as default_foreign_key
from constant_record.core.inflection import pluralize
from constant_record.store.engine import distinct

logger = structlog.get_logger()


class AssociationStrategy(str, Enum):
    DIRECT = "direct"
    THROUGH = "through"
    BELONGS_TO = "belongs_to"


class RecordSource(Protocol):
    """What the resolver needs from either side of an association."""

    name: str
    primary_key: str

    def where(self, **criteria: Any) -> list[Any]: ...

    def where_in(self, column: str, values: Sequence[Any]) -> list[Any]: ...

    def pluck(self, column: str, where: Mapping[str, Any] | None = None) -> list[Any]: ...

    def find_by(self, **criteria: Any) -> Any | None: ...


SourceLookup = Callable[[str], RecordSource]


@dataclass(frozen=True, slots=True)
class Association:
    """How one source reaches another.

    ``foreign_key`` lives on the target (``DIRECT``), on the join source
    (``THROUGH``, pointing at the target) or on the record itself
    (``BELONGS_TO``). ``join_key`` is the join source's column pointing back
    at the owner. ``primary_key`` overrides the owner's key column.
    """

    name: str
    source: str
    target: str
    strategy: AssociationStrategy
    foreign_key: str
    primary_key: str | None = None
    through: str | None = None
    join_key: str | None = None

    @classmethod
    def has_many(
        cls,
        source: str,
        name: str,
        *,
        through: str | None = None,
        foreign_key: str | None = None,
        primary_key: str | None = None,
        target: str | None = None,
    ) -> Association:
        target = target or name
        if through is None:
            return cls(
                name=name,
                source=source,
                target=target,
                strategy=AssociationStrategy.DIRECT,
                foreign_key=foreign_key or default_foreign_key(source),
                primary_key=primary_key,
            )
        return cls(
            name=name,
            source=source,
            target=target,
            strategy=AssociationStrategy.THROUGH,
            foreign_key=foreign_key or default_foreign_key(target),
            primary_key=primary_key,
            through=through,
            join_key=default_foreign_key(source),
        )

    @classmethod
    def belongs_to(
        cls,
        source: str,
        name: str,
        *,
        foreign_key: str | None = None,
        target: str | None = None,
    ) -> Association:
        return cls(
            name=name,
            source=source,
            target=target or pluralize(name),
            strategy=AssociationStrategy.BELONGS_TO,
            foreign_key=foreign_key or f"{name}_id",
        )


def attribute(record: Any, column: str) -> Any:
    """Column value from a ``Record``, a mapping or a model instance."""
    if isinstance(record, Mapping):
        return record.get(column)
    return getattr(record, column, None)


def resolve(association: Association, record: Any, lookup: SourceLookup) -> Any:
    """Resolve ``association`` for ``record``.

    Returns a list for ``DIRECT``/``THROUGH`` and a single record or None
    for ``BELONGS_TO``.
    """
    if association.strategy is AssociationStrategy.BELONGS_TO:
        return _resolve_belongs_to(association, record, lookup)

    owner = lookup(association.source)
    key = attribute(record, association.primary_key or owner.primary_key)

    if association.strategy is AssociationStrategy.DIRECT:
        return lookup(association.target).where(**{association.foreign_key: key})

    return _resolve_through(association, key, lookup)


def _resolve_through(association: Association, key: Any, lookup: SourceLookup) -> list[Any]:
    assert association.through is not None and association.join_key is not None

    join = lookup(association.through)
    ids = [
        value
        for value in distinct(join.pluck(association.foreign_key, where={association.join_key: key}))
        if value is not None
    ]
    if not ids:
        return []

    target = lookup(association.target)
    rows = target.where_in(target.primary_key, ids)
    logger.debug(
        "through_association_resolved",
        association=association.name,
        source=association.source,
        join_rows=len(ids),
        targets=len(rows),
    )
    return rows


def _resolve_belongs_to(association: Association, record: Any, lookup: SourceLookup) -> Any:
    value = attribute(record, association.foreign_key)
    if value is None:
        return None
    target = lookup(association.target)
    return target.find_by(**{target.primary_key: value})


class AssociationsMixin:
    """Declaration and resolution of associations on a record source.

    Hosts provide ``name`` and ``_lookup_source``.
    """

    name: str
    _associations: dict[str, Association]

    def _lookup_source(self, name: str) -> RecordSource:
        raise NotImplementedError

    def has_many(
        self,
        name: str,
        *,
        through: str | None = None,
        foreign_key: str | None = None,
        primary_key: str | None = None,
        target: str | None = None,
    ) -> Association:
        association = Association.has_many(
            self.name,
            name,
            through=through,
            foreign_key=foreign_key,
            primary_key=primary_key,
            target=target,
        )
        self._associations[name] = association
        return association

    def belongs_to(
        self,
        name: str,
        *,
        foreign_key: str | None = None,
        target: str | None = None,
    ) -> Association:
        association = Association.belongs_to(
            self.name, name, foreign_key=foreign_key, target=target
        )
        self._associations[name] = association
        return association

    @property
    def associations(self) -> Mapping[str, Association]:
        return dict(self._associations)

    def related(self, record: Any, name: str) -> Any:
        try:
            association = self._associations[name]
        except KeyError:
            raise AttributeError(f"{self.name} has no association {name!r}") from None
        return resolve(association, record, self._lookup_source)
