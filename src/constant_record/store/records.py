"""Read-only record views over a collection's rows."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from constant_record.core.errors import ReadOnlyError

if TYPE_CHECKING:
    from constant_record.store.collection import Collection

logger = structlog.get_logger()


class Record:
    """One row of a constant collection.

    Records returned by queries are read-only: assignment, ``save()``,
    ``delete()`` and ``destroy()`` raise ``ReadOnlyError``. Only a record
    built by the loading path (``new_record=True``) may be saved, once.
    """

    __slots__ = ("_collection", "_values", "_new_record")

    def __init__(
        self,
        collection: Collection,
        values: Mapping[str, Any],
        *,
        new_record: bool = False,
    ) -> None:
        object.__setattr__(self, "_collection", collection)
        object.__setattr__(self, "_values", dict(values))
        object.__setattr__(self, "_new_record", new_record)

    @property
    def collection(self) -> Collection:
        return self._collection

    @property
    def new_record(self) -> bool:
        return self._new_record

    @property
    def readonly(self) -> bool:
        # Inserts from the load path must go through
        return not self._new_record

    @property
    def key(self) -> Any:
        return self._values.get(self._collection.primary_key)

    def __getattr__(self, name: str) -> Any:
        values = object.__getattribute__(self, "_values")
        try:
            return values[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} of {self._collection.name!r} has no attribute {name!r}"
            ) from None

    def __getitem__(self, column: str) -> Any:
        return self._values[column]

    def __setattr__(self, name: str, value: Any) -> None:
        if self.readonly:
            self._reject("assign")
        self._values[name] = value

    def __delattr__(self, name: str) -> None:
        self._reject("delete attribute")

    def get(self, column: str, default: Any = None) -> Any:
        return self._values.get(column, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def related(self, association: str) -> Any:
        """Resolve a declared association for this record."""
        return self._collection.related(self, association)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save(self) -> None:
        if self.readonly:
            self._reject("save")
        self._collection._insert_record(self)
        object.__setattr__(self, "_new_record", False)

    def update(self, **attributes: Any) -> None:
        self._reject("update")

    def delete(self) -> None:
        self._reject("delete")

    def destroy(self) -> None:
        self._reject("destroy")

    def _reject(self, operation: str) -> None:
        logger.warning(
            "read_only_violation",
            collection=self._collection.name,
            key=self.key,
            operation=operation,
        )
        raise ReadOnlyError.mutation(self._collection.name, operation)

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self._collection is other._collection and self.key == other.key

    def __hash__(self) -> int:
        return hash((self._collection.name, self.key))

    def __repr__(self) -> str:
        attrs = " ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"<Record {self._collection.name} {attrs}>"
