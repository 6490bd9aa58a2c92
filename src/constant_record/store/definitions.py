"""Ordered store of the attribute mappings defined for a collection.

The store is the source of truth for re-materialization: after a storage
reset every mapping is replayed in insertion order.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


class DefinitionStore:
    """Attribute mappings in insertion order, indexed by primary key."""

    def __init__(self, primary_key: str) -> None:
        self.primary_key = primary_key
        self._mappings: list[dict[str, Any]] = []
        self._by_key: dict[Any, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self._mappings)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: Any) -> dict[str, Any] | None:
        return self._by_key.get(key)

    def append(self, attributes: Mapping[str, Any]) -> dict[str, Any]:
        retained = dict(attributes)
        self._mappings.append(retained)
        # First definition keeps the index entry; replay may re-append a key
        self._by_key.setdefault(retained[self.primary_key], retained)
        return retained

    def snapshot(self) -> list[dict[str, Any]]:
        """Copy of the mappings, safe to replay while the store is rebuilt."""
        return [dict(m) for m in self._mappings]

    def clear(self) -> None:
        self._mappings.clear()
        self._by_key.clear()
