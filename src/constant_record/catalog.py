"""Catalog: the entry point owning config, the memory engine and all sources.

Usage::

    catalog = Catalog(load_config())
    genres = catalog.collection("genres")
    genres.data({"id": 1, "name": "Rock", "slug": "rock"})

    catalog.collection("publishers").load_data()
    catalog.register(ModelSource(Article, db)).belongs_to("author")

Every collection shares the catalog's in-memory engine, and associations
resolve source names through the catalog, so a name that was never
defined becomes an empty collection whose relation does not exist.
"""

from __future__ import annotations

from typing import Any

import structlog

from constant_record.config.models import ConstantRecordConfig
from constant_record.core.logging import configure_logging
from constant_record.store.associations import RecordSource
from constant_record.store.collection import Collection
from constant_record.store.engine import MemoryEngine
from constant_record.store.records import Record
from constant_record.store.sources import ModelSource

logger = structlog.get_logger()


class Catalog:
    """Registry of constant collections and other record sources."""

    def __init__(self, config: ConstantRecordConfig | None = None) -> None:
        self.config = config or ConstantRecordConfig()
        self.engine = MemoryEngine(self.config.database)
        self._collections: dict[str, Collection] = {}
        self._sources: dict[str, ModelSource] = {}

    def configure_logging(self) -> None:
        configure_logging(config=self.config.logging)

    def collection(
        self,
        name: str,
        *,
        primary_key: str | None = None,
        name_column: str | None = None,
    ) -> Collection:
        """Get or create the collection called ``name``.

        ``primary_key`` and ``name_column`` only apply when it is created.
        """
        existing = self._collections.get(name)
        if existing is not None:
            return existing
        if name in self._sources:
            raise ValueError(f"{name!r} is already registered as a model source")

        collection = Collection(
            name,
            self.engine,
            self.config,
            primary_key=primary_key,
            name_column=name_column,
            lookup=self.source,
        )
        self._collections[name] = collection
        logger.debug("collection_created", collection=name)
        return collection

    __getitem__ = collection

    def __contains__(self, name: object) -> bool:
        return name in self._collections or name in self._sources

    @property
    def collections(self) -> dict[str, Collection]:
        return dict(self._collections)

    def data(self, name: str, attributes: Any) -> Record:
        """Define a record on ``name``, creating the collection on first use."""
        return self.collection(name).data(attributes)

    def register(self, source: ModelSource) -> ModelSource:
        """Make a model source reachable by name from associations."""
        if source.name in self._collections:
            raise ValueError(f"{source.name!r} is already a constant collection")
        source.bind(self.source)
        self._sources[source.name] = source
        return source

    def source(self, name: str) -> RecordSource:
        """Resolve a source name: model source, else (possibly new) collection."""
        model_source = self._sources.get(name)
        if model_source is not None:
            return model_source
        return self.collection(name)

    def ensure_fresh(self) -> list[str]:
        """Replay every collection whose relation was lost. Returns replayed names."""
        return [name for name, c in self._collections.items() if c.ensure_fresh()]

    def reset_storage(self) -> None:
        """Drop the in-memory database. Collections replay on next access."""
        self.engine.reset()

    def dispose(self) -> None:
        self.engine.dispose()
