"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides catalogs on fresh in-memory engines.
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local constant_record package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from constant_record.catalog import Catalog  # noqa: E402
from constant_record.config.models import ConstantRecordConfig, DataConfig  # noqa: E402

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def data_dir() -> Path:
    """Directory holding the YAML/JSON fixtures."""
    return DATA_DIR


@pytest.fixture
def config(data_dir: Path) -> ConstantRecordConfig:
    return ConstantRecordConfig(data=DataConfig(data_dir=str(data_dir)))


@pytest.fixture
def catalog(config: ConstantRecordConfig) -> Generator[Catalog, None, None]:
    """Catalog on its own in-memory engine."""
    catalog = Catalog(config)
    yield catalog
    catalog.dispose()


@pytest.fixture
def genres(catalog: Catalog):  # type: ignore[no-untyped-def]
    """The three-genre collection used across tests."""
    genres = catalog.collection("genres")
    genres.data({"id": 1, "name": "Rock", "slug": "rock"})
    genres.data({"id": 2, "name": "Hip-Hop", "slug": "hiphop"})
    genres.data({"id": 3, "name": "Pop", "slug": "pop"})
    return genres
