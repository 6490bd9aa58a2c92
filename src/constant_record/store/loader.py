"""Structured data files for constant collections.

A data file holds a list of attribute mappings::

    - id: 1
      name: Penguin
    - id: 2
      name: Marvel

YAML (``.yml``/``.yaml``) is parsed with ``yaml.safe_load``, which already
turns ISO dates and timestamps into ``date``/``datetime`` values. JSON files
are parsed with ``json``. Validation of the parsed shape belongs to the
collection, so ``BadDataFileError`` is raised there, not here.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from constant_record.config.constants import JSON_SUFFIXES


def load_records(path: Path | str) -> Any:
    """Parse a data file.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        yaml.YAMLError / json.JSONDecodeError: The file is not valid YAML/JSON.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        if path.suffix.lower() in JSON_SUFFIXES:
            return json.load(f)
        return yaml.safe_load(f)


def is_record_list(parsed: Any) -> bool:
    """True for a non-empty list whose items are all mappings."""
    return (
        isinstance(parsed, list)
        and len(parsed) > 0
        and all(isinstance(item, Mapping) for item in parsed)
    )
