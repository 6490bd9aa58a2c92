"""Configuration constants.

Values here are conventions and protocol details, not user settings.
For configurable values, see models.py.
"""

DEFAULT_DATA_DIR = "config/data"
"""Conventional location of <collection>.yml data files, relative to the CWD."""

DEFAULT_DATA_FILE_SUFFIX = ".yml"

DEFAULT_PRIMARY_KEY = "id"

DEFAULT_NAME_COLUMN = "name"

MEMORY_DATABASE = ":memory:"

YAML_SUFFIXES = frozenset({".yml", ".yaml"})
JSON_SUFFIXES = frozenset({".json"})
