"""Schema inference from the first attribute mapping of a collection.

Values arriving from inline ``data(...)`` calls or parsed data files are
untyped. They are classified into a closed set of value kinds, and each
kind maps to one column type. Anything unrecognized is stored as a string.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import Date, DateTime, Integer, Numeric, String
from sqlalchemy.types import TypeEngine


class ValueKind(str, Enum):
    """Recognized kinds of input values."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    STRING = "string"
    NULL = "null"


class ColumnType(str, Enum):
    """Column types a collection's relation can hold."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    STRING = "string"

    def sql_type(self) -> TypeEngine[Any]:
        return _SQL_TYPES[self]()


_SQL_TYPES: dict[ColumnType, Any] = {
    ColumnType.INTEGER: Integer,
    ColumnType.DECIMAL: lambda: Numeric(asdecimal=False),
    ColumnType.DATE: Date,
    ColumnType.DATETIME: DateTime,
    ColumnType.STRING: String,
}

COLUMN_TYPES: dict[ValueKind, ColumnType] = {
    ValueKind.INTEGER: ColumnType.INTEGER,
    ValueKind.DECIMAL: ColumnType.DECIMAL,
    ValueKind.DATE: ColumnType.DATE,
    ValueKind.DATETIME: ColumnType.DATETIME,
    ValueKind.STRING: ColumnType.STRING,
    ValueKind.NULL: ColumnType.STRING,
}


def value_kind(value: Any) -> ValueKind:
    """Classify a raw value.

    ``bool`` is checked before ``int`` and ``datetime`` before ``date``
    because each is a subclass of the latter.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.STRING
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float | Decimal):
        return ValueKind.DECIMAL
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    if isinstance(value, date):
        return ValueKind.DATE
    return ValueKind.STRING


def column_type(value: Any) -> ColumnType:
    return COLUMN_TYPES[value_kind(value)]


def infer_schema(attributes: Mapping[str, Any], primary_key: str) -> dict[str, ColumnType]:
    """Ordered column -> type mapping, excluding the primary key column.

    Example:
        {"id": 1, "name": "Rock", "rank": 2.5} -> {"name": STRING, "rank": DECIMAL}
    """
    return {
        column: column_type(value)
        for column, value in attributes.items()
        if column != primary_key
    }


def coerce_value(column: ColumnType, value: Any) -> Any:
    """Adapt a raw value to what the column's SQL type binds.

    String columns receive ``str()`` of non-string scalars (booleans,
    UUIDs, ...), matching how they were classified.
    """
    if value is None:
        return None
    if column is ColumnType.STRING and not isinstance(value, str):
        return str(value)
    return value
