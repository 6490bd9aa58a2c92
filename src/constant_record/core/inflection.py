"""Naming conventions for collections and association keys.

Collections are named like tables (``genres``, ``article_publishers``) and
association keys follow the ``<singular>_id`` convention. Only the regular
English forms that show up in table names are handled; anything unusual
should be passed explicitly (``foreign_key=...``, ``target=...``).
"""

from __future__ import annotations

import re

_UNCOUNTABLE = frozenset({"data", "equipment", "information", "metadata", "news", "series", "species"})

_IRREGULAR = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "status": "statuses",
}
_IRREGULAR_PLURALS = {plural: singular for singular, plural in _IRREGULAR.items()}

_SINGULAR_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?i)(quiz)zes$"), r"\1"),
    (re.compile(r"(?i)(matri|vert|ind)ices$"), r"\1ix"),
    (re.compile(r"(?i)(alias|status)es$"), r"\1"),
    (re.compile(r"(?i)(octop|vir)i$"), r"\1us"),
    (re.compile(r"(?i)(cris|ax|test)es$"), r"\1is"),
    (re.compile(r"(?i)(shoe)s$"), r"\1"),
    (re.compile(r"(?i)(o)es$"), r"\1"),
    (re.compile(r"(?i)(bus)es$"), r"\1"),
    (re.compile(r"(?i)(m|l)ice$"), r"\1ouse"),
    (re.compile(r"(?i)(x|ch|ss|sh)es$"), r"\1"),
    (re.compile(r"(?i)(m)ovies$"), r"\1ovie"),
    (re.compile(r"(?i)([^aeiouy]|qu)ies$"), r"\1y"),
    (re.compile(r"(?i)([lr])ves$"), r"\1f"),
    (re.compile(r"(?i)(tive)s$"), r"\1"),
    (re.compile(r"(?i)(hive)s$"), r"\1"),
    (re.compile(r"(?i)([^f])ves$"), r"\1fe"),
    (re.compile(r"(?i)(ss)$"), r"\1"),
    (re.compile(r"(?i)s$"), ""),
]

_PLURAL_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?i)(quiz)$"), r"\1zes"),
    (re.compile(r"(?i)(matr|vert|ind)(?:ix|ex)$"), r"\1ices"),
    (re.compile(r"(?i)(x|ch|ss|sh)$"), r"\1es"),
    (re.compile(r"(?i)([^aeiouy]|qu)y$"), r"\1ies"),
    (re.compile(r"(?i)(hive)$"), r"\1s"),
    (re.compile(r"(?i)(?:([^f])fe|([lr])f)$"), r"\1\2ves"),
    (re.compile(r"(?i)sis$"), "ses"),
    (re.compile(r"(?i)(bu|alias|status)s$"), r"\1ses"),
    (re.compile(r"(?i)(octop|vir)us$"), r"\1i"),
    (re.compile(r"(?i)(buffal|tomat)o$"), r"\1oes"),
    (re.compile(r"(?i)s$"), "s"),
    (re.compile(r"$"), "s"),
]


def _split_last(word: str) -> tuple[str, str]:
    head, sep, last = word.rpartition("_")
    return head + sep, last


def singularize(word: str) -> str:
    """Singular form of the last ``_``-separated segment.

    Examples:
        genres -> genre
        article_publishers -> article_publisher
        categories -> category
    """
    head, last = _split_last(word)
    lowered = last.lower()
    if lowered in _UNCOUNTABLE:
        return word
    if lowered in _IRREGULAR_PLURALS:
        return head + _IRREGULAR_PLURALS[lowered]
    if lowered in _IRREGULAR:
        return word
    for pattern, replacement in _SINGULAR_RULES:
        if pattern.search(last):
            return head + pattern.sub(replacement, last, count=1)
    return word


def pluralize(word: str) -> str:
    """Plural form of the last ``_``-separated segment."""
    head, last = _split_last(word)
    lowered = last.lower()
    if lowered in _UNCOUNTABLE or lowered in _IRREGULAR_PLURALS:
        return word
    if lowered in _IRREGULAR:
        return head + _IRREGULAR[lowered]
    for pattern, replacement in _PLURAL_RULES:
        if pattern.search(last):
            return head + pattern.sub(replacement, last, count=1)
    return word


def underscore(name: str) -> str:
    """CamelCase -> snake_case (``ArticlePublisher`` -> ``article_publisher``)."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def foreign_key(table_or_name: str) -> str:
    """Conventional key column pointing at a table (``genres`` -> ``genre_id``)."""
    return f"{singularize(underscore(table_or_name))}_id"
