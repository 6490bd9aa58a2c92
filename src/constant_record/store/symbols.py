"""Symbolic names derived from a record's human-readable name.

``{"id": 2, "name": "Hip-Hop"}`` binds ``HIP_HOP -> 2`` so calling code can
write ``genres.symbol("HIP_HOP")`` instead of a bare ``2``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any

_SEPARATORS = re.compile(r"[-\s]+")
_LEADING_DIGITS = re.compile(r"^[0-9_]+")
_NON_WORD = re.compile(r"\W+", re.ASCII)


def derive_symbol(name: Any) -> str | None:
    """Normalize a name into an uppercase identifier token.

    Examples:
        "Rock" -> "ROCK"
        "Hip-Hop" -> "HIP_HOP"
        " 2 Non-Fiction, Bestsellers! " -> "NON_FICTION_BESTSELLERS"

    Returns None when nothing usable is left.
    """
    if name is None:
        return None
    token = str(name).upper().strip()
    token = _SEPARATORS.sub("_", token)
    token = _LEADING_DIGITS.sub("", token, count=1)
    token = _NON_WORD.sub("", token)
    return token or None


class SymbolTable(Mapping[str, Any]):
    """Token -> primary key bindings for one collection. First write wins."""

    def __init__(self) -> None:
        self._bindings: dict[str, Any] = {}

    def __getitem__(self, token: str) -> Any:
        return self._bindings[token]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def bind(self, token: str, key: Any) -> bool:
        """Bind ``token`` unless it is already bound. Returns True if bound."""
        if token in self._bindings:
            return False
        self._bindings[token] = key
        return True

    def bind_name(self, name: Any, key: Any) -> str | None:
        """Derive a token from ``name`` and bind it. Returns the new token, if any."""
        token = derive_symbol(name)
        if token is None or not self.bind(token, key):
            return None
        return token

    def clear(self) -> None:
        self._bindings.clear()

    def __repr__(self) -> str:
        return f"SymbolTable({self._bindings!r})"
