"""
Ordered field-path candidate resolution.

Vendor records expose the same semantic value under several aliases. Each
semantic value is described by a prioritized list of dotted paths; the first
non-empty hit wins.
"""
from __future__ import annotations

from typing import Any, Iterable

_MISSING = object()


def lookup(obj: Any, path: str) -> Any:
    """Follow a dotted *path* through nested mappings, ``None`` if absent."""
    current = obj
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return None
    return current


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve(obj: Any, candidates: Iterable[str], default: Any = None) -> Any:
    """Return the first candidate value that is neither ``None`` nor blank."""
    for path in candidates:
        value = lookup(obj, path)
        if not _is_empty(value):
            return value
    return default


def collect(obj: Any, candidates: Iterable[str]) -> list[Any]:
    """Return every truthy candidate value, in candidate order."""
    values: list[Any] = []
    for path in candidates:
        value = lookup(obj, path)
        if value:
            values.append(value)
    return values


def first_list(obj: Any, candidates: Iterable[str]) -> list[Any]:
    """Return the first candidate that is a non-empty list, else ``[]``."""
    for path in candidates:
        value = lookup(obj, path)
        if isinstance(value, list) and value:
            return value
    return []


def join_text(values: Iterable[Any]) -> str:
    return " ".join(str(v).strip() for v in values if v and str(v).strip())
