"""Getter resolution on the entry tree."""

from __future__ import annotations

import re

from .entry import Array, Entry, Table

_INDEX_RE = re.compile(r"^[0-9]+$")


def apply_getter(entry: Entry, accessor: str) -> Entry | None:
    """Resolve a single accessor on an entry.

    - Table: the entry stored under the key
    - Array: 0-based integer index
    - Value / Statement: never matches
    """
    if isinstance(entry, Table):
        return entry.entries.get(accessor)

    if isinstance(entry, Array):
        if not _INDEX_RE.match(accessor):
            return None
        idx = int(accessor)
        if idx < len(entry.items):
            return entry.items[idx]
        return None

    return None


def lookup(entry: Entry, path: str) -> Entry | None:
    """Follow a dotted path of accessors; ``None`` once any step misses."""
    current: Entry | None = entry
    for name in path.split("."):
        current = apply_getter(current, name.strip())
        if current is None:
            return None
    return current
