"""Entry types: the dynamic tree built from a KeyValues document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from .errors import UnexpectedTokenError
from .events import EntryEvent, GroupEndEvent, GroupStartEvent, ValueContinuationEvent
from .lexer import Token
from .tokenizer import STRING_ITEMS, SpannedToken, expect_token

logger = logging.getLogger(__name__)


class Entry:
    """Common accessors shared by every node of the tree."""

    __slots__ = ()

    def get(self, name: str) -> Entry | None:
        from .getter import apply_getter
        return apply_getter(self, name)

    def lookup(self, path: str) -> Entry | None:
        """Follow a dotted *path* such as ``"Steam.cached.0"``."""
        from .getter import lookup
        return lookup(self, path)

    def to(self, target: Any) -> Any:
        """Convert this node's text to *target*, raising ParseEntryError."""
        from .convert import parse_entry
        return parse_entry(self, target)

    def as_table(self) -> Table | None:
        return self if isinstance(self, Table) else None

    def as_array(self) -> Array | None:
        return self if isinstance(self, Array) else None

    def as_value(self) -> Value | None:
        return self if isinstance(self, Value) else None

    def as_statement(self) -> Statement | None:
        return self if isinstance(self, Statement) else None

    def as_str(self) -> str | None:
        if isinstance(self, (Value, Statement)):
            return self.value
        return None

    def as_slice(self) -> list[Entry]:
        """Array items, or this node alone for anything else."""
        if isinstance(self, Array):
            return list(self.items)
        return [self]


@dataclass
class Value(Entry):
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class Statement(Entry):
    """A ``#``-prefixed value such as ``#base``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class Array(Entry):
    """Entries that share one key, or the parts of an inline ``"[a b]"``."""

    items: list[Entry] = field(default_factory=list)

    def append(self, entry: Entry) -> None:
        self.items.append(entry)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Entry:
        return self.items[index]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.items) + "]"


@dataclass
class Table(Entry):
    entries: dict[str, Entry] = field(default_factory=dict)

    def insert(self, key: str, entry: Entry) -> None:
        """Add *entry* under *key*; a repeated key collects into an Array."""
        existing = self.entries.get(key)
        if existing is None:
            self.entries[key] = entry
        elif isinstance(existing, Array):
            existing.append(entry)
        else:
            self.entries[key] = Array([existing, entry])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> Entry:
        return self.entries[key]

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()

    def values(self):
        return self.entries.values()

    def __str__(self) -> str:
        return "{" + " ".join(f"{k} {v}" for k, v in self.entries.items()) + "}"

    # -- Loading --------------------------------------------------------

    @classmethod
    def load(cls, reader, nested: bool = False) -> Table:
        """Build a table from *reader* events.

        A nested table ends at its ``}``; the top-level table ends at the
        end of input.  A ``}`` with no open group, or a group still open at
        the end of input, is an error.  A document wrapped in one anonymous
        ``{ }`` pair loads the same as the bare document.

        Values on the same line as an entry's value belong to that entry's
        key, so ``pos 1 2`` loads as an :class:`Array` of two values.
        """
        if not nested and _opens_with_group(reader):
            reader.tokens.next()
            table = cls.load(reader, nested=True)
            trailing = reader.tokens.peek()
            if trailing is not None:
                expect_token(trailing, (), reader.tokens)
            return table

        table = cls()
        key = None
        while True:
            event = reader.event()
            if event is None:
                if nested:
                    raise UnexpectedTokenError(
                        (Token.GROUP_END,), None, reader.tokens.end_span, reader.source
                    )
                return table
            if isinstance(event, GroupEndEvent):
                if not nested:
                    raise UnexpectedTokenError(
                        STRING_ITEMS, Token.GROUP_END, event.span, reader.source
                    )
                return table
            if isinstance(event, GroupStartEvent):
                table.insert(event.name, cls.load(reader, nested=True))
            elif isinstance(event, EntryEvent):
                key = event.key.content
                table.insert(key, event.value.to_entry())
            elif isinstance(event, ValueContinuationEvent):
                table.insert(key, event.value.to_entry())

    @classmethod
    def load_from_str(cls, source: str) -> Table:
        from .reader import Reader
        logger.debug("Building table from %d characters of source", len(source))
        return cls.load(Reader(source))


def _opens_with_group(reader) -> bool:
    first = reader.tokens.peek()
    return (
        isinstance(first, SpannedToken)
        and first.token is Token.GROUP_START
        and reader.tokens.count == 1
    )


def parse(source: str) -> Table:
    """Parse *source* into a dynamic :class:`Table`."""
    return Table.load_from_str(source)
