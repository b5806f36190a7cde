"""Reader events and the items they carry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .errors import WrongEventTypeError
from .lexer import Span


@dataclass
class Item:
    """A key or value read from the source; ``statement`` marks ``#`` tokens."""

    content: str
    span: Span
    statement: bool = False

    def __str__(self) -> str:
        return self.content

    def to(self, target: Any) -> Any:
        """Convert the item text to *target*, raising ParseItemError."""
        from .convert import parse_item
        return parse_item(self, target)

    def to_entry(self):
        from .entry import Statement, Value
        if self.statement:
            return Statement(self.content)
        return Value(self.content)


@dataclass
class GroupStartEvent:
    name: str
    span: Span

    kind = "group start"

    @classmethod
    def from_event(cls, event: Event) -> GroupStartEvent:
        return _expect(event, cls)


@dataclass
class GroupEndEvent:
    span: Span

    kind = "group end"

    @classmethod
    def from_event(cls, event: Event) -> GroupEndEvent:
        return _expect(event, cls)


@dataclass
class EntryEvent:
    key: Item
    value: Item
    span: Span

    kind = "entry"

    @classmethod
    def from_event(cls, event: Event) -> EntryEvent:
        return _expect(event, cls)


@dataclass
class ValueContinuationEvent:
    """Another value on the same line as the previous entry's value."""

    value: Item
    span: Span

    kind = "value continuation"

    @classmethod
    def from_event(cls, event: Event) -> ValueContinuationEvent:
        return _expect(event, cls)


Event = Union[GroupStartEvent, GroupEndEvent, EntryEvent, ValueContinuationEvent]


def _expect(event: Event, cls: type) -> Any:
    if isinstance(event, cls):
        return event
    raise WrongEventTypeError(event, cls.kind, event.kind)
