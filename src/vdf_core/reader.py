"""Reader layer: turns the token stream into structural events."""

from __future__ import annotations

from typing import Iterator

from .errors import UnexpectedTokenError, VdfError
from .events import (
    EntryEvent,
    Event,
    GroupEndEvent,
    GroupStartEvent,
    Item,
    ValueContinuationEvent,
)
from .lexer import Token
from .tokenizer import (
    KEY_TOKENS,
    STRING_ITEMS,
    VALUE_TOKENS,
    SpannedToken,
    TokenStream,
    expect_token,
)


class Reader:
    """Pull-style event reader over a KeyValues document.

    Usage::

        reader = Reader('foo { bar 1 }')
        reader.event()   # GroupStartEvent(name='foo', ...)
        reader.event()   # EntryEvent(key=Item('bar'), value=Item('1'), ...)
        reader.event()   # GroupEndEvent(...)
        reader.event()   # None: end of input

    An item that follows an entry's value on the same line is reported as
    a :class:`ValueContinuationEvent` rather than as the next key, unless
    it names a group (``{`` comes next).
    """

    def __init__(self, source: str) -> None:
        self.tokens = TokenStream(source)
        # end of the last value read, while a continuation is possible
        self._value_end: int | None = None

    @property
    def source(self) -> str:
        return self.tokens.source

    def event(self) -> Event | None:
        """Read the next event, or ``None`` at the end of input."""
        lexed = self.tokens.next()
        if lexed is None:
            return None
        key = expect_token(lexed, KEY_TOKENS, self.tokens)
        if self._continues(key):
            self._value_end = key.span.end
            return ValueContinuationEvent(self._item(key), key.span)

        self._value_end = None
        if key.token is Token.GROUP_END:
            return GroupEndEvent(key.span)

        value = expect_token(self.tokens.next(), VALUE_TOKENS, self.tokens)
        if value.token is Token.GROUP_START:
            return GroupStartEvent(key.text(self.source), key.span.to(value.span))

        self._value_end = value.span.end
        return EntryEvent(
            key=self._item(key),
            value=self._item(value),
            span=key.span.to(value.span),
        )

    def expect(self, cls: type) -> Event:
        """Read the next event and require it to be of type *cls*."""
        event = self.event()
        if event is None:
            expected = (Token.GROUP_END,) if cls is GroupEndEvent else KEY_TOKENS
            raise UnexpectedTokenError(
                expected, None, self.tokens.end_span, self.source
            )
        try:
            return cls.from_event(event)
        except VdfError as err:
            err.fill_context(event.span, self.source)
            raise

    def _continues(self, token: SpannedToken) -> bool:
        if self._value_end is None or token.token not in STRING_ITEMS:
            return False
        if "\n" in self.source[self._value_end:token.span.start]:
            return False
        return not self.tokens.opens_group(token)

    def _item(self, token: SpannedToken) -> Item:
        return Item(
            content=token.text(self.source),
            span=token.span,
            statement=token.token is Token.STATEMENT,
        )

    def __iter__(self) -> Iterator[Event]:
        while True:
            event = self.event()
            if event is None:
                return
            yield event
