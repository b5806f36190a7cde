"""Typed decoding straight from the token stream.

The :class:`Deserializer` walks the tokens once, asked by a
:class:`~vdf_core.shapes.Shape` for one value at a time.  It resolves the
format's ambiguities as it goes:

- a map may omit its braces when it is the whole document
- a key repeated on following lines, or several values after one key on the
  same line, form a sequence
- a quoted value written as ``"[a b c]"`` (or ``"{a b c}"``) is a sequence
  whose elements are lexed again from the text between the brackets
- an enum variant is a tag, optionally followed by a payload in braces

Errors raised in a nested value are given the span of the map entry, the
sequence element or the enum variant that encloses them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Collection, Sequence

from .convert import infer_scalar, is_array_text, split_array, type_name
from .entry import Array, Entry, Statement, Table, Value
from .errors import (
    ParseStringError,
    SerdeParseError,
    UnexpectedTokenError,
    UnknownVariantError,
    VdfError,
)
from .lexer import Span, Token
from .shapes import (
    ANY,
    ENTRY,
    STR,
    AnyShape,
    Decoder,
    EntryShape,
    EnumShape,
    ScalarShape,
    Shape,
    VariantShape,
    shape_of,
)
from .tokenizer import (
    KEY_TOKENS,
    STRING_ITEMS,
    VALUE_TOKENS,
    SpannedToken,
    TokenStream,
    expect_token,
)

logger = logging.getLogger(__name__)


class Deserializer(Decoder):
    """Decode values from *source*.

    ``document`` is false for the text of an inline array element: such a
    fragment is one value, never an implicit top-level table.
    """

    def __init__(self, source: str, document: bool = True) -> None:
        self.source = source
        self.document = document
        self.tokens = TokenStream(source)
        self.last_key: str | None = None
        # keys of the struct being decoded; one of them ends a same-line run
        self.known_keys: Collection[str] = ()

    # -- Token helpers --------------------------------------------------

    def _next(self, expected: Sequence[Token]) -> SpannedToken:
        return expect_token(self.tokens.next(), expected, self.tokens)

    def _peek(self, expected: Sequence[Token]) -> SpannedToken:
        return expect_token(self.tokens.peek(), expected, self.tokens)

    def _peek_is(self, token: Token) -> bool:
        lexed = self.tokens.peek()
        return isinstance(lexed, SpannedToken) and lexed.token is token

    def _start(self) -> int:
        lexed = self.tokens.peek()
        if lexed is None:
            return len(self.source)
        return lexed.span.start

    def _is_inline_array(self, token: SpannedToken) -> bool:
        return (
            token.token in STRING_ITEMS
            and token.is_quoted(self.source)
            and is_array_text(token.text(self.source))
        )

    def _at_document_start(self, token: SpannedToken) -> bool:
        return (
            self.document
            and self.tokens.count == 1
            and token.token in STRING_ITEMS
            and not self._is_inline_array(token)
        )

    # -- Nesting --------------------------------------------------------

    def _nested(self, shape: Shape, start: int) -> Any:
        try:
            return shape.decode(self)
        except VdfError as err:
            err.fill_context(Span(start, self.tokens.position), self.source)
            raise

    def _element(self, shape: Shape) -> Any:
        return self._nested(shape, self._start())

    def _fragment(self, shape: Shape, start: int, text: str) -> Any:
        try:
            return Deserializer(text, document=False).decode(shape)
        except VdfError as err:
            err.relocate(start, self.source)
            raise

    def decode(self, shape: Shape) -> Any:
        """Decode one value of *shape* that must span the whole input."""
        value = self._nested(shape, 0)
        self.end()
        return value

    def end(self) -> None:
        """Require that nothing but whitespace and comments is left."""
        lexed = self.tokens.next()
        if lexed is not None:
            expect_token(lexed, (), self.tokens)

    # -- Capabilities ---------------------------------------------------

    def want_any(self) -> Any:
        token = self._peek(VALUE_TOKENS)
        if token.token is Token.GROUP_START or self._at_document_start(token):
            return _collect(self.want_map(STR, lambda key: ANY))
        if self._is_inline_array(token):
            return self.want_seq(lambda index: ANY)
        self.tokens.next()
        return infer_scalar(token.text(self.source))

    def want_scalar(self, shape: ScalarShape) -> Any:
        token = self._next(STRING_ITEMS)
        text = token.text(self.source)
        try:
            return shape.parse(text)
        except ParseStringError as err:
            raise SerdeParseError(err.ty, text, token.span, self.source) from err

    def want_unit(self) -> None:
        token = self._next(STRING_ITEMS)
        text = token.text(self.source)
        if text:
            raise SerdeParseError("unit", text, token.span, self.source)

    def want_option(self) -> bool:
        lexed = self.tokens.peek()
        if lexed is None:
            return False
        if (
            isinstance(lexed, SpannedToken)
            and lexed.token in STRING_ITEMS
            and not lexed.text(self.source)
        ):
            self.tokens.next()
            return False
        return True

    def want_seq(
        self,
        item_for: Callable[[int], Shape],
        limit: int | None = None,
    ) -> list:
        if limit == 0:
            return []
        first = self._peek(VALUE_TOKENS)
        if self._is_inline_array(first):
            self.tokens.next()
            return self._inline_array(first, item_for)

        key, known = self.last_key, self.known_keys
        values = [self._element(item_for(0))]
        while limit is None or len(values) < limit:
            if not self._continues(key, known):
                break
            values.append(self._element(item_for(len(values))))
        return values

    def _continues(self, key: str | None, known: Collection[str] = ()) -> bool:
        """Whether the token after a sequence element is another element.

        The key that opened the sequence repeated introduces another element.
        Any other item on the same line as the previous element is itself
        the next element, unless that element was a group, the item is one
        of the *known* keys of the enclosing struct, or ``{`` follows it.
        """
        lexed = self.tokens.peek()
        if not isinstance(lexed, SpannedToken) or lexed.token not in STRING_ITEMS:
            return False
        text = lexed.text(self.source)
        if key is not None and text == key:
            self.tokens.next()
            return True
        if text in known:
            return False
        if "\n" in self.source[self.tokens.position:lexed.span.start]:
            return False
        last = self.tokens.last
        if last is not None and last.token is Token.GROUP_END:
            return False
        return not self.tokens.opens_group(lexed)

    def _inline_array(self, token: SpannedToken, item_for: Callable[[int], Shape]) -> list:
        # offsets are exact unless the quoted text contains escapes
        inner = token.text(self.source)
        return [
            self._fragment(item_for(index), start, text)
            for index, (start, text) in enumerate(split_array(inner, token.span.start + 1))
        ]

    def want_map(
        self,
        key_shape: Shape,
        value_for: Callable[[Any], Shape],
        known_keys: Collection[str] = (),
    ) -> list[tuple[Any, Any]]:
        lexed = self.tokens.peek()
        if lexed is None and self.tokens.count == 0:
            return []
        if isinstance(lexed, SpannedToken) and self._at_document_start(lexed):
            toplevel = True
        else:
            self._next((Token.GROUP_START,))
            toplevel = False

        pairs = []
        while True:
            lexed = self.tokens.next()
            if lexed is None:
                if toplevel:
                    return pairs
                raise UnexpectedTokenError(
                    KEY_TOKENS, None, self.tokens.end_span, self.source
                )
            key_token = expect_token(
                lexed, STRING_ITEMS if toplevel else KEY_TOKENS, self.tokens
            )
            if key_token.token is Token.GROUP_END:
                return pairs

            self.last_key = key_token.text(self.source)
            self.known_keys = known_keys
            self.tokens.push_back(key_token)
            start = key_token.span.start
            try:
                key = key_shape.decode(self)
                shape = value_for(key)
                pairs.append((key, shape.decode(self)))
                if isinstance(shape, (AnyShape, EntryShape)):
                    # further values on the same line belong to the same key
                    while self._continues(None, known_keys):
                        pairs.append((key, self._element(shape)))
            except VdfError as err:
                err.fill_context(Span(start, self.tokens.position), self.source)
                raise

    def want_enum(self, shape: EnumShape) -> tuple[VariantShape, Any]:
        tag_token = self._next(STRING_ITEMS)
        tag = tag_token.text(self.source)
        variant = shape.variant(tag)
        if variant is None:
            raise UnknownVariantError(tag, shape.tags, tag_token.span, self.source)
        try:
            payload = self._payload(variant)
        except VdfError as err:
            err.fill_context(Span(tag_token.span.start, self.tokens.position), self.source)
            raise
        return variant, payload

    def _payload(self, variant: VariantShape) -> Any:
        braced = self._peek_is(Token.GROUP_START)

        if variant.kind == "unit":
            if braced:
                self.tokens.next()
                self._next((Token.GROUP_END,))
            else:
                lexed = self.tokens.peek()
                if (
                    isinstance(lexed, SpannedToken)
                    and lexed.token in STRING_ITEMS
                    and lexed.is_quoted(self.source)
                    and not lexed.text(self.source)
                ):
                    self.tokens.next()
            return None

        if variant.kind == "newtype":
            if braced and not variant.payload.braced:
                self.tokens.next()
                value = variant.payload.decode(self)
                self._next((Token.GROUP_END,))
                return value
            return variant.payload.decode(self)

        if variant.kind == "tuple":
            if braced:
                self.tokens.next()
                values = []
                while not self._peek_is(Token.GROUP_END):
                    values.append(self._element(variant.item_for(len(values))))
                self.tokens.next()
                return values
            return self.want_seq(variant.item_for, limit=len(variant.items))

        return variant.payload.decode(self)

    def want_entry(self) -> Entry:
        token = self._peek(VALUE_TOKENS)
        if token.token is Token.GROUP_START or self._at_document_start(token):
            table = Table()
            for key, value in self.want_map(STR, lambda key: ENTRY):
                table.insert(key, value)
            return table
        self.tokens.next()
        if self._is_inline_array(token):
            return Array(self._inline_array(token, lambda index: ENTRY))
        text = token.text(self.source)
        if token.token is Token.STATEMENT:
            return Statement(text)
        return Value(text)


def _collect(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """Build a dict; the values of a repeated key are gathered in a list."""
    grouped: dict[str, list] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    return {key: values[0] if len(values) == 1 else values for key, values in grouped.items()}


def from_str(source: str, target: Any) -> Any:
    """Decode *source* into a value of the type hint *target*.

    >>> from_str('"[1 2 3]"', list[int])
    [1, 2, 3]
    """
    logger.debug("Decoding %s from %d characters of source", type_name(target), len(source))
    return Deserializer(source).decode(shape_of(target))
