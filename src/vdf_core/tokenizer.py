"""Spanned token stream with one token of lookahead."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from .errors import NoValidTokenError, UnexpectedTokenError
from .lexer import Span, Token, tokenize


_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

STRING_ITEMS = (Token.ITEM, Token.STATEMENT)
KEY_TOKENS = (Token.ITEM, Token.STATEMENT, Token.GROUP_END)
VALUE_TOKENS = (Token.ITEM, Token.STATEMENT, Token.GROUP_START)


def quoted_string(raw: str) -> str:
    """Strip the quotes from *raw* and resolve ``\\"`` and ``\\\\``.

    Any other backslash sequence is kept as written.
    """
    inner = raw[1:-1]
    if "\\" not in inner:
        return inner
    return _ESCAPE_RE.sub(
        lambda m: m.group(1) if m.group(1) in '"\\' else m.group(0),
        inner,
    )


@dataclass(frozen=True)
class SpannedToken:
    token: Token
    span: Span

    def raw(self, source: str) -> str:
        return self.span.text(source)

    def is_quoted(self, source: str) -> bool:
        return source.startswith('"', self.span.start)

    def text(self, source: str) -> str:
        """Decoded text: quoted tokens are unquoted and unescaped."""
        raw = self.span.text(source)
        if raw.startswith('"'):
            return quoted_string(raw)
        return raw


@dataclass(frozen=True)
class InvalidToken:
    """Characters at *span* that form no valid token."""

    span: Span


Lexed = Union[SpannedToken, InvalidToken]


# ---------------------------------------------------------------------------
# TokenStream
# ---------------------------------------------------------------------------

class TokenStream:
    """Pull tokens from the lexer, with a single-slot push-back buffer.

    ``count`` is the number of valid tokens produced by the lexer so far,
    including one that is currently peeked.  ``position`` is the end of the
    last token handed out by :meth:`next`.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.count = 0
        self.position = 0
        self.last: SpannedToken | None = None
        self._lexer = tokenize(source)
        self._peeked: Lexed | None = None
        self._has_peeked = False

    def _pull(self) -> Lexed | None:
        try:
            token, span = next(self._lexer)
        except StopIteration:
            return None
        if token is None:
            return InvalidToken(span)
        self.count += 1
        return SpannedToken(token, span)

    def next(self) -> Lexed | None:
        if self._has_peeked:
            result = self._peeked
            self._peeked = None
            self._has_peeked = False
        else:
            result = self._pull()
        if isinstance(result, SpannedToken):
            self.position = result.span.end
            self.last = result
        return result

    def peek(self) -> Lexed | None:
        if not self._has_peeked:
            self._peeked = self._pull()
            self._has_peeked = True
        return self._peeked

    def push_back(self, token: SpannedToken) -> None:
        """Return a consumed token so the next :meth:`next` yields it again."""
        if self._has_peeked:
            raise RuntimeError("token stream already holds a peeked token")
        self._peeked = token
        self._has_peeked = True

    def opens_group(self, token: SpannedToken) -> bool:
        """Whether the token following *token* in the source is ``{``."""
        following = next(tokenize(self.source, token.span.end), None)
        return following is not None and following[0] is Token.GROUP_START

    @property
    def end_span(self) -> Span:
        end = len(self.source)
        return Span(end, end)

    def __iter__(self) -> Iterator[Lexed]:
        while True:
            result = self.next()
            if result is None:
                return
            yield result


def expect_token(
    lexed: Lexed | None,
    expected: Sequence[Token],
    stream: TokenStream,
) -> SpannedToken:
    """Return *lexed* if it is one of *expected*, else raise the matching error."""
    if lexed is None:
        raise UnexpectedTokenError(expected, None, stream.end_span, stream.source)
    if isinstance(lexed, InvalidToken):
        raise NoValidTokenError(expected, lexed.span, stream.source)
    if lexed.token not in expected:
        raise UnexpectedTokenError(expected, lexed.token, lexed.span, stream.source)
    return lexed
