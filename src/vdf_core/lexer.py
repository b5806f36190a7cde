"""Lexer: splits KeyValues source text into classified tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Token(Enum):
    GROUP_START = "start of group"
    GROUP_END = "end of group"
    ITEM = "item"
    STATEMENT = "statement"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Span:
    """Half-open range of character offsets into the source text."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    def to(self, other: Span) -> Span:
        """Return the span covering *self* through the end of *other*."""
        return Span(self.start, other.end)

    def shifted(self, offset: int) -> Span:
        return Span(self.start + offset, self.end + offset)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_SKIP_RE = re.compile(r"(?:[ \t\f\r\n]+|//[^\n]*)+")
_QUOTED_RE = re.compile(r'"(?:[^"\\]|\\.)*"')
_BARE_STATEMENT_RE = re.compile(r'#[^ \t\f\r\n{}"]+')
_BARE_ITEM_RE = re.compile(r'[^# \t\f\r\n{}"][^ \t\f\r\n{}]*')


def tokenize(source: str, pos: int = 0) -> Iterator[tuple[Token | None, Span]]:
    """Yield ``(token, span)`` for every token in *source* from offset *pos*.

    Whitespace and ``//`` comments are skipped.  A position that matches no
    rule yields ``(None, span)`` for that one character and scanning
    resumes at the next character; the consumer decides whether that is fatal.
    """
    length = len(source)

    while True:
        skipped = _SKIP_RE.match(source, pos)
        if skipped:
            pos = skipped.end()
        if pos >= length:
            return

        ch = source[pos]
        if ch == "{":
            yield Token.GROUP_START, Span(pos, pos + 1)
            pos += 1
            continue
        if ch == "}":
            yield Token.GROUP_END, Span(pos, pos + 1)
            pos += 1
            continue

        if ch == '"':
            m = _QUOTED_RE.match(source, pos)
            if m is None:
                yield None, Span(pos, pos + 1)
                pos += 1
                continue
            kind = Token.STATEMENT if source.startswith('"#', pos) else Token.ITEM
            yield kind, Span(pos, m.end())
            pos = m.end()
            continue

        if ch == "#":
            m = _BARE_STATEMENT_RE.match(source, pos)
            kind = Token.STATEMENT
        else:
            m = _BARE_ITEM_RE.match(source, pos)
            kind = Token.ITEM

        if m is None:
            yield None, Span(pos, pos + 1)
            pos += 1
            continue
        yield kind, Span(pos, m.end())
        pos = m.end()
