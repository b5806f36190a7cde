"""Error taxonomy for VDF Core.

Every error carries an optional :class:`~vdf_core.lexer.Span` and the source
text it points into.  Errors raised deep inside a decode often know neither;
enclosing decode steps fill them in on the way out (see
:meth:`VdfError.fill_context`).  Filling in context never changes the class
of an error.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .lexer import Span, Token


def _expected_tokens(expected: Iterable[Token]) -> str:
    return ", ".join(str(t) for t in expected)


class VdfError(Exception):
    """Base class for every error raised while lexing, reading or decoding."""

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.span = span
        self.source = source

    def __str__(self) -> str:
        return self.message

    @property
    def label(self) -> str:
        """Short text to print under the offending span."""
        return self.message

    @property
    def location(self) -> tuple[int, int] | None:
        """1-based ``(line, column)`` of the span start, if known."""
        if self.span is None or self.source is None:
            return None
        prefix = self.source[: self.span.start]
        line = prefix.count("\n") + 1
        col = self.span.start - (prefix.rfind("\n") + 1) + 1
        return line, col

    # -- Enrichment -----------------------------------------------------

    def fill_context(self, span: Span | None, source: str | None) -> VdfError:
        """Attach *span* and *source* where this error has none."""
        if self.span is None:
            self.span = span
        if self.source is None:
            self.source = source
        return self

    def relocate(self, offset: int, source: str) -> VdfError:
        """Move a span measured in a fragment of *source* into *source*."""
        if self.span is not None:
            self.span = self.span.shifted(offset)
        self.source = source
        return self


# ---------------------------------------------------------------------------
# Token errors
# ---------------------------------------------------------------------------

class UnexpectedTokenError(VdfError):
    """A token (or the end of input) turned up where others were required.

    An empty *expected* set means only the end of input was acceptable.
    """

    def __init__(
        self,
        expected: Sequence[Token],
        found: Token | None,
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        self.expected = tuple(expected)
        self.found = found
        if not self.expected:
            wanted = "expected end of input"
        else:
            wanted = f"expected one of {_expected_tokens(self.expected)}"
        if found is None:
            message = f"Unexpected end of input {wanted}"
        else:
            message = f"Unexpected token, found {found} {wanted}"
        super().__init__(message, span, source)

    @property
    def label(self) -> str:
        if not self.expected:
            return "Expected end of input"
        return f"Expected {_expected_tokens(self.expected)}"


class NoValidTokenError(VdfError):
    """The lexer could not classify the characters at a position."""

    def __init__(
        self,
        expected: Sequence[Token],
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        self.expected = tuple(expected)
        if self.expected:
            wanted = f"expected one of {_expected_tokens(self.expected)}"
        else:
            wanted = "expected end of input"
        super().__init__(f"No valid token found, {wanted}", span, source)

    @property
    def label(self) -> str:
        if not self.expected:
            return "Expected end of input"
        return f"Expected {_expected_tokens(self.expected)}"


class WrongEventTypeError(VdfError):
    """A reader event of one kind was found where another was required."""

    def __init__(self, event: object, expected: str, got: str) -> None:
        self.event = event
        self.expected = expected
        self.got = got
        super().__init__(
            f"Wrong event type, expected {expected} but found {got}",
            getattr(event, "span", None),
        )

    @property
    def label(self) -> str:
        return f"Expected {self.expected}"


# ---------------------------------------------------------------------------
# Conversion errors
# ---------------------------------------------------------------------------

class ParseStringError(VdfError):
    """A string could not be converted to the requested type."""

    def __init__(self, ty: str, value: str) -> None:
        self.ty = ty
        self.value = value
        super().__init__(f"Can't parse string {value!r} as {ty}")


class ParseItemError(VdfError):
    """A reader item could not be converted to the requested type."""

    def __init__(self, ty: str, item: object) -> None:
        self.ty = ty
        self.item = item
        content = getattr(item, "content", item)
        super().__init__(
            f"Can't parse item {content!r} as {ty}",
            getattr(item, "span", None),
        )


class ParseEntryError(VdfError):
    """A tree node could not be converted to the requested type."""

    def __init__(self, ty: str, entry: object) -> None:
        self.ty = ty
        self.entry = entry
        super().__init__(f"Can't parse entry {entry!r} as {ty}")


class SerdeParseError(VdfError):
    """Decoding found a value that does not fit the requested shape."""

    def __init__(
        self,
        ty: str,
        value: str,
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        self.ty = ty
        self.value = value
        super().__init__(f"Can't parse {value!r} as {ty}", span, source)

    @property
    def label(self) -> str:
        return f"Expected {self.ty}"


class UnknownVariantError(VdfError):
    """An enum tag matched none of the declared variants."""

    def __init__(
        self,
        variant: str,
        expected: Sequence[str],
        span: Span | None = None,
        source: str | None = None,
    ) -> None:
        self.variant = variant
        self.expected = tuple(expected)
        names = ", ".join(f"`{name}`" for name in self.expected)
        super().__init__(
            f"Unknown variant `{variant}`, expected one of {names}",
            span,
            source,
        )

    @property
    def label(self) -> str:
        return "Unknown variant"


class OtherError(VdfError):
    """A custom message, usually from the validation of a target type."""
