"""String → value conversion for items, entries and decoded scalars."""

from __future__ import annotations

import enum
import ipaddress
import re
import types
from typing import Any, NamedTuple, NewType, Union, get_args, get_origin

from .errors import ParseEntryError, ParseItemError, ParseStringError

#: A single character; decoding rejects any other length.
Char = NewType("Char", str)

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(
    r"^[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)$",
    re.IGNORECASE,
)
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

_ARRAY_DELIMITERS = {"[": "]", "{": "}"}


# ---------------------------------------------------------------------------
# Socket addresses
# ---------------------------------------------------------------------------

class SocketAddress(NamedTuple):
    """``host:port`` with an IPv4 host, or ``[host]:port`` with an IPv6 one."""

    host: ipaddress.IPv4Address | ipaddress.IPv6Address
    port: int

    @classmethod
    def from_str(cls, text: str) -> SocketAddress:
        if text.startswith("["):
            host, sep, port = text[1:].partition("]:")
            if not sep:
                raise ValueError(f"invalid socket address {text!r}")
            address = ipaddress.IPv6Address(host)
        else:
            host, sep, port = text.rpartition(":")
            if not sep:
                raise ValueError(f"invalid socket address {text!r}")
            address = ipaddress.IPv4Address(host)
        if not port.isdigit() or int(port) > 65535:
            raise ValueError(f"invalid port {port!r}")
        return cls(address, int(port))

    def __str__(self) -> str:
        if self.host.version == 6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


# ---------------------------------------------------------------------------
# Text shape helpers
# ---------------------------------------------------------------------------

def type_name(target: Any) -> str:
    if target is None or target is type(None):
        return "unit"
    if get_origin(target) is not None:
        return repr(target).replace("typing.", "")
    return getattr(target, "__name__", repr(target))


def is_integer_text(text: str) -> bool:
    return bool(_INT_RE.match(text))


def is_float_text(text: str) -> bool:
    return bool(_FLOAT_RE.match(text))


def is_array_text(text: str) -> bool:
    """``[a b c]`` or ``{a b c}``."""
    return (
        len(text) >= 2
        and text[0] in _ARRAY_DELIMITERS
        and text[-1] == _ARRAY_DELIMITERS[text[0]]
    )


def split_array(text: str, offset: int = 0) -> list[tuple[int, str]]:
    """Split the interior of a bracketed *text* on single spaces.

    Returns ``(start, fragment)`` pairs; ``start`` is measured from the
    beginning of *text* plus *offset*.  Runs of spaces between fragments
    are skipped.
    """
    fragments: list[tuple[int, str]] = []
    pos = 1
    end = len(text) - 1
    while pos < end:
        while pos < end and text[pos] == " ":
            pos += 1
        if pos >= end:
            break
        stop = text.find(" ", pos, end)
        if stop == -1:
            stop = end
        fragments.append((offset + pos, text[pos:stop]))
        pos = stop + 1
    return fragments


def infer_scalar(text: str) -> int | float | str:
    """Integer if it fits in 64 bits, else float, else the text itself."""
    if is_integer_text(text):
        value = int(text)
        if _I64_MIN <= value <= _I64_MAX:
            return value
    if is_float_text(text):
        return float(text)
    return text


# ---------------------------------------------------------------------------
# parse_str
# ---------------------------------------------------------------------------

def parse_bool(text: str) -> bool:
    if text == "0":
        return False
    if text == "1":
        return True
    if text == "true":
        return True
    if text == "false":
        return False
    raise ParseStringError("bool", text)


def parse_str(text: str, target: Any) -> Any:
    """Convert *text* to *target*, raising ParseStringError on failure.

    Supports ``bool`` (``0``/``1``, then ``true``/``false``), ``int``,
    ``float``, ``str``, ``bytes``, :data:`Char`, enums (by value, then by
    name), ``Optional`` and unions (first alternative that fits), and any
    class that has a ``from_str`` classmethod or takes one string argument.
    """
    name = type_name(target)

    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        alternatives = [a for a in get_args(target) if a is not type(None)]
        for alt in alternatives:
            try:
                return parse_str(text, alt)
            except ParseStringError:
                continue
        raise ParseStringError(name, text)

    if target is bool:
        return parse_bool(text)
    if target is int:
        if not is_integer_text(text):
            raise ParseStringError(name, text)
        return int(text)
    if target is float:
        if not is_float_text(text):
            raise ParseStringError(name, text)
        return float(text)
    if target is str or target is Any:
        return text
    if target is Char:
        if len(text) != 1:
            raise ParseStringError("char", text)
        return Char(text)
    if target is bytes:
        return text.encode("utf-8")

    if isinstance(target, type) and issubclass(target, enum.Enum):
        for member in target:
            if member.value == text or member.name == text:
                return member
        raise ParseStringError(name, text)

    factory = getattr(target, "from_str", target)
    if not callable(factory):
        raise ParseStringError(name, text)
    try:
        return factory(text)
    except (ValueError, TypeError) as e:
        raise ParseStringError(name, text) from e


def parse_item(item, target: Any) -> Any:
    """Convert a reader :class:`~vdf_core.events.Item` to *target*."""
    try:
        return parse_str(item.content, target)
    except ParseStringError as e:
        raise ParseItemError(e.ty, item) from e


def parse_entry(entry, target: Any) -> Any:
    """Convert a textual tree node to *target*.

    Tables and arrays have no text and always fail.
    """
    text = entry.as_str()
    if text is None:
        raise ParseEntryError(type_name(target), entry)
    try:
        return parse_str(text, target)
    except ParseStringError as e:
        raise ParseEntryError(e.ty, entry) from e
