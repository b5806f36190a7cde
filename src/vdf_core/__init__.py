"""VDF Core: KeyValues (VDF) parsing into typed values and entry trees."""

from .convert import Char, SocketAddress, parse_str
from .decoder import Deserializer, from_str
from .entry import Array, Entry, Statement, Table, Value, parse
from .errors import (
    NoValidTokenError,
    OtherError,
    ParseEntryError,
    ParseItemError,
    ParseStringError,
    SerdeParseError,
    UnexpectedTokenError,
    UnknownVariantError,
    VdfError,
    WrongEventTypeError,
)
from .events import (
    EntryEvent,
    GroupEndEvent,
    GroupStartEvent,
    Item,
    ValueContinuationEvent,
)
from .lexer import Span, Token
from .reader import Reader
from .shapes import Tagged, renamed, shape_of
from .tokenizer import SpannedToken, TokenStream
from .tree import EntryDeserializer, from_entry

__all__ = [
    "from_str",
    "from_entry",
    "parse",
    "parse_str",
    "Deserializer",
    "EntryDeserializer",
    "Entry",
    "Table",
    "Array",
    "Value",
    "Statement",
    "Reader",
    "Item",
    "GroupStartEvent",
    "GroupEndEvent",
    "EntryEvent",
    "ValueContinuationEvent",
    "Token",
    "Span",
    "SpannedToken",
    "TokenStream",
    "Tagged",
    "renamed",
    "shape_of",
    "Char",
    "SocketAddress",
    "VdfError",
    "UnexpectedTokenError",
    "NoValidTokenError",
    "WrongEventTypeError",
    "ParseEntryError",
    "ParseItemError",
    "ParseStringError",
    "SerdeParseError",
    "UnknownVariantError",
    "OtherError",
]
