"""Typed decoding from an already built entry tree."""

from __future__ import annotations

import logging
from typing import Any, Callable, Collection

from .convert import infer_scalar, is_array_text, split_array, type_name
from .entry import Array, Entry, Statement, Table, Value
from .errors import ParseEntryError, ParseStringError, SerdeParseError, UnknownVariantError
from .shapes import ANY, Decoder, EnumShape, ScalarShape, Shape, VariantShape, shape_of

logger = logging.getLogger(__name__)


class EntryDeserializer(Decoder):
    """Decode values from one :class:`~vdf_core.entry.Entry`.

    Tree nodes carry no source positions, so errors raised here have no span.
    """

    def __init__(self, entry: Entry) -> None:
        self.entry = entry

    def _mismatch(self, expected: str) -> SerdeParseError:
        return SerdeParseError(expected, str(self.entry))

    def _items(self) -> list[Entry]:
        entry = self.entry
        if isinstance(entry, Value) and is_array_text(entry.value):
            return [Value(text) for _, text in split_array(entry.value)]
        return entry.as_slice()

    def want_any(self) -> Any:
        entry = self.entry
        if isinstance(entry, Table):
            return {key: _decode(ANY, value) for key, value in entry.items()}
        if isinstance(entry, Array) or (
            isinstance(entry, Value) and is_array_text(entry.value)
        ):
            return [_decode(ANY, item) for item in self._items()]
        if isinstance(entry, Statement):
            return entry.value
        return infer_scalar(entry.value)

    def want_scalar(self, shape: ScalarShape) -> Any:
        text = self.entry.as_str()
        if text is None:
            raise self._mismatch(shape.name)
        try:
            return shape.parse(text)
        except ParseStringError as err:
            raise ParseEntryError(err.ty, self.entry) from err

    def want_unit(self) -> None:
        if self.entry.as_str() != "":
            raise self._mismatch("unit")

    def want_option(self) -> bool:
        return self.entry.as_str() != ""

    def want_seq(
        self,
        item_for: Callable[[int], Shape],
        limit: int | None = None,
    ) -> list:
        return [_decode(item_for(index), item) for index, item in enumerate(self._items())]

    def want_map(
        self,
        key_shape: Shape,
        value_for: Callable[[Any], Shape],
        known_keys: Collection[str] = (),
    ) -> list[tuple[Any, Any]]:
        table = self.entry.as_table()
        if table is None:
            raise self._mismatch("map")
        pairs = []
        for name, value in table.items():
            key = _decode(key_shape, Value(name))
            pairs.append((key, _decode(value_for(key), value)))
        return pairs

    def want_enum(self, shape: EnumShape) -> tuple[VariantShape, Any]:
        entry = self.entry
        if isinstance(entry, Table) and len(entry) == 1:
            tag, payload = next(iter(entry.items()))
        elif isinstance(entry, (Value, Statement)):
            tag, payload = entry.value, None
        else:
            raise self._mismatch(shape.name)

        variant = shape.variant(tag)
        if variant is None:
            raise UnknownVariantError(tag, shape.tags)

        if variant.kind == "unit":
            if payload is not None and not _is_empty(payload):
                raise SerdeParseError("unit", str(payload))
            return variant, None
        if payload is None:
            raise SerdeParseError(f"{variant.kind} variant {tag}", tag)
        if variant.kind == "tuple":
            return variant, EntryDeserializer(payload).want_seq(variant.item_for)
        return variant, _decode(variant.payload, payload)

    def want_entry(self) -> Entry:
        return self.entry


def _decode(shape: Shape, entry: Entry) -> Any:
    return shape.decode(EntryDeserializer(entry))


def _is_empty(entry: Entry) -> bool:
    if isinstance(entry, Table):
        return not entry.entries
    return entry.as_str() == ""


def from_entry(entry: Entry, target: Any) -> Any:
    """Decode the tree *entry* into a value of the type hint *target*."""
    logger.debug("Decoding %s from %s entry", type_name(target), type(entry).__name__)
    return _decode(shape_of(target), entry)
