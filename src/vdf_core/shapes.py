"""Decode targets: shapes derived from Python type hints.

:func:`shape_of` turns a type hint into a :class:`Shape`.  A shape knows
which capability of a :class:`Decoder` it needs (a scalar, a map, a
sequence, ...) and how to build the Python value from what comes back.
Both the token-stream decoder and the tree decoder implement
:class:`Decoder`, so every shape works with either.

Supported targets:

- ``Any`` / ``object``: inferred from the input
- ``bool``, ``int``, ``float``, ``str``, ``bytes``, :data:`Char`, and any
  class parsed from one string (``ipaddress`` types, ``SocketAddress``,
  classes with ``from_str``)
- ``None``: the empty string
- ``Optional[T]``
- ``list``, ``set``, ``frozenset``, ``Sequence``, ``tuple[T, ...]`` and
  fixed ``tuple[A, B]``
- ``dict`` / ``Mapping``
- dataclasses (structs), ``enum.Enum`` and :class:`Tagged` hierarchies
- other unions (first alternative that fits)
- the :class:`~vdf_core.entry.Entry` node types
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import types
from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    ClassVar,
    Collection,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .convert import Char, parse_str, type_name
from .entry import Entry
from .errors import OtherError, SerdeParseError, VdfError

_NONE_TYPE = type(None)


# ---------------------------------------------------------------------------
# Decoder interface
# ---------------------------------------------------------------------------

class Decoder(ABC):
    """The capability calls a shape makes on whatever it is decoding from."""

    @abstractmethod
    def want_any(self) -> Any:
        """Decode whatever comes next, inferring scalars."""

    @abstractmethod
    def want_scalar(self, shape: ScalarShape) -> Any:
        ...

    @abstractmethod
    def want_unit(self) -> None:
        ...

    @abstractmethod
    def want_option(self) -> bool:
        """Return ``False`` for an absent or empty value, ``True`` otherwise."""

    @abstractmethod
    def want_seq(
        self,
        item_for: Callable[[int], Shape],
        limit: int | None = None,
    ) -> list:
        """Decode a sequence; ``item_for(i)`` gives the shape of element *i*."""

    @abstractmethod
    def want_map(
        self,
        key_shape: Shape,
        value_for: Callable[[Any], Shape],
        known_keys: Collection[str] = (),
    ) -> list[tuple[Any, Any]]:
        """Decode ``(key, value)`` pairs; ``value_for(key)`` gives the value shape.

        *known_keys* are the keys a struct expects, so a value run on one
        line stops at the next of them.
        """

    @abstractmethod
    def want_enum(self, shape: EnumShape) -> tuple[VariantShape, Any]:
        """Read a variant tag and its payload."""

    @abstractmethod
    def want_entry(self) -> Entry:
        """Decode the next value as a dynamic tree node."""


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

class Shape:
    name = "value"
    #: Whether the value consumes its own ``{ }`` when written in braces.
    braced = False

    def decode(self, de: Decoder) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class AnyShape(Shape):
    name = "any"
    braced = True

    def decode(self, de: Decoder) -> Any:
        return de.want_any()


class ScalarShape(Shape):
    def __init__(self, target: Any) -> None:
        self.target = target
        self.name = type_name(target)

    def parse(self, text: str) -> Any:
        return parse_str(text, self.target)

    def decode(self, de: Decoder) -> Any:
        return de.want_scalar(self)


class UnitShape(Shape):
    name = "unit"

    def decode(self, de: Decoder) -> None:
        de.want_unit()
        return None


class OptionShape(Shape):
    def __init__(self, inner: Shape) -> None:
        self.inner = inner
        self.name = f"Optional[{inner.name}]"
        self.braced = inner.braced

    def decode(self, de: Decoder) -> Any:
        if de.want_option():
            return self.inner.decode(de)
        return None


class SeqShape(Shape):
    def __init__(self, item: Shape, factory: Callable = list) -> None:
        self.item = item
        self.factory = factory
        self.name = f"{factory.__name__}[{item.name}]"

    def decode(self, de: Decoder) -> Any:
        return self.factory(de.want_seq(lambda index: self.item))


class TupleShape(Shape):
    """Fixed-length tuple; each position has its own shape."""

    def __init__(self, items: list[Shape]) -> None:
        self.items = items
        self.name = "tuple[" + ", ".join(s.name for s in items) + "]"

    def item_for(self, index: int) -> Shape:
        if index < len(self.items):
            return self.items[index]
        return ANY

    def decode(self, de: Decoder) -> tuple:
        values = de.want_seq(self.item_for, limit=len(self.items))
        return tuple(check_length(values, len(self.items), "tuple"))


class MapShape(Shape):
    braced = True

    def __init__(self, key: Shape, value: Shape, factory: Callable = dict) -> None:
        self.key = key
        self.value = value
        self.factory = factory
        self.name = f"dict[{key.name}, {value.name}]"

    def decode(self, de: Decoder) -> Any:
        return self.factory(de.want_map(self.key, lambda key: self.value))


@dataclasses.dataclass
class _Field:
    name: str
    wire: str
    shape: Shape
    required: bool


class StructShape(Shape):
    """A dataclass decoded from a map of field names to values.

    Fields are resolved on first use so that a dataclass may refer to
    itself or to classes defined after it.
    """

    braced = True

    def __init__(self, cls: type) -> None:
        self.cls = cls
        self.name = cls.__name__
        self._fields: dict[str, _Field] | None = None

    @property
    def fields(self) -> dict[str, _Field]:
        if self._fields is None:
            hints = get_type_hints(self.cls)
            fields = {}
            for f in dataclasses.fields(self.cls):
                if not f.init:
                    continue
                wire = f.metadata.get("name", f.name)
                required = (
                    f.default is dataclasses.MISSING
                    and f.default_factory is dataclasses.MISSING
                )
                fields[wire] = _Field(f.name, wire, shape_of(hints[f.name]), required)
            self._fields = fields
        return self._fields

    def decode(self, de: Decoder) -> Any:
        fields = self.fields
        seen: set[str] = set()

        def value_for(key: str) -> Shape:
            f = fields.get(key)
            if f is None:
                return ANY
            if key in seen:
                raise OtherError(f"duplicate field `{key}`")
            seen.add(key)
            return f.shape

        pairs = de.want_map(STR, value_for, known_keys=fields.keys())
        return self.build({key: value for key, value in pairs if key in fields})

    def build(self, values: dict[str, Any]) -> Any:
        kwargs = {}
        for wire, f in self.fields.items():
            if wire in values:
                kwargs[f.name] = values[wire]
            elif isinstance(f.shape, OptionShape):
                if f.required:
                    kwargs[f.name] = None
            elif f.required:
                raise OtherError(f"missing field `{wire}`")
        try:
            return self.cls(**kwargs)
        except (ValueError, TypeError) as e:
            raise OtherError(str(e)) from e


# -- Enums ---------------------------------------------------------------

class Tagged:
    """Base class for enums whose variants carry data.

    Subclass it once for the enum itself, then subclass that class for each
    variant::

        class Shape(Tagged):
            pass

        @dataclass
        class Circle(Shape):
            radius: float

        class Empty(Shape):
            __tag__ = "none"

    A variant's tag is ``__tag__`` (default: the class name).  Its payload
    kind is ``__variant__``: ``"unit"``, ``"newtype"`` (the single field),
    ``"tuple"`` (the fields in order) or ``"struct"``.  Without one, a
    variant with no dataclass fields is a unit variant and any other is a
    struct variant.
    """

    __tag__: ClassVar[str | None] = None
    __variant__: ClassVar[str | None] = None


class VariantShape(Shape):
    KINDS = ("unit", "newtype", "tuple", "struct")

    def __init__(
        self,
        tag: str,
        kind: str,
        build: Callable[[Any], Any],
        payload: Shape | None = None,
        items: list[Shape] | None = None,
    ) -> None:
        if kind not in self.KINDS:
            raise TypeError(f"unknown variant kind {kind!r} for {tag!r}")
        self.name = tag
        self.tag = tag
        self.kind = kind
        self.payload = payload
        self.items = items or []
        self._build = build

    def item_for(self, index: int) -> Shape:
        if index < len(self.items):
            return self.items[index]
        return ANY

    def build(self, payload: Any) -> Any:
        if self.kind == "tuple":
            payload = check_length(payload, len(self.items), f"tuple variant {self.tag}")
        try:
            return self._build(payload)
        except (ValueError, TypeError) as e:
            raise OtherError(str(e)) from e

    @classmethod
    def for_member(cls, member: enum.Enum) -> VariantShape:
        tag = member.value if isinstance(member.value, str) else member.name
        return cls(tag, "unit", lambda payload: member)

    @classmethod
    def for_class(cls, variant: type) -> VariantShape:
        tag = variant.__tag__ or variant.__name__
        names = []
        if dataclasses.is_dataclass(variant):
            names = [f.name for f in dataclasses.fields(variant) if f.init]
        kind = variant.__variant__ or ("struct" if names else "unit")

        if kind == "unit":
            return cls(tag, kind, lambda payload: variant())
        if kind == "struct":
            return cls(tag, kind, lambda payload: payload, payload=shape_of(variant))

        hints = get_type_hints(variant)
        items = [shape_of(hints[name]) for name in names]
        if kind == "newtype":
            if len(items) != 1:
                raise TypeError(f"newtype variant {tag!r} must have exactly one field")
            return cls(tag, kind, lambda payload: variant(payload), payload=items[0])
        return cls(tag, kind, lambda payload: variant(*payload), items=items)


class EnumShape(Shape):
    def __init__(self, name: str, variants: list[VariantShape]) -> None:
        self.name = name
        self.variants = {v.tag: v for v in variants}

    @property
    def tags(self) -> list[str]:
        return list(self.variants)

    def variant(self, tag: str) -> VariantShape | None:
        return self.variants.get(tag)

    def decode(self, de: Decoder) -> Any:
        variant, payload = de.want_enum(self)
        return variant.build(payload)

    @classmethod
    def from_enum(cls, target: type[enum.Enum]) -> EnumShape:
        return cls(target.__name__, [VariantShape.for_member(m) for m in target])

    @classmethod
    def from_tagged(cls, target: type) -> EnumShape:
        return cls(
            target.__name__,
            [VariantShape.for_class(v) for v in target.__subclasses__()],
        )


# -- Dynamic values ------------------------------------------------------

class UntaggedShape(Shape):
    """A union without ``None``: the first alternative that decodes wins."""

    braced = True

    def __init__(self, name: str, alternatives: list[Shape]) -> None:
        self.name = name
        self.alternatives = alternatives

    def decode(self, de: Decoder) -> Any:
        from .tree import EntryDeserializer

        entry = de.want_entry()
        for alternative in self.alternatives:
            try:
                return alternative.decode(EntryDeserializer(entry))
            except VdfError:
                continue
        raise OtherError(f"data did not match any variant of untagged enum {self.name}")


class EntryShape(Shape):
    braced = True

    def __init__(self, cls: type[Entry]) -> None:
        self.cls = cls
        self.name = cls.__name__

    def decode(self, de: Decoder) -> Entry:
        entry = de.want_entry()
        if not isinstance(entry, self.cls):
            raise SerdeParseError(self.name, str(entry))
        return entry


def check_length(values: list, expected: int, what: str) -> list:
    if len(values) != expected:
        raise OtherError(f"invalid length {len(values)}, expected {what} of size {expected}")
    return values


def renamed(name: str, **kwargs: Any) -> Any:
    """A dataclass field read from the key *name* instead of its own name."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata["name"] = name
    return dataclasses.field(metadata=metadata, **kwargs)


# ---------------------------------------------------------------------------
# shape_of
# ---------------------------------------------------------------------------

_SEQUENCE_ORIGINS = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

_cache: dict[Any, Shape] = {}


def shape_of(target: Any) -> Shape:
    """Return the (cached) shape for the type hint *target*."""
    try:
        return _cache[target]
    except KeyError:
        pass
    except TypeError:
        return _build(target)
    shape = _cache[target] = _build(target)
    return shape


def _build(target: Any) -> Shape:
    if target is Any or target is object:
        return AnyShape()
    if target is None or target is _NONE_TYPE:
        return UnitShape()
    if target is Char:
        return ScalarShape(Char)
    if hasattr(target, "__supertype__"):
        return shape_of(target.__supertype__)

    origin = get_origin(target)
    args = get_args(target)

    if origin is Union or origin is types.UnionType:
        present = [a for a in args if a is not _NONE_TYPE]
        if len(present) < len(args):
            inner = present[0] if len(present) == 1 else Union[tuple(present)]
            return OptionShape(shape_of(inner))
        return UntaggedShape(type_name(target), [shape_of(a) for a in args])

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SeqShape(shape_of(args[0]), tuple)
        return TupleShape([shape_of(a) for a in args])
    if origin in _SEQUENCE_ORIGINS:
        item = shape_of(args[0]) if args else AnyShape()
        return SeqShape(item, _SEQUENCE_ORIGINS[origin])
    if origin in _MAPPING_ORIGINS:
        key, value = args if args else (str, Any)
        return MapShape(_key_shape(key), shape_of(value))

    if target is tuple:
        return SeqShape(AnyShape(), tuple)
    if target in _SEQUENCE_ORIGINS:
        return SeqShape(AnyShape(), _SEQUENCE_ORIGINS[target])
    if target in _MAPPING_ORIGINS:
        return MapShape(ScalarShape(str), AnyShape())

    if isinstance(target, type):
        if issubclass(target, Entry):
            return EntryShape(target)
        if Tagged in target.__bases__:
            return EnumShape.from_tagged(target)
        if issubclass(target, enum.Enum):
            return EnumShape.from_enum(target)
        if dataclasses.is_dataclass(target):
            return StructShape(target)
        return ScalarShape(target)

    raise TypeError(f"unsupported decode target {target!r}")


def _key_shape(key: Any) -> Shape:
    # Keys are single tokens: enum keys are matched as text.
    if isinstance(key, type) and issubclass(key, enum.Enum):
        return ScalarShape(key)
    return shape_of(key)


ANY = AnyShape()
STR = ScalarShape(str)
ENTRY = EntryShape(Entry)
