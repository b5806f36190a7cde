"""Tests for typed decoding from an entry tree."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Union

import pytest

from vdf_core import Tagged, from_entry, from_str, parse
from vdf_core.entry import Array, Table, Value
from vdf_core.errors import (
    OtherError,
    ParseEntryError,
    SerdeParseError,
    UnknownVariantError,
)


@dataclass
class Depot:
    id: int
    size: int


@dataclass
class Manifest:
    appid: int
    depot: list[Depot]
    comment: Optional[str] = None


class Mode(enum.Enum):
    FAST = "fast"
    SAFE = "safe"


class Action(Tagged):
    pass


class Stop(Action):
    pass


@dataclass
class Move(Action):
    x: int
    y: int


@dataclass
class Say(Action):
    __variant__ = "newtype"
    text: str


@dataclass
class Sprite:
    pos: tuple[int, int]
    name: str


@dataclass
class Script:
    mode: Mode
    action: list[Action]


MANIFEST = """
appid 730
depot
{
    id 1
    size 10
}
depot
{
    id 2
    size 20
}
"""


# ---------------------------------------------------------------------------
# Structs and sequences
# ---------------------------------------------------------------------------

def test_struct_from_tree():
    manifest = from_entry(parse(MANIFEST), Manifest)
    assert manifest == Manifest(730, [Depot(1, 10), Depot(2, 20)])


def test_tree_and_text_decode_agree():
    assert from_entry(parse(MANIFEST), Manifest) == from_str(MANIFEST, Manifest)


def test_single_node_is_one_element_sequence():
    manifest = from_entry(parse("appid 1\ndepot {\nid 3\nsize 4\n}"), Manifest)
    assert manifest.depot == [Depot(3, 4)]


def test_bracket_value_is_split():
    assert from_entry(Value("[1 2 3]"), list[int]) == [1, 2, 3]


def test_array_to_tuple():
    assert from_entry(Array([Value("1"), Value("2")]), tuple[int, int]) == (1, 2)


def test_same_line_values_to_tuple():
    source = "pos 1 2\nname hero"
    assert from_entry(parse(source), Sprite) == Sprite((1, 2), "hero")
    assert from_entry(parse(source), Sprite) == from_str(source, Sprite)


def test_same_line_values_to_list():
    assert from_entry(parse("a 1 2\nb x"), dict[str, Any]) == {"a": [1, 2], "b": "x"}


def test_optional_field():
    assert from_entry(parse('appid 1\ndepot {\nid 1\nsize 1\n}\ncomment ""'), Manifest).comment is None
    assert from_entry(parse("appid 1\ndepot {\nid 1\nsize 1\n}\ncomment hi"), Manifest).comment == "hi"


def test_missing_field():
    with pytest.raises(OtherError):
        from_entry(parse("appid 1"), Manifest)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def test_scalar_failure_is_entry_error():
    with pytest.raises(ParseEntryError) as exc:
        from_entry(Value("x"), int)
    assert exc.value.ty == "int"
    assert exc.value.span is None


def test_table_where_scalar_expected():
    with pytest.raises(SerdeParseError):
        from_entry(Table(), int)


def test_value_where_map_expected():
    with pytest.raises(SerdeParseError):
        from_entry(Value("x"), dict[str, int])


def test_any_from_tree():
    tree = parse("a 1\nb { c x }\nd 1\nd 2.5")
    assert from_entry(tree, Any) == {"a": 1, "b": {"c": "x"}, "d": [1, 2.5]}


def test_untagged_union_from_tree():
    assert from_entry(Value("7"), Union[int, str]) == 7
    assert from_entry(Value("seven"), Union[int, str]) == "seven"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

def test_enums_from_tree():
    tree = parse(
        """
        mode safe
        action Stop
        action { Move {
            x 1
            y 2
        } }
        action { Say hello }
        """
    )
    script = from_entry(tree, Script)
    assert script.mode is Mode.SAFE
    assert isinstance(script.action[0], Stop)
    assert script.action[1:] == [Move(1, 2), Say("hello")]


def test_unknown_variant_from_tree():
    with pytest.raises(UnknownVariantError) as exc:
        from_entry(Value("Jump"), Action)
    assert exc.value.variant == "Jump"
    assert exc.value.span is None


def test_payload_required():
    with pytest.raises(SerdeParseError):
        from_entry(Value("Move"), Action)


def test_entry_target_returns_node():
    tree = parse("a 1")
    assert from_entry(tree, Table) is tree
