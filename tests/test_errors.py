"""Tests for the error taxonomy."""

from vdf_core.errors import (
    NoValidTokenError,
    OtherError,
    ParseItemError,
    ParseStringError,
    SerdeParseError,
    UnexpectedTokenError,
    UnknownVariantError,
    VdfError,
    WrongEventTypeError,
)
from vdf_core.events import GroupEndEvent, Item
from vdf_core.lexer import Span, Token


def test_all_errors_share_a_base():
    for cls in (
        NoValidTokenError,
        OtherError,
        ParseItemError,
        ParseStringError,
        SerdeParseError,
        UnexpectedTokenError,
        UnknownVariantError,
        WrongEventTypeError,
    ):
        assert issubclass(cls, VdfError)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def test_unexpected_token_message():
    err = UnexpectedTokenError((Token.ITEM, Token.STATEMENT), Token.GROUP_END)
    assert str(err) == "Unexpected token, found end of group expected one of item, statement"
    assert err.label == "Expected item, statement"


def test_unexpected_end_of_input_message():
    err = UnexpectedTokenError((Token.GROUP_END,), None)
    assert str(err) == "Unexpected end of input expected one of end of group"


def test_expected_end_of_input_message():
    err = UnexpectedTokenError((), Token.ITEM)
    assert str(err) == "Unexpected token, found item expected end of input"
    assert err.label == "Expected end of input"


def test_no_valid_token_message():
    err = NoValidTokenError((Token.ITEM,))
    assert str(err) == "No valid token found, expected one of item"


def test_unknown_variant_message():
    err = UnknownVariantError("Square", ["Circle", "Empty"])
    assert str(err) == "Unknown variant `Square`, expected one of `Circle`, `Empty`"


def test_parse_string_message():
    err = ParseStringError("int", "abc")
    assert err.ty == "int"
    assert err.value == "abc"
    assert "abc" in str(err) and "int" in str(err)


def test_parse_item_takes_span_from_item():
    err = ParseItemError("int", Item("x", Span(3, 4)))
    assert err.span == Span(3, 4)


def test_wrong_event_type_takes_span_from_event():
    err = WrongEventTypeError(GroupEndEvent(Span(5, 6)), "entry", "group end")
    assert err.span == Span(5, 6)
    assert str(err) == "Wrong event type, expected entry but found group end"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

def test_location():
    source = "a 1\nbb 2\n"
    err = SerdeParseError("int", "2", Span(7, 8), source)
    assert err.location == (2, 4)


def test_location_unknown_without_context():
    assert OtherError("boom").location is None


def test_fill_context_only_fills_missing():
    err = OtherError("boom")
    err.fill_context(Span(1, 2), "source")
    err.fill_context(Span(0, 6), "other")
    assert err.span == Span(1, 2)
    assert err.source == "source"


def test_fill_context_keeps_class():
    err = SerdeParseError("int", "x")
    assert isinstance(err.fill_context(Span(0, 1), "x"), SerdeParseError)


def test_relocate():
    err = SerdeParseError("int", "x", Span(0, 1), "x")
    err.relocate(10, "outer source")
    assert err.span == Span(10, 11)
    assert err.source == "outer source"
