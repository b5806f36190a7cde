"""Tests for the lexer."""

from vdf_core.lexer import Span, Token, tokenize


def kinds(source):
    return [token for token, _ in tokenize(source)]


def texts(source):
    return [span.text(source) for _, span in tokenize(source)]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def test_braces():
    assert kinds("{ }") == [Token.GROUP_START, Token.GROUP_END]


def test_braces_split_bare_items():
    assert texts("foo{bar}") == ["foo", "{", "bar", "}"]


def test_bare_and_quoted_items():
    assert kinds('foo "bar baz"') == [Token.ITEM, Token.ITEM]
    assert texts('foo "bar baz"') == ["foo", '"bar baz"']


def test_statements():
    assert kinds('#base "#include"') == [Token.STATEMENT, Token.STATEMENT]


def test_hash_inside_item_is_not_a_statement():
    assert kinds("a#b") == [Token.ITEM]


def test_quoted_escapes_stay_in_the_token():
    source = r'"a \"quoted\" word"'
    assert texts(source) == [source]


def test_quote_inside_bare_item():
    assert texts('foo"bar') == ['foo"bar']


# ---------------------------------------------------------------------------
# Skipping
# ---------------------------------------------------------------------------

def test_whitespace_is_skipped():
    assert texts(" \t\r\n a \n\n b ") == ["a", "b"]


def test_line_comments_are_skipped():
    source = "a // comment { }\nb"
    assert texts(source) == ["a", "b"]


def test_comment_at_end_of_input():
    assert texts("a // trailing") == ["a"]


def test_empty_input():
    assert kinds("") == []
    assert kinds("  // only a comment\n") == []


def test_start_offset():
    assert [span for _, span in tokenize("a b", 1)] == [Span(2, 3)]


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------

def test_unterminated_quote_is_invalid():
    tokens = list(tokenize('a "open'))
    assert tokens[0] == (Token.ITEM, Span(0, 1))
    assert tokens[1] == (None, Span(2, 3))


def test_scanning_resumes_after_invalid_character():
    tokens = list(tokenize('"x'))
    assert tokens == [(None, Span(0, 1)), (Token.ITEM, Span(1, 2))]


# ---------------------------------------------------------------------------
# Span
# ---------------------------------------------------------------------------

def test_span_helpers():
    span = Span(2, 5)
    assert len(span) == 3
    assert span.text("abcdefg") == "cde"
    assert span.to(Span(7, 9)) == Span(2, 9)
    assert span.shifted(10) == Span(12, 15)
