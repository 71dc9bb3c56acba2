"""Tests for buffer search."""

from __future__ import annotations

from modalkeys.engine.search import (
    SearchMatch,
    compile_needle,
    match_spans,
    search,
    word_under_cursor,
)


class TestSearch:
    """Tests for search() with wrap-around."""

    def test_forward_starts_after_cursor(self):
        """A forward search skips a match under the cursor."""
        assert search("foo bar foo", "foo", 0, forward=True) == SearchMatch(8, 11)

    def test_forward_wraps(self):
        assert search("foo bar foo", "foo", 8, forward=True) == SearchMatch(0, 3, wrapped=True)

    def test_backward(self):
        assert search("foo bar foo", "foo", 8, forward=False) == SearchMatch(0, 3)

    def test_backward_wraps(self):
        assert search("foo bar foo", "foo", 0, forward=False) == SearchMatch(8, 11, wrapped=True)

    def test_not_found(self):
        assert search("foo", "zzz", 0, forward=True) is None
        assert search("foo", "", 0, forward=True) is None

    def test_regular_expression(self):
        assert search("a1 b22", r"\d+", 0, forward=True) == SearchMatch(1, 2)


class TestNeedles:
    """Tests for needle translation."""

    def test_whole_words(self):
        """\\< and \\> restrict matches to whole words."""
        assert search("cat concat cat", "\\<cat\\>", 0, forward=True) == SearchMatch(11, 14)

    def test_invalid_pattern_is_literal(self):
        """A needle that is not a valid regex is searched for literally."""
        assert search("xa(y", "a(", 0, forward=True) == SearchMatch(1, 3)

    def test_empty_needle(self):
        assert compile_needle("") is None
        assert compile_needle("\\<\\>") is None


class TestHighlightSpans:
    """Tests for match_spans and word_under_cursor."""

    def test_match_spans(self):
        assert match_spans("aXa", "a") == [(0, 1), (2, 3)]

    def test_zero_width_matches_are_dropped(self):
        assert match_spans("ab", "x*") == []

    def test_word_under_cursor(self):
        assert word_under_cursor("foo bar_2 baz", 5) == (4, 9)
        assert word_under_cursor("foo bar", 3) is None
