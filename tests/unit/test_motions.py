"""Tests for motion algorithms and key-level motion handlers."""

from __future__ import annotations

import pytest

from modalkeys.engine import DocumentModel, EditorState, MoveType, StringBuffer, SubMode
from modalkeys.engine.motions import (
    find_char,
    get_motion_handler,
    motion_column,
    motion_document_end,
    motion_down,
    motion_line_end,
    motion_paragraph_backward,
    motion_paragraph_forward,
    motion_repeat_find,
    motion_word_forward,
    next_word,
    vertical,
    word_boundary,
)


def make_doc(text: str) -> DocumentModel:
    return DocumentModel(StringBuffer(text))


def make_state(position: int = 0, **kwargs) -> EditorState:
    state = EditorState(**kwargs)
    state.cursor.position = position
    return state


class TestWordAlgorithms:
    """Tests for word_boundary and next_word."""

    def test_next_word(self):
        """next_word skips the current word and following blanks."""
        doc = make_doc("foo bar baz")
        assert next_word(doc, 0, 1, simple=False) == 4
        assert next_word(doc, 0, 2, simple=False) == 8

    def test_next_word_stops_at_punctuation(self):
        """Punctuation starts a new word unless the motion is simple."""
        doc = make_doc("foo.bar baz")
        assert next_word(doc, 0, 1, simple=False) == 3
        assert next_word(doc, 0, 1, simple=True) == 8

    def test_next_word_clamps_to_end(self):
        """Running out of words lands on the buffer end."""
        doc = make_doc("foo")
        assert next_word(doc, 0, 5, simple=False) == 3

    def test_word_end(self):
        """Forward boundaries are word ends."""
        doc = make_doc("foo bar")
        assert word_boundary(doc, 0, 1, simple=False, forward=True) == 2
        assert word_boundary(doc, 2, 1, simple=False, forward=True) == 6

    def test_word_start_backward(self):
        """Backward boundaries are word starts."""
        doc = make_doc("foo bar baz")
        assert word_boundary(doc, 8, 1, simple=False, forward=False) == 4
        assert word_boundary(doc, 8, 2, simple=False, forward=False) == 0


class TestFindChar:
    """Tests for f/F/t/T."""

    @pytest.mark.parametrize(
        "kind,position,expected",
        [
            ("f", 0, 4),
            ("t", 0, 3),
            ("F", 10, 7),
            ("T", 10, 8),
        ],
    )
    def test_kinds(self, kind, position, expected):
        """t and T stop one short of the target."""
        doc = make_doc("hello world")
        assert find_char(doc, position, 1, kind, "o") == expected

    def test_count(self):
        """A count finds later occurrences."""
        doc = make_doc("a-b-c-d")
        assert find_char(doc, 0, 3, "f", "-") == 5

    def test_stays_on_line(self):
        """Matches on other lines are not found."""
        doc = make_doc("ab\nx")
        assert find_char(doc, 0, 1, "f", "x") is None

    def test_repeat_without_previous_fails(self):
        """; with nothing to repeat is a failed motion."""
        doc = make_doc("abc")
        assert motion_repeat_find(doc, make_state(), 1).failed


class TestVertical:
    """Tests for vertical movement."""

    def test_clamps_to_short_line(self):
        """The target column is clamped to the line length."""
        doc = make_doc("abcd\nx\nabcd")
        assert vertical(doc, 3, 1, 3) == 6
        assert vertical(doc, 6, 1, 3) == 10

    def test_end_of_line_column(self):
        """A target column of -1 sticks to line ends."""
        doc = make_doc("ab\nabcd")
        assert vertical(doc, 0, 1, -1) == 7

    def test_clamps_to_buffer(self):
        """Moving past the last line stays on it."""
        doc = make_doc("a\nb")
        assert vertical(doc, 0, 5, 0) == 2

    def test_operator_makes_motion_linewise(self):
        """j under an operator covers whole lines from the line start."""
        doc = make_doc("abc\ndef")
        state = make_state(2, submode=SubMode.DELETE)
        result = motion_down(doc, state, 1)
        assert result.type == MoveType.LINEWISE
        assert result.anchor == 0


class TestMotionHandlers:
    """Tests for key-level motion results."""

    def test_change_word_acts_like_word_end(self):
        """cw stops at the end of the word."""
        doc = make_doc("foo bar")
        result = motion_word_forward(doc, make_state(submode=SubMode.CHANGE), 1)
        assert result.position == 2
        assert result.type == MoveType.INCLUSIVE

    def test_line_end_sets_sticky_column(self):
        """$ without an operator makes later vertical motions stick to line ends."""
        doc = make_doc("abc\nde")
        assert motion_line_end(doc, make_state(), 1).target_column == -1
        assert motion_line_end(doc, make_state(submode=SubMode.DELETE), 1).target_column is None
        assert motion_line_end(doc, make_state(), 2).position == 6

    def test_column(self):
        """| moves to a 1-based column."""
        doc = make_doc("abcdef")
        assert motion_column(doc, make_state(), 3).position == 2
        assert motion_column(doc, make_state(), 30).position == 5

    def test_document_end_is_a_jump(self):
        """G without a count goes to the last line and records a jump."""
        doc = make_doc("a\nb\nc")
        result = motion_document_end(doc, make_state(), 1)
        assert result.position == 4
        assert result.jump is True

    def test_paragraphs(self):
        """} and { stop on blank lines or the buffer ends."""
        doc = make_doc("a\n\nb")
        assert motion_paragraph_forward(doc, make_state(0), 1).position == 2
        assert motion_paragraph_forward(doc, make_state(2), 1).position == 4
        assert motion_paragraph_backward(doc, make_state(3), 1).position == 2
        assert motion_paragraph_backward(doc, make_state(2), 1).position == 0

    def test_registry(self):
        """Handlers are found by name."""
        assert get_motion_handler("motion_word_forward") is motion_word_forward
        assert get_motion_handler("nope") is None
