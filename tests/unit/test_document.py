"""Tests for the position model and the in-memory buffer."""

from __future__ import annotations

from modalkeys.engine import Cursor, DocumentModel, StringBuffer
from modalkeys.engine.document import char_class


def make_doc(text: str) -> DocumentModel:
    return DocumentModel(StringBuffer(text))


class TestDocumentModel:
    """Tests for line/column arithmetic."""

    def test_lines_and_blocks(self):
        """Blocks are 0-based, lines 1-based."""
        doc = make_doc("ab\n\ncde")
        assert doc.line_count == 3
        assert doc.block_position(2) == 4
        assert doc.block_end(0) == 2
        assert doc.first_position_in_line(3) == 4
        assert doc.last_position_in_line(3) == 7
        assert doc.line_for_position(4) == 3

    def test_character_at_end_is_separator(self):
        """The offset past the last character reads as a line separator."""
        doc = make_doc("ab")
        assert doc.character_at(1) == "b"
        assert doc.character_at(2) == "\n"
        assert doc.character_at(3) == ""

    def test_distances(self):
        """left_dist and right_dist measure within the line."""
        doc = make_doc("abc\ndef")
        assert doc.left_dist(5) == 1
        assert doc.right_dist(5) == 2
        assert doc.column_for_position(5) == 1

    def test_at_end_of_line(self):
        """Only the separator of a non-empty line counts as end of line."""
        doc = make_doc("ab\n\nc")
        assert doc.at_end_of_line(2) is True
        assert doc.at_end_of_line(3) is False  # Empty line
        assert doc.at_end_of_line(1) is False

    def test_first_non_blank(self):
        """Leading spaces and tabs are skipped."""
        doc = make_doc("x\n \tfoo")
        assert doc.first_non_blank(3) == 4

    def test_remove_returns_text(self):
        """remove gives back the deleted characters."""
        doc = make_doc("hello")
        assert doc.remove(3, 1) == "el"
        assert doc.text == "hlo"

    def test_positions_are_clamped(self):
        """Out-of-range offsets are clamped to the buffer."""
        doc = make_doc("abc")
        assert doc.clamp(-4) == 0
        assert doc.clamp(10) == 3
        assert doc.text_between(1, 10) == "bc"


class TestCharClass:
    """Tests for word character classification."""

    def test_classes(self):
        """Whitespace, punctuation and word characters differ."""
        assert char_class(" ", simple=False) == 0
        assert char_class(".", simple=False) == 1
        assert char_class("a", simple=False) == 2
        assert char_class("_", simple=False) == 2

    def test_simple_classes(self):
        """WORD motions only separate blanks from the rest."""
        assert char_class(".", simple=True) == 1
        assert char_class("a", simple=True) == 1


class TestCursor:
    """Tests for the Cursor value."""

    def test_start_and_end(self):
        """start and end order the two ends."""
        cursor = Cursor(position=2, anchor=5)
        assert (cursor.start, cursor.end) == (2, 5)
        assert not cursor.is_empty


class TestStringBuffer:
    """Tests for the in-memory TextBuffer."""

    def test_revisions_follow_undo_and_redo(self):
        """Undo and redo restore the revision of the state they return to."""
        buffer = StringBuffer("a")
        buffer.replace(1, 1, "b")
        first = buffer.revision
        buffer.replace(0, 0, "c")
        assert buffer.text == "cab"
        buffer.undo()
        assert (buffer.text, buffer.revision) == ("ab", first)
        buffer.redo()
        assert buffer.text == "cab"
        assert buffer.revision != first

    def test_edit_block_is_one_undo_step(self):
        """Edits inside a block undo together."""
        buffer = StringBuffer("")
        buffer.begin_edit_block()
        buffer.replace(0, 0, "a")
        buffer.replace(1, 1, "b")
        buffer.end_edit_block()
        buffer.undo()
        assert buffer.text == ""

    def test_new_edit_clears_redo(self):
        """Editing after an undo drops the redo history."""
        buffer = StringBuffer("a")
        buffer.replace(0, 1, "b")
        buffer.undo()
        buffer.replace(0, 0, "c")
        buffer.redo()
        assert buffer.text == "ca"

    def test_empty_replace_is_not_an_edit(self):
        """Replacing nothing with nothing keeps the revision."""
        buffer = StringBuffer("a")
        buffer.replace(0, 0, "")
        assert buffer.revision == 0

    def test_selection_is_clamped(self):
        """Selections never point past the text."""
        buffer = StringBuffer("abc")
        buffer.set_selection(1, 9)
        assert buffer.get_selection() == (1, 3)
        buffer.set_text("a")
        assert buffer.cursor_position == 1
