"""Tests for operator regions, text operators and line shifting."""

from __future__ import annotations

from modalkeys.engine import DocumentModel, MoveType, StringBuffer, SubMode
from modalkeys.engine.operators import (
    Region,
    block_spans,
    block_text,
    delete_block,
    get_operator_handler,
    indent_lines,
    operator_change,
    operator_delete,
    operator_region,
    operator_yank,
    shift_lines_left,
    shift_lines_right,
)
from modalkeys.engine.registers import RegisterStore


def make_doc(text: str) -> DocumentModel:
    return DocumentModel(StringBuffer(text))


class TestOperatorRegion:
    """Tests for operator_region corrections."""

    def test_exclusive(self):
        """Exclusive motions stop before the far end."""
        doc = make_doc("abc\ndef")
        assert operator_region(doc, 4, 1, MoveType.EXCLUSIVE) == Region(1, 4, 1, 2)

    def test_inclusive(self):
        """Inclusive motions take the far character too."""
        doc = make_doc("abc\ndef")
        assert operator_region(doc, 1, 4, MoveType.INCLUSIVE).end == 5

    def test_inclusive_clamped_to_buffer(self):
        """The inclusive correction never passes the buffer end."""
        doc = make_doc("abc")
        assert operator_region(doc, 0, 3, MoveType.INCLUSIVE).end == 3

    def test_linewise(self):
        """Linewise regions run to the start of the following line."""
        doc = make_doc("a\nb\nc")
        assert operator_region(doc, 0, 2, MoveType.LINEWISE) == Region(0, 4, 1, 2, linewise=True)

    def test_linewise_change_keeps_separator(self):
        """A linewise change leaves the last separator in place."""
        doc = make_doc("a\nb\nc")
        region = operator_region(doc, 0, 2, MoveType.LINEWISE, SubMode.CHANGE)
        assert region.end == 3


class TestTextOperators:
    """Tests for delete, change and yank."""

    def test_delete_characters(self):
        """Characterwise deletes fill the register with the removed text."""
        doc = make_doc("hello")
        registers = RegisterStore()
        result = operator_delete(doc, Region(1, 3, 1, 1), registers, '"')
        assert doc.text == "hlo"
        assert result.position == 1
        assert registers.get().content == "el"
        assert not registers.get().linewise

    def test_delete_last_line(self):
        """Deleting the last line also removes the separator before it."""
        doc = make_doc("a\nb")
        registers = RegisterStore()
        region = operator_region(doc, 2, 2, MoveType.LINEWISE)
        result = operator_delete(doc, region, registers, '"')
        assert doc.text == "a"
        assert result.position == 0
        assert registers.get().content == "b\n"
        assert registers.get().linewise

    def test_delete_line_before_trailing_newline(self):
        """A line followed by the empty last line keeps the separator before it."""
        doc = make_doc("a\nb\n")
        registers = RegisterStore()
        region = operator_region(doc, 2, 2, MoveType.LINEWISE)
        result = operator_delete(doc, region, registers, '"')
        assert doc.text == "a\n"
        assert result.position == 2
        assert registers.get().content == "b\n"

    def test_change_lines(self):
        """A linewise change leaves one empty line and asks for insert mode."""
        doc = make_doc("a\nb\nc")
        registers = RegisterStore()
        region = operator_region(doc, 0, 2, MoveType.LINEWISE, SubMode.CHANGE)
        result = operator_change(doc, region, registers, "a")
        assert doc.text == "\nc"
        assert result.enter_insert
        assert registers.get("a").content == "a\nb\n"

    def test_yank_leaves_text(self):
        """Yanking copies without changing the buffer."""
        doc = make_doc("abc")
        registers = RegisterStore()
        result = operator_yank(doc, operator_region(doc, 0, 2, MoveType.INCLUSIVE), registers, '"')
        assert result.text == "abc"
        assert doc.text == "abc"

    def test_handler_lookup(self):
        """Only the text operators have handlers."""
        assert get_operator_handler(SubMode.DELETE) is operator_delete
        assert get_operator_handler(SubMode.SHIFT_LEFT) is None


class TestShifting:
    """Tests for > < and =."""

    def test_shift_right(self):
        """Every line gets the shift width in spaces."""
        doc = make_doc("a\nb")
        shift_lines_right(doc, 1, 2, 2)
        assert doc.text == "  a\n  b"

    def test_shift_left_counts_tabs(self):
        """A tab counts as a full tabstop of width."""
        doc = make_doc("\t a\n   b")
        shift_lines_left(doc, 1, 2, 4, 8)
        assert doc.text == " a\nb"

    def test_shift_is_one_undo_step(self):
        """A multi-line shift undoes in one step."""
        buffer = StringBuffer("a\nb\nc")
        shift_lines_right(DocumentModel(buffer), 1, 3, 4)
        buffer.undo()
        assert buffer.text == "a\nb\nc"

    def test_indent_from_line_above(self):
        """Non-blank lines copy the indentation of the nearest non-blank line above."""
        doc = make_doc("  x\ny\n\nz")
        indent_lines(doc, 2, 4)
        assert doc.text == "  x\n  y\n\n  z"


class TestBlockSelections:
    """Tests for blockwise helpers."""

    def test_block_text_and_delete(self):
        """A block covers the same columns on every line."""
        doc = make_doc("abcd\nefgh\nijkl")
        registers = RegisterStore()
        assert block_text(doc, 1, 12) == "bc\nfg\njk"
        result = delete_block(doc, 1, 12, registers, '"')
        assert doc.text == "ad\neh\nil"
        assert result.position == 1
        assert registers.get().content == "bc\nfg\njk"

    def test_short_lines_are_skipped(self):
        """Lines that end before the block contribute no span."""
        doc = make_doc("abcd\nx\nabcd")
        assert block_spans(doc, 2, 10) == [(2, 4), (9, 11)]
