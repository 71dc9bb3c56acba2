"""Operator functions.

Operators act on the region between the anchor and the cursor once a
motion (or a visual selection) has defined it. ``operator_region``
applies the inclusive and linewise corrections; the ``operator_*``
functions then change the buffer and the registers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from .state import MoveType, SubMode

if TYPE_CHECKING:
    from .document import DocumentModel
    from .registers import RegisterStore


@dataclass
class Region:
    """Buffer range an operator applies to, with its 1-based line span."""

    start: int
    end: int
    first_line: int
    last_line: int
    linewise: bool = False


@dataclass
class OperatorResult:
    """Result of an operator execution."""

    position: int  # Where the cursor goes afterwards
    text: str = ""  # Text captured into the register
    enter_insert: bool = False  # For the change operator


OperatorFunc = Callable[["DocumentModel", Region, "RegisterStore", str], OperatorResult]


def operator_region(
    doc: DocumentModel,
    anchor: int,
    position: int,
    move_type: MoveType,
    submode: SubMode = SubMode.NONE,
) -> Region:
    """Region spanned by ``anchor`` and ``position`` after corrections.

    Inclusive motions take one more character at the far end. Linewise
    motions cover whole lines: from the start of the first line to the
    start of the line after the last one. A change keeps the final line
    separator so that one (empty) line remains to insert into.
    """
    first_line = min(doc.line_for_position(anchor), doc.line_for_position(position))
    last_line = max(doc.line_for_position(anchor), doc.line_for_position(position))

    if move_type == MoveType.LINEWISE:
        start = doc.first_position_in_line(first_line)
        if submode == SubMode.CHANGE:
            end = doc.last_position_in_line(last_line)
        elif last_line < doc.line_count:
            end = doc.first_position_in_line(last_line + 1)
        else:
            end = doc.length
        return Region(start, end, first_line, last_line, linewise=True)

    start, end = sorted((doc.clamp(anchor), doc.clamp(position)))
    if move_type == MoveType.INCLUSIVE:
        end = min(end + 1, doc.length)
    return Region(start, end, first_line, last_line)


def linewise_text(doc: DocumentModel, region: Region) -> str:
    """Register text for a linewise region, always ending with a newline."""
    text = doc.text_between(region.start, region.end)
    if not text.endswith("\n"):
        text += "\n"
    return text


# ─────────────────────────────────────────────────────────────────
# Core Operators
# ─────────────────────────────────────────────────────────────────


def operator_delete(doc: DocumentModel, region: Region, registers: RegisterStore, register: str) -> OperatorResult:
    """Delete the region into ``register`` (d operator)."""
    if not region.linewise:
        text = doc.remove(region.start, region.end)
        registers.set(register, text)
        return OperatorResult(region.start, text)

    text = linewise_text(doc, region)
    start = region.start
    if region.last_line == doc.line_count and region.first_line > 1:
        # Deleting through the last line also takes the separator before it
        start -= 1
    doc.remove(start, region.end)
    registers.set(register, text, linewise=True)
    line = min(region.first_line, doc.line_count)
    return OperatorResult(doc.first_position_in_line(line), text)


def operator_change(doc: DocumentModel, region: Region, registers: RegisterStore, register: str) -> OperatorResult:
    """Delete the region and enter insert mode (c operator)."""
    if region.linewise:
        text = linewise_text(doc, region)
        doc.remove(region.start, region.end)
        registers.set(register, text, linewise=True)
    else:
        text = doc.remove(region.start, region.end)
        registers.set(register, text)
    return OperatorResult(region.start, text, enter_insert=True)


def operator_yank(doc: DocumentModel, region: Region, registers: RegisterStore, register: str) -> OperatorResult:
    """Copy the region to ``register`` (y operator)."""
    if region.linewise:
        text = linewise_text(doc, region)
        registers.set(register, text, linewise=True)
    else:
        text = doc.text_between(region.start, region.end)
        registers.set(register, text)
    return OperatorResult(region.start, text)


OPERATOR_HANDLERS: dict[SubMode, OperatorFunc] = {
    SubMode.DELETE: operator_delete,
    SubMode.CHANGE: operator_change,
    SubMode.YANK: operator_yank,
}


def get_operator_handler(submode: SubMode) -> OperatorFunc | None:
    """Get the text operator for a submode."""
    return OPERATOR_HANDLERS.get(submode)


# ─────────────────────────────────────────────────────────────────
# Line shifting and indentation
# ─────────────────────────────────────────────────────────────────


def shift_lines_right(doc: DocumentModel, first_line: int, last_line: int, width: int) -> None:
    """Prefix every line in the range with ``width`` spaces."""
    indent = " " * width
    doc.begin_edit_block()
    try:
        for line in range(first_line, last_line + 1):
            doc.insert_text(doc.first_position_in_line(line), indent)
    finally:
        doc.end_edit_block()


def shift_lines_left(doc: DocumentModel, first_line: int, last_line: int, width: int, tabstop: int) -> None:
    """Remove up to ``width`` columns of leading blanks from every line.

    A tab counts as ``tabstop`` columns.
    """
    doc.begin_edit_block()
    try:
        for line in range(first_line, last_line + 1):
            text = doc.block_text(line - 1)
            amount = 0
            count = 0
            while count < len(text) and amount < width:
                if text[count] == " ":
                    amount += 1
                elif text[count] == "\t":
                    amount += tabstop
                else:
                    break
                count += 1
            if count:
                start = doc.first_position_in_line(line)
                doc.remove(start, start + count)
    finally:
        doc.end_edit_block()


def indent_lines(doc: DocumentModel, first_line: int, last_line: int) -> None:
    """Give each non-blank line the indentation of the nearest non-blank line above."""
    reference = ""
    for line in range(first_line - 1, 0, -1):
        text = doc.block_text(line - 1)
        if text.strip():
            reference = text[: len(text) - len(text.lstrip(" \t"))]
            break
    doc.begin_edit_block()
    try:
        for line in range(first_line, last_line + 1):
            text = doc.block_text(line - 1)
            if not text.strip():
                continue
            current = len(text) - len(text.lstrip(" \t"))
            start = doc.first_position_in_line(line)
            doc.replace(start, start + current, reference)
    finally:
        doc.end_edit_block()


# ─────────────────────────────────────────────────────────────────
# Blockwise selections
# ─────────────────────────────────────────────────────────────────


def block_bounds(doc: DocumentModel, anchor: int, position: int) -> tuple[int, int, int, int]:
    """``(first_line, last_line, left_column, right_column)`` of a block; right inclusive."""
    lines = sorted((doc.line_for_position(anchor), doc.line_for_position(position)))
    columns = sorted((doc.column_for_position(anchor), doc.column_for_position(position)))
    return lines[0], lines[1], columns[0], columns[1]


def block_spans(doc: DocumentModel, anchor: int, position: int) -> list[tuple[int, int]]:
    """Per-line ``[start, end)`` offsets covered by a block selection."""
    first_line, last_line, left, right = block_bounds(doc, anchor, position)
    spans = []
    for line in range(first_line, last_line + 1):
        start = doc.first_position_in_line(line)
        length = len(doc.block_text(line - 1))
        if left < length:
            spans.append((start + left, start + min(right + 1, length)))
    return spans


def block_text(doc: DocumentModel, anchor: int, position: int) -> str:
    first_line, last_line, left, right = block_bounds(doc, anchor, position)
    return "\n".join(
        doc.block_text(line - 1)[left : right + 1] for line in range(first_line, last_line + 1)
    )


def delete_block(doc: DocumentModel, anchor: int, position: int, registers: RegisterStore, register: str) -> OperatorResult:
    """Delete a block selection into ``register``."""
    text = block_text(doc, anchor, position)
    first_line, _, left, _ = block_bounds(doc, anchor, position)
    doc.begin_edit_block()
    try:
        for start, end in reversed(block_spans(doc, anchor, position)):
            doc.remove(start, end)
    finally:
        doc.end_edit_block()
    registers.set(register, text)
    line_start = doc.first_position_in_line(first_line)
    return OperatorResult(line_start + min(left, len(doc.block_text(first_line - 1))), text)
