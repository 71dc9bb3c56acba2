"""Motion functions.

Motions compute cursor destinations without modifying text. They are
used for plain navigation and as the region end for a pending operator.

The first half of this module holds the position algorithms, pure
functions of a document, a start position and a count. The second half
wraps them as key-level handlers registered by name for the keymap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from .document import PARAGRAPH_SEPARATOR, char_class
from .state import MoveType, SubMode

if TYPE_CHECKING:
    from .document import DocumentModel
    from .state import EditorState


# ─────────────────────────────────────────────────────────────────
# Position algorithms
# ─────────────────────────────────────────────────────────────────


def word_boundary(doc: DocumentModel, position: int, count: int, simple: bool, forward: bool) -> int:
    """Move to the ``count``-th end (forward) or start (backward) of a word.

    Each step looks at the neighbouring character in the direction of
    travel; a class change counts as a boundary unless it leaves
    whitespace.
    """
    repeat = count
    limit = doc.length if forward else 0
    step = 1 if forward else -1
    last_class = -1
    while True:
        this_class = char_class(doc.character_at(position + step), simple)
        if this_class != last_class and last_class != 0:
            repeat -= 1
        if repeat == -1:
            break
        last_class = this_class
        if position == limit:
            break
        position += step
    return position


def next_word(doc: DocumentModel, position: int, count: int, simple: bool) -> int:
    """Move to the start of the ``count``-th following word."""
    repeat = count
    limit = doc.length
    last_class = char_class(doc.character_at(position), simple)
    while True:
        this_class = char_class(doc.character_at(position), simple)
        if this_class != last_class and this_class != 0:
            repeat -= 1
        if repeat == 0:
            break
        last_class = this_class
        position += 1
        if position >= limit:
            position = limit
            break
    return position


def find_char(doc: DocumentModel, position: int, count: int, kind: str, target: str) -> int | None:
    """Find the ``count``-th ``target`` on the current line.

    ``kind`` is one of ``f``/``F``/``t``/``T``; the ``t`` variants stop one
    character short of the match. Returns None when there is no match.
    """
    forward = kind in "ft"
    step = 1 if forward else -1
    block = doc.block_number(position)
    start = doc.block_position(block)
    end = doc.block_end(block)
    repeat = count
    while True:
        position += step
        if position < start or position >= end:
            return None
        char = doc.character_at(position)
        if char == PARAGRAPH_SEPARATOR:
            return None
        if char == target:
            repeat -= 1
            if repeat == 0:
                if kind == "t":
                    position -= 1
                elif kind == "T":
                    position += 1
                return position


def column_position(doc: DocumentModel, block: int, target_column: int) -> int:
    """Offset of ``target_column`` in a block, clamped to the line end.

    A target column of -1 always means the end of the line.
    """
    start = doc.block_position(block)
    length = len(doc.block_text(block))
    if target_column == -1 or length < target_column:
        return start + length
    return start + target_column


def vertical(doc: DocumentModel, position: int, lines: int, target_column: int) -> int:
    """Move ``lines`` lines down (negative: up) keeping the target column."""
    block = doc.block_number(position) + lines
    block = max(0, min(block, doc.line_count - 1))
    return column_position(doc, block, target_column)


def line_start(doc: DocumentModel, position: int) -> int:
    return doc.block_position(doc.block_number(position))


# ─────────────────────────────────────────────────────────────────
# Key-level motions
# ─────────────────────────────────────────────────────────────────


@dataclass
class MotionResult:
    """Result of a key-level motion."""

    position: int
    type: MoveType | None = None  # None keeps the pending move type
    anchor: int | None = None  # Set when the motion re-anchors an operator region
    keep_column: bool = False  # Vertical motions keep the target column
    target_column: int | None = None  # Explicit target column instead of the new one
    start_of_line: bool = False  # Apply the startofline option after moving
    jump: bool = False  # Record the old position in the jump list
    failed: bool = False


MotionFunc = Callable[["DocumentModel", "EditorState", int], MotionResult]


def motion_left(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move left within the line (h)."""
    position = state.cursor.position
    return MotionResult(position - min(count, doc.left_dist(position)), MoveType.EXCLUSIVE)


def motion_right(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move right within the line (l, space)."""
    position = state.cursor.position
    return MotionResult(position + min(count, doc.right_dist(position)), MoveType.EXCLUSIVE)


def _vertical_motion(doc: DocumentModel, state: EditorState, lines: int) -> MotionResult:
    position = state.cursor.position
    if state.has_pending_operator():
        # Operators take whole lines from here to the target line
        return MotionResult(
            vertical(doc, position, lines, 0),
            MoveType.LINEWISE,
            anchor=line_start(doc, position),
            keep_column=True,
        )
    return MotionResult(vertical(doc, position, lines, state.target_column), keep_column=True)


def motion_down(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move down keeping the column (j)."""
    return _vertical_motion(doc, state, count)


def motion_up(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move up keeping the column (k)."""
    return _vertical_motion(doc, state, -count)


def motion_line_start(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    return MotionResult(line_start(doc, state.cursor.position), MoveType.EXCLUSIVE)


def motion_first_non_blank(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    return MotionResult(doc.first_non_blank(state.cursor.position), MoveType.EXCLUSIVE)


def motion_line_end(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move to end of line, ``count - 1`` lines down ($)."""
    block = min(doc.block_number(state.cursor.position) + count - 1, doc.line_count - 1)
    target = -1 if state.submode == SubMode.NONE else None
    return MotionResult(doc.block_end(block), MoveType.EXCLUSIVE, target_column=target)


def motion_column(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move to screen column ``count`` (|)."""
    start = line_start(doc, state.cursor.position)
    length = len(doc.block_text(doc.block_number(start)))
    return MotionResult(start + max(0, min(count, length) - 1), MoveType.EXCLUSIVE)


def _word_forward(doc: DocumentModel, state: EditorState, count: int, simple: bool) -> MotionResult:
    position = state.cursor.position
    if state.submode == SubMode.CHANGE:
        # cw changes to the end of the word, like ce
        return MotionResult(word_boundary(doc, position, count, simple, True), MoveType.INCLUSIVE)
    return MotionResult(next_word(doc, position, count, simple), MoveType.EXCLUSIVE)


def motion_word_forward(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    return _word_forward(doc, state, count, simple=False)


def motion_word_forward_big(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    return _word_forward(doc, state, count, simple=True)


def motion_word_end(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    position = word_boundary(doc, state.cursor.position, count, simple=False, forward=True)
    return MotionResult(position, MoveType.INCLUSIVE)


def motion_word_end_big(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    position = word_boundary(doc, state.cursor.position, count, simple=True, forward=True)
    return MotionResult(position, MoveType.INCLUSIVE)


def motion_word_backward(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    position = word_boundary(doc, state.cursor.position, count, simple=False, forward=False)
    return MotionResult(position, MoveType.EXCLUSIVE)


def motion_word_backward_big(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    position = word_boundary(doc, state.cursor.position, count, simple=True, forward=False)
    return MotionResult(position, MoveType.EXCLUSIVE)


def motion_document_start(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Go to line ``count``, default first line (gg)."""
    line = count if state.has_count() else 1
    return MotionResult(
        doc.first_position_in_line(line), MoveType.LINEWISE, start_of_line=True, jump=True
    )


def motion_document_end(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Go to line ``count``, default last line (G)."""
    line = count if state.has_count() else doc.line_count
    return MotionResult(
        doc.first_position_in_line(line), MoveType.LINEWISE, start_of_line=True, jump=True
    )


def motion_next_line_start(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """First non-blank of a following line (enter, +)."""
    position = vertical(doc, state.cursor.position, count, 0)
    return MotionResult(doc.first_non_blank(position), MoveType.LINEWISE)


def motion_previous_line_start(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """First non-blank of a preceding line (-)."""
    position = vertical(doc, state.cursor.position, -count, 0)
    return MotionResult(doc.first_non_blank(position), MoveType.LINEWISE)


def _paragraph(doc: DocumentModel, position: int, count: int, forward: bool) -> int:
    """Offset of the ``count``-th blank line away from ``position``, or a buffer end."""
    block = doc.block_number(position)
    last = doc.line_count - 1
    step = 1 if forward else -1
    for _ in range(count):
        # Skip the blank run we start in, then stop at the next blank line
        while 0 <= block <= last and not doc.block_text(block).strip():
            block += step
        while 0 <= block <= last and doc.block_text(block).strip():
            block += step
        if block < 0 or block > last:
            return doc.length if forward else 0
    return doc.block_position(block)


def motion_paragraph_forward(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move to the blank line after the paragraph (})."""
    position = _paragraph(doc, state.cursor.position, count, forward=True)
    return MotionResult(position, MoveType.EXCLUSIVE, jump=True)


def motion_paragraph_backward(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Move to the blank line before the paragraph ({)."""
    position = _paragraph(doc, state.cursor.position, count, forward=False)
    return MotionResult(position, MoveType.EXCLUSIVE, jump=True)


def motion_find_char(doc: DocumentModel, state: EditorState, count: int, kind: str, target: str) -> MotionResult:
    """Find a character on the line (f/F/t/T)."""
    position = find_char(doc, state.cursor.position, count, kind, target)
    if position is None:
        return MotionResult(state.cursor.position, failed=True)
    move_type = MoveType.INCLUSIVE if kind in "ft" else MoveType.EXCLUSIVE
    return MotionResult(position, move_type)


def motion_repeat_find(doc: DocumentModel, state: EditorState, count: int) -> MotionResult:
    """Repeat the last f/F/t/T (;)."""
    if not state.semicolon_type or not state.semicolon_key:
        return MotionResult(state.cursor.position, failed=True)
    return motion_find_char(doc, state, count, state.semicolon_type, state.semicolon_key)


# ─────────────────────────────────────────────────────────────────
# Motion Registry - maps handler names from keymap to functions
# ─────────────────────────────────────────────────────────────────

MOTION_HANDLERS: dict[str, MotionFunc] = {
    "motion_left": motion_left,
    "motion_right": motion_right,
    "motion_up": motion_up,
    "motion_down": motion_down,
    "motion_line_start": motion_line_start,
    "motion_first_non_blank": motion_first_non_blank,
    "motion_line_end": motion_line_end,
    "motion_column": motion_column,
    "motion_word_forward": motion_word_forward,
    "motion_word_forward_big": motion_word_forward_big,
    "motion_word_end": motion_word_end,
    "motion_word_end_big": motion_word_end_big,
    "motion_word_backward": motion_word_backward,
    "motion_word_backward_big": motion_word_backward_big,
    "motion_document_start": motion_document_start,
    "motion_document_end": motion_document_end,
    "motion_next_line_start": motion_next_line_start,
    "motion_previous_line_start": motion_previous_line_start,
    "motion_paragraph_forward": motion_paragraph_forward,
    "motion_paragraph_backward": motion_paragraph_backward,
    "motion_repeat_find": motion_repeat_find,
}


def get_motion_handler(name: str) -> MotionFunc | None:
    """Get a motion function by handler name."""
    return MOTION_HANDLERS.get(name)
