"""Position and selection model.

Provides line/column arithmetic over a ``TextBuffer`` using linear
offsets, the way the interpreter addresses text. Lines are numbered
from 1 in the public helpers that mirror ex addresses
(``first_position_in_line``, ``line_for_position``); block helpers take
0-based block numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .buffer import TextBuffer


# Character reported for the implicit separator after the last line
PARAGRAPH_SEPARATOR = "\n"


@dataclass
class Cursor:
    """The interpreter's cursor: active end ``position``, fixed end ``anchor``."""

    position: int = 0
    anchor: int = 0

    @property
    def start(self) -> int:
        return min(self.position, self.anchor)

    @property
    def end(self) -> int:
        return max(self.position, self.anchor)

    @property
    def is_empty(self) -> bool:
        return self.position == self.anchor


def char_class(char: str, simple: bool) -> int:
    """Classify a character for word motions.

    Returns 0 for whitespace, 1 for punctuation (and anything that is not
    a word character), 2 for alphanumerics and underscore. With ``simple``
    only whitespace (0) and non-whitespace (1) are distinguished.
    """
    if char.isspace():
        return 0
    if simple:
        return 1
    if char.isalnum() or char == "_":
        return 2
    return 1


class DocumentModel:
    """Line/column arithmetic over a text buffer."""

    def __init__(self, buffer: TextBuffer) -> None:
        self._buffer = buffer

    @property
    def buffer(self) -> TextBuffer:
        return self._buffer

    # ─────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return self._buffer.text

    @property
    def length(self) -> int:
        """Number of addressable characters (offsets 0..length)."""
        return len(self._buffer.text)

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")

    @property
    def line_count(self) -> int:
        return self.text.count("\n") + 1

    def character_at(self, position: int) -> str:
        """Character at ``position``; the line separator at the very end; "" outside."""
        text = self.text
        if 0 <= position < len(text):
            return text[position]
        if position == len(text):
            return PARAGRAPH_SEPARATOR
        return ""

    def clamp(self, position: int) -> int:
        return max(0, min(position, self.length))

    # ─────────────────────────────────────────────────────────────────
    # Blocks (0-based lines)
    # ─────────────────────────────────────────────────────────────────

    def block_number(self, position: int) -> int:
        return self.text.count("\n", 0, self.clamp(position))

    def block_position(self, block: int) -> int:
        """Offset of the first character of a block."""
        text = self.text
        block = max(0, min(block, self.line_count - 1))
        position = 0
        for _ in range(block):
            position = text.index("\n", position) + 1
        return position

    def block_text(self, block: int) -> str:
        lines = self.lines
        if 0 <= block < len(lines):
            return lines[block]
        return ""

    def block_end(self, block: int) -> int:
        """Offset of the separator ending a block."""
        return self.block_position(block) + len(self.block_text(block))

    # ─────────────────────────────────────────────────────────────────
    # Lines (1-based, as used by ex ranges)
    # ─────────────────────────────────────────────────────────────────

    def line_for_position(self, position: int) -> int:
        return self.block_number(position) + 1

    def first_position_in_line(self, line: int) -> int:
        return self.block_position(line - 1)

    def last_position_in_line(self, line: int) -> int:
        return self.block_end(max(0, min(line, self.line_count) - 1))

    def column_for_position(self, position: int) -> int:
        position = self.clamp(position)
        return position - self.block_position(self.block_number(position))

    def first_non_blank(self, position: int) -> int:
        """First non-whitespace offset on the line containing ``position``."""
        block = self.block_number(position)
        start = self.block_position(block)
        line = self.block_text(block)
        return start + (len(line) - len(line.lstrip(" \t")))

    # ─────────────────────────────────────────────────────────────────
    # Cursor-relative distances
    # ─────────────────────────────────────────────────────────────────

    def left_dist(self, position: int) -> int:
        """Characters between the line start and ``position``."""
        return self.column_for_position(position)

    def right_dist(self, position: int) -> int:
        """Characters between ``position`` and the line end."""
        block = self.block_number(position)
        return len(self.block_text(block)) - self.column_for_position(position)

    def at_end_of_line(self, position: int) -> bool:
        """True on the separator of a non-empty line."""
        block = self.block_number(position)
        return position == self.block_end(block) and len(self.block_text(block)) > 0

    # ─────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────

    def text_between(self, start: int, end: int) -> str:
        start, end = sorted((self.clamp(start), self.clamp(end)))
        return self.text[start:end]

    def insert_text(self, position: int, text: str) -> int:
        """Insert ``text`` and return the offset just after it."""
        position = self.clamp(position)
        self._buffer.replace(position, position, text)
        return position + len(text)

    def remove(self, start: int, end: int) -> str:
        """Delete ``[start, end)`` and return the removed text."""
        removed = self.text_between(start, end)
        start, end = sorted((self.clamp(start), self.clamp(end)))
        if removed:
            self._buffer.replace(start, end, "")
        return removed

    def replace(self, start: int, end: int, text: str) -> None:
        start, end = sorted((self.clamp(start), self.clamp(end)))
        self._buffer.replace(start, end, text)

    def begin_edit_block(self) -> None:
        self._buffer.begin_edit_block()

    def end_edit_block(self) -> None:
        self._buffer.end_edit_block()
