"""Text buffers the interpreter can drive.

The interpreter never touches a widget directly. It talks to a
``TextBuffer``: a linear character address space with range replacement,
an undo history whose states are identified by revision numbers, and a
native selection. Two implementations ship here:

    StringBuffer   - in-memory buffer, used headless and in tests
    TextAreaBuffer - adapter over textual's TextArea widget
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from textual.widgets import TextArea

logger = logging.getLogger(__name__)


class TextBuffer(ABC):
    """Editable text addressed by linear character offsets.

    Offsets run from 0 to ``len(text)``. Lines are separated by ``"\\n"``.
    """

    @property
    @abstractmethod
    def text(self) -> str:
        """Full buffer contents."""

    @property
    @abstractmethod
    def revision(self) -> int:
        """Identifier of the current undo state.

        Every edit produces a new revision; undo and redo restore the
        revision of the state they return to.
        """

    @abstractmethod
    def replace(self, start: int, end: int, text: str) -> None:
        """Replace the characters in ``[start, end)`` with ``text``."""

    @abstractmethod
    def undo(self) -> None:
        pass

    @abstractmethod
    def redo(self) -> None:
        pass

    @abstractmethod
    def begin_edit_block(self) -> None:
        """Start grouping edits into a single undo step."""

    @abstractmethod
    def end_edit_block(self) -> None:
        pass

    @abstractmethod
    def get_selection(self) -> tuple[int, int]:
        """Return the native selection as ``(anchor, position)``."""

    @abstractmethod
    def set_selection(self, anchor: int, position: int) -> None:
        pass

    def set_text(self, text: str) -> None:
        """Replace the whole buffer as one undoable edit."""
        self.replace(0, len(self.text), text)

    @property
    def cursor_position(self) -> int:
        return self.get_selection()[1]


class StringBuffer(TextBuffer):
    """In-memory buffer with snapshot-based undo."""

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._revision = 0
        self._next_revision = 1
        self._undo_stack: list[tuple[str, int]] = []
        self._redo_stack: list[tuple[str, int]] = []
        self._block_depth = 0
        self._block_recorded = False
        self._selection = (0, 0)

    @property
    def text(self) -> str:
        return self._text

    @property
    def revision(self) -> int:
        return self._revision

    def replace(self, start: int, end: int, text: str) -> None:
        length = len(self._text)
        start, end = sorted((max(0, min(start, length)), max(0, min(end, length))))
        if start == end and not text:
            return
        if self._block_depth == 0 or not self._block_recorded:
            self._undo_stack.append((self._text, self._revision))
            self._redo_stack.clear()
            self._block_recorded = self._block_depth > 0
        self._text = self._text[:start] + text + self._text[end:]
        self._revision = self._next_revision
        self._next_revision += 1
        self._clamp_selection()

    def undo(self) -> None:
        if not self._undo_stack:
            return
        self._redo_stack.append((self._text, self._revision))
        self._text, self._revision = self._undo_stack.pop()
        self._clamp_selection()

    def redo(self) -> None:
        if not self._redo_stack:
            return
        self._undo_stack.append((self._text, self._revision))
        self._text, self._revision = self._redo_stack.pop()
        self._clamp_selection()

    def begin_edit_block(self) -> None:
        if self._block_depth == 0:
            self._block_recorded = False
        self._block_depth += 1

    def end_edit_block(self) -> None:
        self._block_depth = max(0, self._block_depth - 1)

    def get_selection(self) -> tuple[int, int]:
        return self._selection

    def set_selection(self, anchor: int, position: int) -> None:
        self._selection = (anchor, position)
        self._clamp_selection()

    def _clamp_selection(self) -> None:
        length = len(self._text)
        anchor, position = self._selection
        self._selection = (max(0, min(anchor, length)), max(0, min(position, length)))


class TextAreaBuffer(TextBuffer):
    """Adapts a textual ``TextArea`` to the ``TextBuffer`` contract.

    TextArea addresses text by ``(row, column)`` locations; conversion to
    linear offsets goes through its document. Revisions are tracked here
    because TextArea's edit history has no revision numbers of its own.
    """

    def __init__(self, text_area: TextArea) -> None:
        self._ta = text_area
        self._revision = 0
        self._next_revision = 1
        # (revision, history batches) per undo step
        self._undo_revisions: list[tuple[int, int]] = []
        self._redo_revisions: list[tuple[int, int]] = []
        self._block_depth = 0
        self._block_recorded = False
        self._block_history_depth = 0

    @property
    def text(self) -> str:
        return self._ta.text

    @property
    def revision(self) -> int:
        return self._revision

    def _location(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, len(self._ta.text)))
        return tuple(self._ta.document.get_location_from_index(offset))  # type: ignore[return-value]

    def _offset(self, location: tuple[int, int]) -> int:
        return self._ta.document.get_index_from_location(location)

    def _history_depth(self) -> int:
        return len(self._ta.history.undo_stack)

    def replace(self, start: int, end: int, text: str) -> None:
        start, end = sorted((start, end))
        if start == end and not text:
            return
        if self._block_depth == 0 or not self._block_recorded:
            self._undo_revisions.append((self._revision, 1))
            self._redo_revisions.clear()
            self._block_recorded = self._block_depth > 0
        depth = self._history_depth()
        self._ta.replace(text, self._location(start), self._location(end))
        self._revision = self._next_revision
        self._next_revision += 1
        if self._block_depth == 0:
            # An edit containing newlines may span several history batches
            self._set_batches(self._history_depth() - depth)
            self._ta.history.checkpoint()

    def _set_batches(self, batches: int) -> None:
        revision, _ = self._undo_revisions[-1]
        self._undo_revisions[-1] = (revision, max(1, batches))

    def undo(self) -> None:
        if not self._undo_revisions:
            logger.debug("Nothing to undo in %s", self._ta.id or "text area")
            return
        revision, batches = self._undo_revisions.pop()
        for _ in range(batches):
            self._ta.undo()
        self._redo_revisions.append((self._revision, batches))
        self._revision = revision

    def redo(self) -> None:
        if not self._redo_revisions:
            logger.debug("Nothing to redo in %s", self._ta.id or "text area")
            return
        revision, batches = self._redo_revisions.pop()
        for _ in range(batches):
            self._ta.redo()
        self._undo_revisions.append((self._revision, batches))
        self._revision = revision

    def begin_edit_block(self) -> None:
        if self._block_depth == 0:
            self._block_recorded = False
            self._ta.history.checkpoint()
            self._block_history_depth = self._history_depth()
        self._block_depth += 1

    def end_edit_block(self) -> None:
        self._block_depth = max(0, self._block_depth - 1)
        if self._block_depth == 0:
            # One undo step covers every batch TextArea recorded inside the block
            if self._block_recorded:
                self._set_batches(self._history_depth() - self._block_history_depth)
            self._ta.history.checkpoint()

    def get_selection(self) -> tuple[int, int]:
        selection = self._ta.selection
        return self._offset(selection.start), self._offset(selection.end)

    def set_selection(self, anchor: int, position: int) -> None:
        from textual.widgets.text_area import Selection

        self._ta.selection = Selection(self._location(anchor), self._location(position))
