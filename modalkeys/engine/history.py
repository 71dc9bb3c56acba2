"""Command-line and search history.

History outlives any single buffer: every engine shares one
``HistoryStore`` unless a different one is passed in. The store is
created on first use and dropped with ``reset_history_store``.
"""

from __future__ import annotations


class HistoryRing:
    """Append-only list of entered lines with a recall index.

    A live entry is opened with ``begin_entry`` (an empty placeholder at
    the end), edited through recall, then ``commit``-ed or ``cancel``-ed.
    """

    def __init__(self) -> None:
        self._items: list[str] = []
        self.index = -1

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def last(self) -> str:
        return self._items[-1] if self._items else ""

    def append(self, text: str) -> None:
        self._items.append(text)
        self.index = len(self._items) - 1

    def begin_entry(self) -> None:
        """Open a new live entry and point recall at it."""
        self.append("")

    def commit(self, text: str) -> None:
        """Replace the live entry with the entered text."""
        if self._items:
            self._items[-1] = text
        else:
            self._items.append(text)
        self.index = len(self._items) - 1

    def cancel(self) -> None:
        """Drop the live entry if nothing was committed to it."""
        if self._items and not self._items[-1]:
            self._items.pop()
        self.index = len(self._items) - 1

    def previous(self) -> str | None:
        if self.index > 0:
            self.index -= 1
            return self._items[self.index]
        return None

    def next(self) -> str | None:
        if self.index < len(self._items) - 1:
            self.index += 1
            return self._items[self.index]
        return None


class HistoryStore:
    """The two history rings shared across buffers."""

    def __init__(self) -> None:
        self.commands = HistoryRing()
        self.searches = HistoryRing()


_history_store: HistoryStore | None = None


def get_history_store() -> HistoryStore:
    """Get the process-wide history store."""
    global _history_store
    if _history_store is None:
        _history_store = HistoryStore()
    return _history_store


def set_history_store(store: HistoryStore) -> None:
    """Set the process-wide history store (for testing or embedding)."""
    global _history_store
    _history_store = store


def reset_history_store() -> None:
    """Drop the process-wide history store."""
    global _history_store
    _history_store = None
