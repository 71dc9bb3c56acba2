"""Registers, marks, jump list, kill ring and mark ring."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import MarkNotSetError
from .state import UNNAMED_REGISTER


@dataclass
class Register:
    """Text held by a register."""

    content: str = ""
    linewise: bool = False  # True if content was taken as whole lines


class RegisterStore:
    """Mapping from register names to yanked or deleted text.

    Writing any register also updates the unnamed register. Writing an
    upper-case letter appends to the matching lower-case register.
    """

    def __init__(self) -> None:
        self._registers: dict[str, Register] = {UNNAMED_REGISTER: Register()}

    def get(self, name: str = UNNAMED_REGISTER) -> Register:
        return self._registers.get(name.lower() if name.isalpha() else name, Register())

    def set(self, name: str, content: str, linewise: bool = False) -> None:
        if name.isalpha() and name.isupper():
            name = name.lower()
            existing = self._registers.get(name)
            if existing is not None:
                content = existing.content + content
                linewise = linewise or existing.linewise
        register = Register(content=content, linewise=linewise)
        self._registers[name] = register
        if name != UNNAMED_REGISTER:
            self._registers[UNNAMED_REGISTER] = register


class MarkStore:
    """Named buffer positions, including the visual bounds ``<`` and ``>``."""

    def __init__(self) -> None:
        self._marks: dict[str, int] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._marks

    def set(self, name: str, position: int) -> None:
        self._marks[name] = position

    def get(self, name: str) -> int:
        """Return a mark's position or raise ``MarkNotSetError``."""
        try:
            return self._marks[name]
        except KeyError:
            raise MarkNotSetError(name) from None


@dataclass
class JumpList:
    """Positions left behind by large motions."""

    undo: list[int] = field(default_factory=list)
    redo: list[int] = field(default_factory=list)

    def record(self, position: int) -> None:
        self.undo.append(position)
        self.redo.clear()

    def back(self, current: int) -> int | None:
        """Return the previous jump position, remembering ``current``."""
        if not self.undo:
            return None
        self.redo.append(current)
        return self.undo.pop()

    def forward(self, current: int) -> int | None:
        if not self.redo:
            return None
        self.undo.append(current)
        return self.redo.pop()


# ─────────────────────────────────────────────────────────────────
# Emacs rings
# ─────────────────────────────────────────────────────────────────


class KillRing:
    """Most-recent-first list of killed text, at most ``MAX_SIZE`` entries."""

    MAX_SIZE = 60

    def __init__(self) -> None:
        self._items: list[str] = []
        self._index = 0

    def __len__(self) -> int:
        return len(self._items)

    def add(self, text: str) -> None:
        if not text:
            return
        if text in self._items:
            self._items.remove(text)
        self._items.insert(0, text)
        del self._items[self.MAX_SIZE:]
        self._index = 0

    def current(self) -> str:
        if not self._items:
            return ""
        return self._items[self._index]

    def next(self) -> str:
        """Advance to the next older entry, cycling back to the newest."""
        if not self._items:
            return ""
        self._index = (self._index + 1) % len(self._items)
        return self._items[self._index]


class MarkRing:
    """Most-recent-first ring of positions, at most ``MAX_SIZE`` entries."""

    MAX_SIZE = 16

    def __init__(self) -> None:
        self._marks: list[int] = []
        self._index = 0

    def __len__(self) -> int:
        return len(self._marks)

    def add(self, position: int) -> None:
        if self._marks and self._marks[0] == position:
            return
        self._marks.insert(0, position)
        del self._marks[self.MAX_SIZE:]
        self._index = 0

    def most_recent(self) -> int | None:
        return self._marks[0] if self._marks else None

    def previous(self) -> int | None:
        """Cycle to the next older mark."""
        if not self._marks:
            return None
        self._index = (self._index + 1) % len(self._marks)
        return self._marks[self._index]


# Process-wide kill ring shared by all engines unless one is injected
_kill_ring: KillRing | None = None


def get_kill_ring() -> KillRing:
    global _kill_ring
    if _kill_ring is None:
        _kill_ring = KillRing()
    return _kill_ring


def reset_kill_ring() -> None:
    global _kill_ring
    _kill_ring = None
