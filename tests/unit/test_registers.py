"""Tests for registers, marks, the jump list and the emacs rings."""

from __future__ import annotations

import pytest

from modalkeys.engine import MarkNotSetError, get_kill_ring, reset_kill_ring
from modalkeys.engine.registers import JumpList, KillRing, MarkRing, MarkStore, RegisterStore


class TestRegisterStore:
    """Tests for named and unnamed registers."""

    def test_set_updates_unnamed(self):
        """Writing a named register also fills the unnamed one."""
        registers = RegisterStore()
        registers.set("a", "foo")
        assert registers.get("a").content == "foo"
        assert registers.get().content == "foo"

    def test_uppercase_appends(self):
        """An upper-case name appends to the lower-case register."""
        registers = RegisterStore()
        registers.set("a", "x\n", linewise=True)
        registers.set("A", "y")
        assert registers.get("a").content == "x\ny"
        assert registers.get("A").linewise is True

    def test_unknown_register_is_empty(self):
        assert RegisterStore().get("q").content == ""


class TestMarkStore:
    """Tests for marks."""

    def test_missing_mark_raises(self):
        """Reading an unset mark raises with the vi message."""
        marks = MarkStore()
        with pytest.raises(MarkNotSetError) as exc_info:
            marks.get("a")
        assert exc_info.value.message == "E20: Mark 'a' not set"

    def test_set_and_get(self):
        marks = MarkStore()
        marks.set("<", 4)
        assert "<" in marks
        assert marks.get("<") == 4


class TestJumpList:
    """Tests for ctrl+o / tab jumping."""

    def test_back_and_forward(self):
        """Going back remembers where we came from."""
        jumps = JumpList()
        jumps.record(1)
        jumps.record(5)
        assert jumps.back(9) == 5
        assert jumps.back(5) == 1
        assert jumps.back(1) is None
        assert jumps.forward(1) == 5
        assert jumps.forward(5) == 9

    def test_record_clears_forward(self):
        jumps = JumpList()
        jumps.record(1)
        jumps.back(3)
        jumps.record(7)
        assert jumps.forward(7) is None


class TestKillRing:
    """Tests for the kill ring."""

    def test_cycle(self):
        """next walks older entries and wraps around."""
        ring = KillRing()
        ring.add("first")
        ring.add("second")
        assert ring.current() == "second"
        assert ring.next() == "first"
        assert ring.next() == "second"

    def test_duplicates_move_to_front(self):
        ring = KillRing()
        ring.add("a")
        ring.add("b")
        ring.add("a")
        assert len(ring) == 2
        assert ring.current() == "a"

    def test_empty_text_ignored(self):
        ring = KillRing()
        ring.add("")
        assert len(ring) == 0
        assert ring.current() == ""
        assert ring.next() == ""

    def test_size_limit(self):
        """Old entries fall off the end."""
        ring = KillRing()
        for index in range(KillRing.MAX_SIZE + 10):
            ring.add(f"kill {index}")
        assert len(ring) == KillRing.MAX_SIZE
        assert ring.current() == f"kill {KillRing.MAX_SIZE + 9}"

    def test_shared_instance(self):
        """The process-wide ring persists until reset."""
        ring = get_kill_ring()
        assert get_kill_ring() is ring
        reset_kill_ring()
        assert get_kill_ring() is not ring


class TestMarkRing:
    """Tests for the emacs mark ring."""

    def test_consecutive_duplicates_collapse(self):
        ring = MarkRing()
        ring.add(1)
        ring.add(1)
        assert len(ring) == 1

    def test_previous_cycles(self):
        """previous walks older marks and wraps around."""
        ring = MarkRing()
        ring.add(1)
        ring.add(5)
        assert ring.most_recent() == 5
        assert ring.previous() == 1
        assert ring.previous() == 5

    def test_size_limit(self):
        ring = MarkRing()
        for position in range(40):
            ring.add(position)
        assert len(ring) == MarkRing.MAX_SIZE
        assert ring.most_recent() == 39

    def test_empty(self):
        assert MarkRing().most_recent() is None
        assert MarkRing().previous() is None
