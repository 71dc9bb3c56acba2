"""Tests for command and search history."""

from __future__ import annotations

from modalkeys.engine import HistoryStore, get_history_store, reset_history_store, set_history_store
from modalkeys.engine.history import HistoryRing


class TestHistoryRing:
    """Tests for HistoryRing recall."""

    def test_recall(self):
        """previous and next walk the entries and stop at the ends."""
        ring = HistoryRing()
        ring.append("a")
        ring.append("b")
        assert ring.previous() == "a"
        assert ring.previous() is None
        assert ring.next() == "b"
        assert ring.next() is None

    def test_commit_replaces_live_entry(self):
        """A committed entry replaces the placeholder."""
        ring = HistoryRing()
        ring.append("old")
        ring.begin_entry()
        ring.commit("new")
        assert ring.items == ["old", "new"]
        assert ring.last() == "new"

    def test_cancel_drops_empty_entry(self):
        """Cancelling leaves no empty entry behind."""
        ring = HistoryRing()
        ring.append("old")
        ring.begin_entry()
        ring.cancel()
        assert ring.items == ["old"]
        assert ring.index == 0

    def test_commit_without_entry(self):
        ring = HistoryRing()
        ring.commit("x")
        assert list(ring) == ["x"]

    def test_empty(self):
        ring = HistoryRing()
        assert ring.last() == ""
        assert len(ring) == 0


class TestHistoryStore:
    """Tests for the shared history store."""

    def test_rings_are_separate(self):
        store = HistoryStore()
        store.commands.append("w")
        assert store.searches.items == []

    def test_global_store(self):
        """The store is shared until replaced or reset."""
        store = get_history_store()
        assert get_history_store() is store

        custom = HistoryStore()
        set_history_store(custom)
        assert get_history_store() is custom

        reset_history_store()
        assert get_history_store() is not custom
