"""Tests for editing options and the settings store."""

from __future__ import annotations

import json
from typing import Any

import pytest

from modalkeys.config import (
    SETTINGS_GROUP,
    SettingCode,
    SettingItem,
    Settings,
    SettingsStore,
    load_settings,
)


class MockSettingsStore:
    """Mock settings store for testing."""

    def __init__(self, settings: dict | None = None):
        self._settings = settings or {}
        self.saved: dict | None = None

    def load_all(self) -> dict:
        return dict(self._settings)

    def save_all(self, settings: dict) -> None:
        self.saved = settings
        self._settings = settings

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)


class TestSettingItem:
    """Tests for SettingItem coercion."""

    @pytest.mark.parametrize("text,expected", [("on", True), ("YES", True), ("1", True), ("off", False), ("no", False)])
    def test_bool_text(self, text, expected):
        """Boolean options accept the usual spellings."""
        item = SettingItem(SettingCode.EXPAND_TAB, False)
        item.set_value(text)
        assert item.value is expected

    def test_bad_bool_text(self):
        item = SettingItem(SettingCode.EXPAND_TAB, False)
        with pytest.raises(ValueError):
            item.set_value("maybe")

    def test_int_option(self):
        """Integer options parse text and reject garbage."""
        item = SettingItem(SettingCode.TAB_STOP, 8, "tabstop", "ts")
        item.set_value("4")
        assert item.value == 4
        assert item.is_int and not item.is_bool
        with pytest.raises(ValueError):
            item.set_value("wide")

    def test_display_uses_long_name(self):
        assert SettingItem(SettingCode.TAB_STOP, 8, "tabstop", "ts").display() == "tabstop=8"
        assert SettingItem(SettingCode.USE_EMACS_KEYS, True).display() == "UseEmacsKeys=True"


class TestSettings:
    """Tests for the option registry."""

    def test_defaults(self):
        settings = Settings()
        assert settings.value(SettingCode.SHIFT_WIDTH) == 8
        assert settings.value(SettingCode.USE_EMACS_KEYS) is True
        assert settings.value(SettingCode.BACKSPACE) == "indent,eol,start"

    def test_lookup_by_any_name(self):
        """Options are found by long name, short name or storage key."""
        settings = Settings()
        assert settings.item("shiftwidth").code == SettingCode.SHIFT_WIDTH
        assert settings.item("sw").code == SettingCode.SHIFT_WIDTH
        assert settings.item("ShiftWidth").code == SettingCode.SHIFT_WIDTH
        assert settings.item("nosuch") is None
        assert settings.item("") is None

    def test_instances_are_independent(self):
        """Changing one Settings leaves new instances at their defaults."""
        first = Settings()
        first.set(SettingCode.TAB_STOP, 2)
        assert Settings().value(SettingCode.TAB_STOP) == 8


class TestSettingsPersistence:
    """Tests for reading and writing the settings group."""

    def test_read_settings(self):
        """Stored values override defaults."""
        store = MockSettingsStore({SETTINGS_GROUP: {"ShiftWidth": 4, "ExpandTab": "on"}})
        settings = Settings()
        settings.read_settings(store)
        assert settings.value(SettingCode.SHIFT_WIDTH) == 4
        assert settings.value(SettingCode.EXPAND_TAB) is True
        assert settings.value(SettingCode.TAB_STOP) == 8

    def test_invalid_values_are_skipped(self):
        """A bad value keeps the default and does not stop the others."""
        store = MockSettingsStore({SETTINGS_GROUP: {"TabStop": "wide", "ShiftWidth": "2"}})
        settings = Settings()
        settings.read_settings(store)
        assert settings.value(SettingCode.TAB_STOP) == 8
        assert settings.value(SettingCode.SHIFT_WIDTH) == 2

    def test_malformed_group_is_ignored(self):
        store = MockSettingsStore({SETTINGS_GROUP: ["not", "a", "dict"]})
        settings = Settings()
        settings.read_settings(store)
        assert settings.value(SettingCode.SHIFT_WIDTH) == 8

    def test_write_settings_keeps_other_groups(self):
        """Writing only replaces the options group."""
        store = MockSettingsStore({"theme": "dark"})
        settings = Settings()
        settings.set(SettingCode.SHIFT_WIDTH, 3)
        settings.write_settings(store)
        assert store.saved["theme"] == "dark"
        assert store.saved[SETTINGS_GROUP]["ShiftWidth"] == 3

    def test_load_settings(self):
        store = MockSettingsStore({SETTINGS_GROUP: {"AutoIndent": True}})
        assert load_settings(store).value(SettingCode.AUTO_INDENT) is True


class TestSettingsStore:
    """Tests for the JSON file store."""

    def test_missing_file(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        assert store.load_all() == {}
        assert store.get("anything", 5) == 5

    def test_round_trip(self, tmp_path):
        """Saved settings are read back and parent directories are created."""
        store = SettingsStore(tmp_path / "nested" / "settings.json")
        store.save_all({SETTINGS_GROUP: {"TabStop": 4}})
        assert store.get(SETTINGS_GROUP) == {"TabStop": 4}
        assert load_settings(store).value(SettingCode.TAB_STOP) == 4

    def test_corrupt_file(self, tmp_path):
        """Unreadable JSON gives an empty mapping."""
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsStore(path).load_all() == {}

    def test_non_object_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")
        assert SettingsStore(path).load_all() == {}
