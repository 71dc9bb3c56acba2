"""Configuration for modalkeys.

Defines the editing options the interpreter understands (with their vi
long and short names) and a JSON settings store to persist them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".modalkeys"
SETTINGS_PATH = CONFIG_DIR / "settings.json"

# Settings are stored under this key in the JSON file
SETTINGS_GROUP = "ModalKeys"


class SettingCode(Enum):
    """Recognized options, valued by their storage key."""

    USE_EMACS_KEYS = "UseEmacsKeys"
    START_OF_LINE = "StartOfLine"
    TAB_STOP = "TabStop"
    SMART_TAB = "SmartTab"
    HL_SEARCH = "HlSearch"
    SHIFT_WIDTH = "ShiftWidth"
    EXPAND_TAB = "ExpandTab"
    AUTO_INDENT = "AutoIndent"
    INC_SEARCH = "IncSearch"
    BACKSPACE = "Backspace"


@dataclass
class SettingItem:
    """One option: its names, default, and current value."""

    code: SettingCode
    default: Any
    long_name: str = ""
    short_name: str = ""
    value: Any = None

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.default

    @property
    def key(self) -> str:
        return self.code.value

    @property
    def is_bool(self) -> bool:
        return isinstance(self.default, bool)

    @property
    def is_int(self) -> bool:
        return isinstance(self.default, int) and not self.is_bool

    def set_value(self, value: Any) -> None:
        """Store ``value`` coerced to the option's type.

        Raises ValueError when text cannot be read as the option's type.
        """
        if self.is_bool and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "on", "yes"):
                value = True
            elif lowered in ("0", "false", "off", "no"):
                value = False
            else:
                raise ValueError(value)
        elif self.is_int:
            value = int(value)
        elif not self.is_bool:
            value = str(value)
        self.value = value

    def display(self) -> str:
        name = self.long_name or self.key
        return f"{name}={self.value}"


def _default_items() -> list[SettingItem]:
    return [
        SettingItem(SettingCode.USE_EMACS_KEYS, True),
        SettingItem(SettingCode.START_OF_LINE, False, "startofline", "sol"),
        SettingItem(SettingCode.TAB_STOP, 8, "tabstop", "ts"),
        SettingItem(SettingCode.SMART_TAB, False, "smarttab", "sta"),
        SettingItem(SettingCode.HL_SEARCH, True, "hlsearch", "hls"),
        SettingItem(SettingCode.SHIFT_WIDTH, 8, "shiftwidth", "sw"),
        SettingItem(SettingCode.EXPAND_TAB, False, "expandtab", "et"),
        SettingItem(SettingCode.AUTO_INDENT, False, "autoindent", "ai"),
        SettingItem(SettingCode.INC_SEARCH, True, "incsearch", "is"),
        SettingItem(SettingCode.BACKSPACE, "indent,eol,start", "backspace", "bs"),
    ]


@dataclass
class Settings:
    """The option registry consulted by the interpreter."""

    items: dict[SettingCode, SettingItem] = field(
        default_factory=lambda: {item.code: item for item in _default_items()}
    )

    def item(self, name: str) -> SettingItem | None:
        """Look up an option by long name, short name or storage key."""
        if not name:
            return None
        for item in self.items.values():
            if name in (item.long_name, item.short_name, item.key):
                return item
        return None

    def value(self, code: SettingCode) -> Any:
        return self.items[code].value

    def set(self, code: SettingCode, value: Any) -> None:
        self.items[code].set_value(value)

    def read_settings(self, store: SettingsStore) -> None:
        """Load stored values, keeping defaults for anything missing or invalid."""
        stored = store.get(SETTINGS_GROUP, {})
        if not isinstance(stored, dict):
            logger.warning("Ignoring malformed %s settings group", SETTINGS_GROUP)
            return
        for item in self.items.values():
            if item.key not in stored:
                continue
            try:
                item.set_value(stored[item.key])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid value %r for %s", stored[item.key], item.key)

    def write_settings(self, store: SettingsStore) -> None:
        settings = store.load_all()
        settings[SETTINGS_GROUP] = {item.key: item.value for item in self.items.values()}
        store.save_all(settings)


class SettingsStore:
    """JSON file holding user settings."""

    _instance: SettingsStore | None = None

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or SETTINGS_PATH

    @classmethod
    def get_instance(cls) -> SettingsStore:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def load_all(self) -> dict:
        """Load all settings. Returns empty dict if missing or corrupt."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read settings from %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save_all(self, settings: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self.load_all().get(key, default)


def load_settings(store: SettingsStore | None = None) -> Settings:
    """Build a ``Settings`` from the store (the user's settings file by default)."""
    settings = Settings()
    settings.read_settings(store or SettingsStore.get_instance())
    return settings
