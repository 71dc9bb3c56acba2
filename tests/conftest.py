"""Pytest fixtures for modalkeys tests."""

from __future__ import annotations

import pytest

from modalkeys.config import Settings
from modalkeys.engine import (
    Host,
    ModalEngine,
    StringBuffer,
    reset_history_store,
    reset_kill_ring,
    reset_modal_keymap,
)
from modalkeys.engine.keys import split_keys


class RecordingHost(Host):
    """Host double that records every call the interpreter makes."""

    def __init__(self, lines_on_screen: int = 24) -> None:
        super().__init__(lines_on_screen)
        self.command_line = ""
        self.status = ""
        self.extra = ""
        self.spans = []
        self.messages: list[tuple[str, bool]] = []
        self.modes = []
        self.quits: list[tuple[str, bool]] = []
        self.window_keys: list[str] = []
        self.written: dict[str, str] = {}
        self.accept_writes = False
        self.filters: list[tuple[str, str]] = []
        self.filter_output: str | None = None
        self.completions = 0
        self.dialogs = 0

    def command_buffer_changed(self, text: str) -> None:
        self.command_line = text

    def status_data_changed(self, text: str) -> None:
        self.status = text

    def extra_information_changed(self, text: str) -> None:
        self.extra = text

    def selection_changed(self, spans) -> None:
        self.spans = spans

    def message_shown(self, text: str, error: bool) -> None:
        self.messages.append((text, error))

    def mode_changed(self, mode, overwrite: bool) -> None:
        self.modes.append((mode, overwrite))

    def quit_requested(self, force: bool) -> None:
        self.quits.append(("quit", force))

    def quit_all_requested(self, force: bool) -> None:
        self.quits.append(("quit_all", force))

    def write_file_requested(self, file_name: str, contents: str) -> bool:
        if self.accept_writes:
            self.written[file_name] = contents
        return self.accept_writes

    def completion_requested(self) -> None:
        self.completions += 1

    def window_command_requested(self, key: str) -> None:
        self.window_keys.append(key)

    def settings_dialog_requested(self) -> None:
        self.dialogs += 1

    def run_filter(self, command: str, text: str) -> str:
        self.filters.append((command, text))
        if self.filter_output is not None:
            return self.filter_output
        return super().run_filter(command, text)

    @property
    def errors(self) -> list[str]:
        return [text for text, error in self.messages if error]


@pytest.fixture(autouse=True)
def reset_shared_services():
    """Reset process-wide services after each test to avoid cross-test pollution."""
    yield
    reset_history_store()
    reset_kill_ring()
    reset_modal_keymap()


@pytest.fixture
def make_engine():
    """Factory: ``make_engine(text, position=0, lines_on_screen=24)``."""

    def _make(text: str = "", position: int = 0, lines_on_screen: int = 24, settings: Settings | None = None):
        buffer = StringBuffer(text)
        buffer.set_selection(position, position)
        host = RecordingHost(lines_on_screen)
        engine = ModalEngine(buffer, host=host, settings=settings or Settings())
        engine.attach()
        return engine

    return _make


@pytest.fixture
def feed():
    """Type a key string such as ``"3dd"`` or ``"ihi<escape>"`` into an engine."""

    def _feed(engine: ModalEngine, keys: str) -> None:
        for key in split_keys(keys):
            engine.handle_key(key)

    return _feed
