"""Minimal textual editor around a ModalTextArea."""

from __future__ import annotations

from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from .config import Settings
from .engine import Mode
from .widgets import ModalTextArea


class ModalKeysApp(App):
    """Single-buffer editor: text area, command line and status line."""

    TITLE = "modalkeys"

    CSS = """
    Screen {
        background: $surface;
    }

    #editor {
        height: 1fr;
        border: none;
    }

    #bottom-bar {
        height: 1;
    }

    #command-line {
        width: 1fr;
    }

    #status-line {
        width: 20;
        text-align: right;
        text-style: dim;
    }

    #extra-information {
        display: none;
        max-height: 50%;
        border-top: solid $primary;
        padding: 0 1;
    }

    #extra-information.visible {
        display: block;
    }
    """

    def __init__(self, path: Path | None = None, settings: Settings | None = None) -> None:
        super().__init__()
        self._path = path
        self._settings = settings

    def compose(self) -> ComposeResult:
        text = ""
        if self._path is not None and self._path.exists():
            text = self._path.read_text(encoding="utf-8")
        yield ModalTextArea(
            text,
            file_name=str(self._path) if self._path is not None else "",
            settings=self._settings,
            id="editor",
        )
        yield Static("", id="extra-information")
        with Horizontal(id="bottom-bar"):
            yield Static("", id="command-line")
            yield Static("", id="status-line")

    def on_mount(self) -> None:
        self.query_one("#editor", ModalTextArea).focus()

    def on_modal_text_area_command_line_changed(self, message: ModalTextArea.CommandLineChanged) -> None:
        style = "bold red" if message.error else ""
        self.query_one("#command-line", Static).update(Text(message.text, style=style))

    def on_modal_text_area_status_changed(self, message: ModalTextArea.StatusChanged) -> None:
        self.query_one("#status-line", Static).update(Text(message.text))

    def on_modal_text_area_extra_information(self, message: ModalTextArea.ExtraInformation) -> None:
        panel = self.query_one("#extra-information", Static)
        panel.update(Text(message.text))
        panel.set_class(bool(message.text), "visible")

    def on_modal_text_area_mode_changed(self, message: ModalTextArea.ModeChanged) -> None:
        if message.mode != Mode.COMMAND:
            self.query_one("#extra-information", Static).remove_class("visible")

    def on_modal_text_area_quit_requested(self, message: ModalTextArea.QuitRequested) -> None:
        self.exit()
