"""Textual widgets hosting the modal interpreter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from textual.events import Key
from textual.message import Message
from textual.widgets import TextArea

from .config import Settings, load_settings
from .engine import EventResult, Host, ModalEngine, Mode, SelectionSpan
from .engine.buffer import TextAreaBuffer

if TYPE_CHECKING:
    from .engine import HistoryStore

logger = logging.getLogger(__name__)

# Textual key names that differ from the interpreter's spelling
_KEY_ALIASES = {
    "ctrl+left_square_bracket": "ctrl+[",
    "ctrl+at": "ctrl+@",
    "return": "enter",
    "alt+less_than_sign": "alt+<",
    "alt+greater_than_sign": "alt+>",
}


def parse_textual_key(key: str, character: str | None) -> tuple[str, str]:
    """Convert a textual key event to ``(key, text)`` for ``ModalEngine.handle_key``.

    Printable characters are passed as themselves so that punctuation
    ("dollar_sign", "less_than_sign", ...) reaches the interpreter as "$", "<".
    """
    key = _KEY_ALIASES.get(key, key)
    if key.startswith(("ctrl+", "alt+")):
        return key, ""
    if character and len(character) == 1 and character.isprintable():
        return character, character
    return key, character or ""


class TextAreaHost(Host):
    """Host capabilities backed by a ``ModalTextArea``.

    Presentation updates are posted as messages so the surrounding app
    decides where the command line and status line are drawn.
    """

    def __init__(self, text_area: ModalTextArea) -> None:
        super().__init__()
        self._text_area = text_area
        self.spans: list[SelectionSpan] = []

    # ─────────────────────────────────────────────────────────────────
    # Presentation
    # ─────────────────────────────────────────────────────────────────

    def command_buffer_changed(self, text: str) -> None:
        self._text_area.post_message(ModalTextArea.CommandLineChanged(text))

    def status_data_changed(self, text: str) -> None:
        self._text_area.post_message(ModalTextArea.StatusChanged(text))

    def extra_information_changed(self, text: str) -> None:
        self._text_area.post_message(ModalTextArea.ExtraInformation(text))

    def selection_changed(self, spans: list[SelectionSpan]) -> None:
        self.spans = spans
        self._text_area.refresh()

    def message_shown(self, text: str, error: bool) -> None:
        self._text_area.post_message(ModalTextArea.CommandLineChanged(text, error))

    def mode_changed(self, mode: Mode, overwrite: bool) -> None:
        self._text_area.post_message(ModalTextArea.ModeChanged(mode, overwrite))

    # ─────────────────────────────────────────────────────────────────
    # Viewport
    # ─────────────────────────────────────────────────────────────────

    def lines_on_screen(self) -> int:
        height = self._text_area.scrollable_content_region.height
        return height if height > 0 else self._lines_on_screen

    def first_visible_line(self) -> int:
        return int(self._text_area.scroll_offset.y) + 1

    def scroll_to_line(self, line: int) -> None:
        self._text_area.scroll_to(y=max(0, line - 1), animate=False)

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    def quit_requested(self, force: bool) -> None:
        self._text_area.post_message(ModalTextArea.QuitRequested(force, all_buffers=False))

    def quit_all_requested(self, force: bool) -> None:
        self._text_area.post_message(ModalTextArea.QuitRequested(force, all_buffers=True))

    def window_command_requested(self, key: str) -> None:
        logger.debug("Window command %r has no target in a single text area", key)


class ModalTextArea(TextArea):
    """TextArea that routes key events through a ``ModalEngine``."""

    class CommandLineChanged(Message):
        """The command line text changed."""

        def __init__(self, text: str, error: bool = False) -> None:
            super().__init__()
            self.text = text
            self.error = error

    class StatusChanged(Message):
        """The cursor position summary changed."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class ExtraInformation(Message):
        """Multi-line output such as :history."""

        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    class ModeChanged(Message):
        def __init__(self, mode: Mode, overwrite: bool) -> None:
            super().__init__()
            self.mode = mode
            self.overwrite = overwrite

    class QuitRequested(Message):
        def __init__(self, force: bool, all_buffers: bool) -> None:
            super().__init__()
            self.force = force
            self.all_buffers = all_buffers

    def __init__(
        self,
        text: str = "",
        *,
        file_name: str = "",
        settings: Settings | None = None,
        history: HistoryStore | None = None,
        **kwargs,
    ) -> None:
        super().__init__(text, **kwargs)
        self._file_name = file_name
        self._settings = settings
        self._history = history
        self.engine: ModalEngine | None = None

    def on_mount(self) -> None:
        self.engine = ModalEngine(
            TextAreaBuffer(self),
            host=TextAreaHost(self),
            settings=self._settings or load_settings(),
            history=self._history,
        )
        self.engine.state.current_file_name = self._file_name
        self.engine.attach()

    def on_unmount(self) -> None:
        if self.engine is not None:
            self.engine.detach()

    async def _on_key(self, event: Key) -> None:
        """Give the interpreter first refusal on every key."""
        if self.engine is not None:
            key, text = parse_textual_key(event.key, event.character)
            if self.engine.handle_key(key, text=text) == EventResult.HANDLED:
                event.prevent_default()
                event.stop()
                return

        await super()._on_key(event)
