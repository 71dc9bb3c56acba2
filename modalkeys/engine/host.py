"""Capabilities the interpreter expects from its embedding editor.

``Host`` is the single object the engine talks to for everything it does
not own: presentation (command line, status line, highlights), viewport
geometry, and requests it delegates (quit, write, bracket matching,
indentation, completion, window commands, find UI, shell filters).

Every method has a working default, so ``Host()`` is a complete headless
host. Embedders override what their editor does better.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import FilterError

if TYPE_CHECKING:
    from .state import Mode

logger = logging.getLogger(__name__)

FILTER_TIMEOUT = 30  # seconds

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
CLOSING_BRACKETS = {close: open_ for open_, close in BRACKET_PAIRS.items()}


@dataclass(frozen=True)
class SelectionSpan:
    """A highlighted ``[start, end)`` range."""

    start: int
    end: int
    kind: str = "visual"  # "visual" or "search"


def find_matching_bracket(text: str, position: int) -> int | None:
    """Offset of the bracket matching the one at ``position``, by plain counting."""
    if not 0 <= position < len(text):
        return None
    char = text[position]
    if char in BRACKET_PAIRS:
        opening, closing, step = char, BRACKET_PAIRS[char], 1
    elif char in CLOSING_BRACKETS:
        opening, closing, step = char, CLOSING_BRACKETS[char], -1
    else:
        return None
    depth = 0
    index = position
    while 0 <= index < len(text):
        if text[index] == opening:
            depth += 1
        elif text[index] == closing:
            depth -= 1
            if depth == 0:
                return index
        index += step
    return None


class Host:
    """Default host: records nothing, declines delegations, runs filters."""

    def __init__(self, lines_on_screen: int = 24) -> None:
        self._lines_on_screen = lines_on_screen
        self._first_visible_line = 1

    # ─────────────────────────────────────────────────────────────────
    # Presentation
    # ─────────────────────────────────────────────────────────────────

    def command_buffer_changed(self, text: str) -> None:
        pass

    def status_data_changed(self, text: str) -> None:
        pass

    def extra_information_changed(self, text: str) -> None:
        pass

    def selection_changed(self, spans: list[SelectionSpan]) -> None:
        pass

    def message_shown(self, text: str, error: bool) -> None:
        """Called once each time the interpreter posts a message."""

    def mode_changed(self, mode: Mode, overwrite: bool) -> None:
        """Cursor shape and overwrite flag should follow the new mode."""

    # ─────────────────────────────────────────────────────────────────
    # Viewport (1-based lines)
    # ─────────────────────────────────────────────────────────────────

    def lines_on_screen(self) -> int:
        return self._lines_on_screen

    def first_visible_line(self) -> int:
        return self._first_visible_line

    def scroll_to_line(self, line: int) -> None:
        """Make ``line`` the first visible line."""
        self._first_visible_line = max(1, line)

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    def quit_requested(self, force: bool) -> None:
        pass

    def quit_all_requested(self, force: bool) -> None:
        pass

    def write_file_requested(self, file_name: str, contents: str) -> bool:
        """Save ``contents``; return False to let the interpreter write the file."""
        return False

    def match_bracket(self, text: str, position: int) -> tuple[int, bool] | None:
        """Locate the bracket matching the one under the cursor.

        Returns ``(new_position, forward)`` or None. A forward match lands
        just past the matching bracket; a backward match lands on it.
        """
        match = find_matching_bracket(text, position)
        if match is None:
            return None
        if match > position:
            return match + 1, True
        return match, False

    def indent_region(self, begin_line: int, end_line: int, typed_char: str) -> bool:
        """Re-indent lines; return False to use the interpreter's fallback."""
        return False

    def completion_requested(self) -> None:
        pass

    def window_command_requested(self, key: str) -> None:
        pass

    def find_requested(self, reverse: bool) -> bool:
        """Open the host's find UI; return False to use the built-in search line."""
        return False

    def find_next_requested(self, reverse: bool) -> bool:
        return False

    def settings_dialog_requested(self) -> None:
        pass

    def run_filter(self, command: str, text: str) -> str:
        """Pipe ``text`` through a shell command and return its standard output."""
        logger.debug("Running filter %r on %d characters", command, len(text))
        try:
            result = subprocess.run(
                command,
                shell=True,
                input=text,
                capture_output=True,
                text=True,
                timeout=FILTER_TIMEOUT,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Filter %r timed out after %ss", command, FILTER_TIMEOUT)
            raise FilterError(f"Filter timed out: {command}") from None
        except OSError as e:
            logger.warning("Filter %r could not start: %s", command, e)
            raise FilterError(f"Cannot run filter: {command}") from e
        if result.returncode != 0:
            logger.warning("Filter %r exited with %d", command, result.returncode)
            raise FilterError(f"shell returned {result.returncode}")
        return result.stdout
