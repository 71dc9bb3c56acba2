"""Exceptions raised inside the modal interpreter.

All of these are user-level failures: the engine converts them into a
status message and returns to Command mode.
"""

from __future__ import annotations


class ModalKeysError(Exception):
    """Base class for interpreter errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ExCommandError(ModalKeysError):
    """An ex command could not be parsed or executed."""


class MarkNotSetError(ModalKeysError):
    """A mark was referenced before being set."""

    def __init__(self, mark: str) -> None:
        super().__init__(f"E20: Mark '{mark}' not set")
        self.mark = mark


class FilterError(ModalKeysError):
    """A shell filter failed to run, timed out or exited non-zero."""


class BufferIOError(ModalKeysError):
    """A file could not be read or written."""
