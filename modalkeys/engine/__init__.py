"""Modal (vi/emacs hybrid) command interpreter over an external text buffer.

Architecture:
    ModalEngine - Mode state machine that handles key events
    EditorState - Tracks mode, submodes, counts, register and dot command
    DocumentModel - Line/column arithmetic over a TextBuffer
    ModalKeymapConfig - Key bindings and the pending-state transition table
    ExCommandInterpreter - Colon command lines
    Host - Capabilities the interpreter asks of its embedding editor

Usage:
    from modalkeys.engine import ModalEngine, StringBuffer

    engine = ModalEngine(StringBuffer("hello"), host=my_host)
    engine.attach()

    # In key handler:
    if engine.handle_key(key) == EventResult.HANDLED:
        event.prevent_default()
"""

from .buffer import StringBuffer, TextBuffer
from .command import CommandResult, ExCommandInterpreter
from .document import Cursor, DocumentModel
from .engine import EventResult, ModalEngine
from .errors import BufferIOError, ExCommandError, FilterError, MarkNotSetError, ModalKeysError
from .history import HistoryStore, get_history_store, reset_history_store, set_history_store
from .host import Host, SelectionSpan
from .keymap import (
    ModalBinding,
    ModalKeymapConfig,
    ModalKeymapProvider,
    get_modal_keymap,
    reset_modal_keymap,
    set_modal_keymap,
)
from .keys import Modifiers
from .registers import KillRing, MarkRing, get_kill_ring, reset_kill_ring
from .state import EditorState, Mode, MoveType, SubMode, SubSubMode, VisualMode

__all__ = [
    # Core
    "ModalEngine",
    "EventResult",
    "EditorState",
    "Mode",
    "SubMode",
    "SubSubMode",
    "VisualMode",
    "MoveType",
    "Modifiers",
    # Buffers
    "TextBuffer",
    "StringBuffer",
    "DocumentModel",
    "Cursor",
    # Host
    "Host",
    "SelectionSpan",
    # Keymap
    "ModalBinding",
    "ModalKeymapConfig",
    "ModalKeymapProvider",
    "get_modal_keymap",
    "set_modal_keymap",
    "reset_modal_keymap",
    # Shared services
    "HistoryStore",
    "get_history_store",
    "set_history_store",
    "reset_history_store",
    "KillRing",
    "MarkRing",
    "get_kill_ring",
    "reset_kill_ring",
    # Ex commands
    "CommandResult",
    "ExCommandInterpreter",
    # Errors
    "ModalKeysError",
    "ExCommandError",
    "MarkNotSetError",
    "FilterError",
    "BufferIOError",
]
