"""Modal command interpreter.

The ModalEngine is the controller that:
- Receives key events from the host and normalizes them
- Runs the emacs chord layer, then dispatches by mode through the keymap
- Resolves motions and applies pending operators ("finish movement")
- Owns registers, marks, the jump list, the dot command and the rings
- Reports command line, status line and highlights to the host
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..config import SettingCode, Settings
from .command import ExCommandInterpreter
from .document import DocumentModel
from .errors import ModalKeysError
from .history import HistoryStore, get_history_store
from .host import Host, SelectionSpan
from .keymap import BindingType, ModalBinding, ModalKeymapProvider, get_modal_keymap
from .keys import MODIFIER_KEYS, Modifiers, display_text, normalize_key, replay_key
from .motions import (
    MotionResult,
    get_motion_handler,
    motion_document_start,
    motion_find_char,
    next_word,
    vertical,
    word_boundary,
)
from .operators import (
    Region,
    block_spans,
    block_text,
    delete_block,
    get_operator_handler,
    indent_lines,
    operator_region,
    shift_lines_left,
    shift_lines_right,
)
from .registers import JumpList, KillRing, MarkRing, MarkStore, RegisterStore, get_kill_ring
from .search import (
    BOTTOM_WRAP_MESSAGE,
    NOT_FOUND_MESSAGE,
    TOP_WRAP_MESSAGE,
    match_spans,
    search as search_text,
    word_under_cursor,
)
from .state import UNNAMED_REGISTER, EditorState, Mode, MoveType, SubMode, SubSubMode, VisualMode

if TYPE_CHECKING:
    from .buffer import TextBuffer

logger = logging.getLogger(__name__)

# Shown after the ex/search line text while it is being edited
CURSOR_GLYPH = "❙"

QUIT_HINT = "Type :set noUseEmacsKeys to leave modal editing"

OPERATOR_KEYS = {
    SubMode.CHANGE: "c",
    SubMode.DELETE: "d",
    SubMode.YANK: "y",
    SubMode.SHIFT_LEFT: "<",
    SubMode.SHIFT_RIGHT: ">",
    SubMode.INDENT: "=",
    SubMode.FILTER: "!",
}

_MINIBUFFER_PREFIX = {
    Mode.EX: ":",
    Mode.SEARCH_FORWARD: "/",
    Mode.SEARCH_BACKWARD: "?",
}

_VISUAL_MESSAGES = {
    VisualMode.CHAR: "-- VISUAL --",
    VisualMode.LINE: "-- VISUAL LINE --",
    VisualMode.BLOCK: "-- VISUAL BLOCK --",
}


class EventResult(Enum):
    """Whether the interpreter consumed a key."""

    HANDLED = "handled"
    UNHANDLED = "unhandled"


def _squeeze(text: str, width: int) -> str:
    text = display_text(text)
    if len(text) <= width:
        return text
    half = (width - 3) // 2
    return text[:half] + "..." + text[len(text) - half:]


class ModalEngine:
    """Modal editing controller for one text buffer.

    This class sits between key events and a ``TextBuffer``, translating
    modal commands into buffer edits and cursor moves. Everything the
    engine does not own goes through its ``Host``.
    """

    def __init__(
        self,
        buffer: TextBuffer,
        host: Host | None = None,
        settings: Settings | None = None,
        history: HistoryStore | None = None,
        kill_ring: KillRing | None = None,
        keymap: ModalKeymapProvider | None = None,
    ) -> None:
        self._buffer = buffer
        self._doc = DocumentModel(buffer)
        self._host = host or Host()
        self._settings = settings or Settings()
        self._history = history or get_history_store()
        self._kill_ring = kill_ring or get_kill_ring()
        self._keymap = keymap or get_modal_keymap()

        self._state = EditorState()
        self._registers = RegisterStore()
        self._marks = MarkStore()
        self._jumps = JumpList()
        self._mark_ring = MarkRing()
        self._ex = ExCommandInterpreter(self)

        self._old_position = 0
        self._undo_cursor_position: dict[int, int] = {}
        self._search_spans: list[SelectionSpan] = []
        self._old_needle = ""
        self._insert_block_open = False
        self._record_insertion = False
        self._last_yank: tuple[int, int] | None = None
        self._previous_yank: tuple[int, int] | None = None

    # ─────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────

    @property
    def mode(self) -> Mode:
        return self._state.mode

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def doc(self) -> DocumentModel:
        return self._doc

    @property
    def buffer(self) -> TextBuffer:
        return self._buffer

    @property
    def host(self) -> Host:
        return self._host

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def history(self) -> HistoryStore:
        return self._history

    @property
    def registers(self) -> RegisterStore:
        return self._registers

    @property
    def marks(self) -> MarkStore:
        return self._marks

    @property
    def jumps(self) -> JumpList:
        return self._jumps

    @property
    def kill_ring(self) -> KillRing:
        return self._kill_ring

    @property
    def mark_ring(self) -> MarkRing:
        return self._mark_ring

    @property
    def position(self) -> int:
        return self._state.cursor.position

    @property
    def anchor(self) -> int:
        return self._state.cursor.anchor

    # ─────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────

    def handle_key(self, key: str, modifiers: Modifiers = Modifiers.NONE, text: str = "") -> EventResult:
        """Process a key event.

        Args:
            key: The key that was pressed (e.g., "j", "escape", "ctrl+r")
            modifiers: Modifiers held with the key
            text: Text the key produced, if any

        Returns:
            EventResult.UNHANDLED when the host should process the key itself
        """
        if not self._settings.value(SettingCode.USE_EMACS_KEYS):
            return EventResult.UNHANDLED
        if key in MODIFIER_KEYS:
            return EventResult.UNHANDLED

        self._sync_from_buffer()
        key = normalize_key(key, modifiers, text)
        state = self._state
        state.current_message = ""
        state.message_is_error = False
        self._undo_cursor_position[self._buffer.revision] = self.position

        if state.passing:
            state.passing = False
            self.update_mini_buffer()
            logger.debug("Passing %r to host", key)
            return EventResult.UNHANDLED

        self._previous_yank, self._last_yank = self._last_yank, None
        handler = self._keymap.get_emacs(key)
        if handler is not None:
            self._run_guarded(getattr(self, handler))
            result = EventResult.HANDLED
        else:
            result = self._dispatch_key(key, text)

        self._sync_to_buffer()
        self.update_mini_buffer()
        return result

    def handle_command(self, command: str) -> None:
        """Execute an ex command line as if it had been typed after ``:``."""
        self._sync_from_buffer()
        self._run_ex_command(command)
        self._sync_to_buffer()
        self.update_mini_buffer()

    def replay(self, text: str, count: int) -> None:
        """Feed the characters of ``text`` through the key handler ``count`` times."""
        logger.debug("Replaying %r x%d", text, count)
        state = self._state
        was_in_replay = state.in_replay
        state.in_replay = True
        try:
            for _ in range(count):
                for char in text:
                    self._dispatch_key(replay_key(char), char)
        finally:
            state.in_replay = was_in_replay

    def attach(self) -> None:
        """Start interpreting keys for the buffer."""
        anchor, position = self._buffer.get_selection()
        self._state.cursor.position = self._doc.clamp(position)
        self.enter_command_mode()
        if anchor != position:
            self._marks.set("<", self._doc.clamp(anchor))
            self._marks.set(">", self.position)
            self._state.visual_mode = VisualMode.CHAR
        self.set_target_column()
        self._sync_to_buffer()
        self.update_selection()
        self.update_mini_buffer()

    def detach(self) -> None:
        """Stop interpreting; hand an active visual selection back to the buffer."""
        if self._insert_block_open:
            self._doc.end_edit_block()
            self._insert_block_open = False
        if self._state.is_visual():
            anchor = self._marks.get("<")
            self._state.visual_mode = VisualMode.NONE
            self._buffer.set_selection(anchor, self.position)
        self._host.selection_changed([])
        self._host.command_buffer_changed("")

    # ─────────────────────────────────────────────────────────────────
    # Key dispatch
    # ─────────────────────────────────────────────────────────────────

    def _dispatch_key(self, key: str, text: str) -> EventResult:
        handler = getattr(self, self._keymap.mode_handler(self._state.mode))
        try:
            return handler(key, text)
        except ModalKeysError as e:
            logger.debug("Key %r failed: %s", key, e.message)
            self._cancel_pending()
            self.show_message(e.message, error=True)
            return EventResult.HANDLED

    def _run_guarded(self, action) -> None:
        try:
            action()
        except ModalKeysError as e:
            logger.debug("%s failed: %s", getattr(action, "__name__", action), e.message)
            self.show_message(e.message, error=True)

    def _sync_from_buffer(self) -> None:
        position = self._doc.clamp(self._buffer.cursor_position)
        self._state.cursor.position = position
        self._state.cursor.anchor = self._doc.clamp(self._state.cursor.anchor)
        if position != self._old_position:
            # Moved by the host since the last key
            self.set_target_column()

    def _sync_to_buffer(self) -> None:
        position = self._doc.clamp(self.position)
        self._state.cursor.position = position
        self._buffer.set_selection(position, position)
        self._old_position = position

    # ─────────────────────────────────────────────────────────────────
    # Cursor helpers
    # ─────────────────────────────────────────────────────────────────

    def set_position(self, position: int) -> None:
        self._state.cursor.position = self._doc.clamp(position)

    def set_anchor(self, position: int | None = None) -> None:
        self._state.cursor.anchor = self.position if position is None else self._doc.clamp(position)

    def set_target_column(self) -> None:
        self._state.target_column = self._doc.column_for_position(self.position)

    def move_left(self, count: int = 1) -> None:
        self.set_position(self.position - min(count, self._doc.left_dist(self.position)))

    def move_right(self, count: int = 1) -> None:
        self.set_position(self.position + min(count, self._doc.right_dist(self.position)))

    def move_down(self, count: int = 1) -> None:
        self.set_position(vertical(self._doc, self.position, count, self._state.target_column))

    def move_up(self, count: int = 1) -> None:
        self.move_down(-count)

    def move_to_start_of_line(self) -> None:
        self.set_position(self._doc.block_position(self._doc.block_number(self.position)))

    def move_to_end_of_line(self) -> None:
        self.set_position(self._doc.block_end(self._doc.block_number(self.position)))

    def move_to_first_non_blank(self) -> None:
        self.set_position(self._doc.first_non_blank(self.position))

    def handle_start_of_line(self) -> None:
        if self._settings.value(SettingCode.START_OF_LINE):
            self.move_to_first_non_blank()

    def at_end_of_line(self) -> bool:
        return self._doc.at_end_of_line(self.position)

    def cursor_line(self) -> int:
        return self._doc.line_for_position(self.position)

    def record_jump(self, position: int | None = None) -> None:
        self._jumps.record(self.position if position is None else position)

    def remove_selected_text(self) -> str:
        """Delete between anchor and cursor, leaving both at the start."""
        start, end = sorted((self.anchor, self.position))
        text = self._doc.remove(start, end)
        self.set_position(start)
        self.set_anchor()
        return text

    def insert_text(self, text: str) -> None:
        self.set_position(self._doc.insert_text(self.position, text))

    # ─────────────────────────────────────────────────────────────────
    # Mode transitions
    # ─────────────────────────────────────────────────────────────────

    def enter_insert_mode(self, record: bool = True) -> None:
        """Start an insert session; it becomes one undo step."""
        state = self._state
        state.mode = Mode.INSERT
        state.last_insertion = ""
        state.insert_repeat_prefix = ""
        state.just_auto_indented = 0
        self._record_insertion = record
        if not self._insert_block_open:
            self._doc.begin_edit_block()
            self._insert_block_open = True
        self._host.mode_changed(Mode.INSERT, state.submode == SubMode.REPLACE)

    def enter_command_mode(self) -> None:
        if self._insert_block_open:
            self._doc.end_edit_block()
            self._insert_block_open = False
        self._state.mode = Mode.COMMAND
        self._host.mode_changed(Mode.COMMAND, True)

    def enter_ex_mode(self, initial: str = "") -> None:
        state = self._state
        state.mode = Mode.EX
        state.current_message = ""
        state.command_buffer = initial
        self._history.commands.begin_entry()
        self._host.mode_changed(Mode.EX, False)
        self.update_mini_buffer()

    def enter_visual_mode(self, visual_mode: VisualMode) -> None:
        state = self._state
        if state.visual_mode == visual_mode:
            self.leave_visual_mode()
            return
        if not state.is_visual():
            self.set_anchor()
            self._marks.set("<", self.position)
        state.visual_mode = visual_mode
        self._marks.set(">", self.position)
        self.update_mini_buffer()
        self.update_selection()

    def leave_visual_mode(self) -> None:
        if not self._state.is_visual():
            return
        self._state.visual_mode = VisualMode.NONE
        self.update_mini_buffer()
        self.update_selection()

    def _cancel_pending(self) -> None:
        state = self._state
        state.submode = SubMode.NONE
        state.subsubmode = SubSubMode.NONE
        state.move_type = MoveType.INCLUSIVE
        state.reset_counts()
        state.gflag = False
        state.register = UNNAMED_REGISTER
        if state.is_minibuffer():
            state.command_buffer = ""
            self.enter_command_mode()

    # ─────────────────────────────────────────────────────────────────
    # Messages and presentation
    # ─────────────────────────────────────────────────────────────────

    def show_message(self, text: str, error: bool = False) -> None:
        """Post a message: errors take over the command line until the next key."""
        state = self._state
        if error:
            state.current_message = text
            state.message_is_error = True
        else:
            state.command_buffer = text
        if text:
            self._host.message_shown(text, error)
        self.update_mini_buffer()

    def set_dot_command(self, command: str) -> None:
        """Record ``command`` for ``.``, prefixed with the count if one was typed."""
        prefix = str(self._state.count()) if self._state.has_count() else ""
        self._state.dot_command = prefix + command

    def command_line_text(self) -> str:
        state = self._state
        if state.current_message:
            return state.current_message
        if state.passing:
            return "-- PASSING --"
        if state.mode == Mode.COMMAND and state.is_visual():
            return _VISUAL_MESSAGES[state.visual_mode]
        if state.mode == Mode.INSERT:
            return "-- REPLACE --" if state.submode == SubMode.REPLACE else "-- INSERT --"
        text = _MINIBUFFER_PREFIX.get(state.mode, "") + display_text(state.command_buffer)
        if text and state.mode != Mode.COMMAND:
            text += CURSOR_GLYPH
        return text

    def status_text(self) -> str:
        doc = self._doc
        line = self.cursor_line()
        column = doc.column_for_position(self.position) + 1
        status = f"{f'{line},{column}':<10}"
        lines = doc.line_count
        if lines <= self._host.lines_on_screen():
            return status + "All"
        return status + f"{(line - 1) * 100 // lines:>4}%"

    def update_mini_buffer(self) -> None:
        self._host.command_buffer_changed(self.command_line_text())
        self._host.status_data_changed(self.status_text())

    def selection_spans(self) -> list[SelectionSpan]:
        spans = list(self._search_spans)
        state = self._state
        if not state.is_visual():
            return spans
        doc = self._doc
        anchor = self._marks.get("<")
        position = self.position
        if state.visual_mode == VisualMode.CHAR:
            start, end = sorted((anchor, position))
            spans.append(SelectionSpan(start, min(end + 1, doc.length)))
        elif state.visual_mode == VisualMode.LINE:
            first = min(doc.block_number(anchor), doc.block_number(position))
            last = max(doc.block_number(anchor), doc.block_number(position))
            spans.append(SelectionSpan(doc.block_position(first), doc.block_end(last)))
        else:
            spans.extend(SelectionSpan(start, end) for start, end in block_spans(doc, anchor, position))
        return spans

    def update_selection(self) -> None:
        self._host.selection_changed(self.selection_spans())

    # ─────────────────────────────────────────────────────────────────
    # Finish movement
    # ─────────────────────────────────────────────────────────────────

    def finish_movement(self, template: str = "") -> None:
        """Complete a motion: apply the pending operator and reset transient state.

        ``template`` is the motion's own spelling; combined with the
        operator key and the count it becomes the new dot command.
        """
        state = self._state
        doc = self._doc

        if state.submode == SubMode.FILTER:
            begin = doc.line_for_position(self.anchor)
            end = doc.line_for_position(self.position)
            self.set_position(min(self.anchor, self.position))
            state.submode = SubMode.NONE
            state.move_type = MoveType.INCLUSIVE
            state.reset_counts()
            self.enter_ex_mode(f".,+{abs(end - begin)}!")
            return

        if state.is_visual():
            self._marks.set(">", self.position)

        submode = state.submode
        if submode in (SubMode.CHANGE, SubMode.DELETE, SubMode.YANK):
            region = operator_region(doc, self.anchor, self.position, state.move_type, submode)
            if template and submode != SubMode.YANK:
                self.set_dot_command(OPERATOR_KEYS[submode] + template)
            self._apply_operator(submode, region)
        elif submode in (SubMode.INDENT, SubMode.SHIFT_LEFT, SubMode.SHIFT_RIGHT):
            if template:
                self.set_dot_command(OPERATOR_KEYS[submode] + template)
            self.record_jump()
            first = min(doc.line_for_position(self.anchor), doc.line_for_position(self.position))
            last = max(doc.line_for_position(self.anchor), doc.line_for_position(self.position))
            self._shift_lines(submode, first, last)
            state.submode = SubMode.NONE
        elif submode == SubMode.REPLACE:
            state.submode = SubMode.NONE

        state.move_type = MoveType.INCLUSIVE
        state.reset_counts()
        state.gflag = False
        state.register = UNNAMED_REGISTER
        self.set_anchor()
        self.update_selection()
        self.update_mini_buffer()

    def _apply_operator(self, submode: SubMode, region: Region) -> None:
        state = self._state
        handler = get_operator_handler(submode)
        result = handler(self._doc, region, self._registers, state.register)
        state.register = UNNAMED_REGISTER
        state.submode = SubMode.NONE
        if result.enter_insert:
            self.set_position(result.position)
            self.enter_insert_mode()
        elif submode == SubMode.DELETE:
            self.set_position(result.position)
            if region.linewise:
                self.move_to_first_non_blank()
            elif self.at_end_of_line():
                self.move_left()
            self.set_target_column()
        else:
            self.set_position(state.saved_yank_position)

    def _shift_lines(self, submode: SubMode, first: int, last: int) -> None:
        doc = self._doc
        width = self._settings.value(SettingCode.SHIFT_WIDTH)
        if submode == SubMode.SHIFT_RIGHT:
            shift_lines_right(doc, first, last, width)
        elif submode == SubMode.SHIFT_LEFT:
            shift_lines_left(doc, first, last, width, self._settings.value(SettingCode.TAB_STOP))
        elif not self._host.indent_region(first, last, ""):
            indent_lines(doc, first, last)
        self.set_position(doc.first_non_blank(doc.first_position_in_line(first)))
        self.set_target_column()

    def _apply_motion(self, result: MotionResult, template: str = "") -> None:
        state = self._state
        if result.failed:
            self._cancel_pending()
            self.update_mini_buffer()
            return
        if result.jump:
            self.record_jump()
        if result.anchor is not None and state.has_pending_operator():
            self.set_anchor(result.anchor)
        if result.type is not None:
            state.move_type = result.type
        self.set_position(result.position)
        if result.start_of_line:
            self.handle_start_of_line()
        if result.target_column is not None:
            state.target_column = result.target_column
        elif not result.keep_column:
            self.set_target_column()
        self.finish_movement(template)

    # ─────────────────────────────────────────────────────────────────
    # Command Mode
    # ─────────────────────────────────────────────────────────────────

    def handle_command_mode(self, key: str, text: str) -> EventResult:
        """Handle keys in Command mode (and its visual variants)."""
        state = self._state

        pending = self._keymap.pending_handler(state.submode, state.subsubmode)
        if pending is not None:
            getattr(self, pending)(key)
            return EventResult.HANDLED

        if state.has_pending_operator() and key == OPERATOR_KEYS[state.submode]:
            self._linewise_operator(key)
            return EventResult.HANDLED

        if len(key) == 1 and key.isdigit() and state.accumulate_digit(key):
            self.update_mini_buffer()
            return EventResult.HANDLED

        if state.is_visual():
            binding = self._keymap.get_visual_action(key)
            if binding is not None:
                getattr(self, binding.handler)()
                return EventResult.HANDLED

        binding = self._keymap.lookup(key)
        if binding is None:
            logger.debug("Unhandled in command mode: %r (visual: %s)", key, state.visual_mode.name)
            return EventResult.UNHANDLED

        if binding.type == BindingType.MOTION:
            motion = get_motion_handler(binding.handler)
            self._apply_motion(motion(self._doc, state, state.count()), binding.dot_template)
        elif binding.type == BindingType.OPERATOR:
            self.start_operator(binding)
        elif binding.type == BindingType.PENDING:
            getattr(self, binding.handler)(key)
        else:
            getattr(self, binding.handler)()
        return EventResult.HANDLED

    def start_operator(self, binding: ModalBinding) -> None:
        """Enter an operator submode; the next motion defines its region."""
        state = self._state
        if state.has_pending_operator():
            # A different operator key cancels the first one
            self._cancel_pending()
            return
        if binding.submode == SubMode.YANK:
            state.saved_yank_position = self.position
        if binding.submode in (SubMode.DELETE, SubMode.YANK) and self.at_end_of_line():
            self.move_left()
        self.set_anchor()
        state.move_count_to_operator()
        state.submode = binding.submode

    def _linewise_operator(self, key: str) -> None:
        """Doubled operator key (dd, cc, yy, <<, >>, ==, !!) on ``count`` lines."""
        state = self._state
        doc = self._doc
        block = doc.block_number(self.position)
        last = min(block + state.count() - 1, doc.line_count - 1)
        self.set_anchor(doc.block_position(block))
        self.set_position(doc.block_position(last))
        state.move_type = MoveType.LINEWISE
        if state.submode != SubMode.YANK:
            self.set_dot_command(key + key)
        self.finish_movement()

    # ─────────────────────────────────────────────────────────────────
    # Pending keys
    # ─────────────────────────────────────────────────────────────────

    def pending_find_char(self, key: str) -> None:
        self._state.subsubmode = SubSubMode.FIND_CHAR
        self._state.subsubdata = key

    def pending_mark(self, key: str) -> None:
        self._state.subsubmode = SubSubMode.MARK

    def pending_back_tick(self, key: str) -> None:
        self._state.subsubmode = SubSubMode.BACK_TICK

    def pending_tick(self, key: str) -> None:
        self._state.subsubmode = SubSubMode.TICK

    def pending_replace_char(self, key: str) -> None:
        self._state.submode = SubMode.REPLACE

    def pending_register(self, key: str) -> None:
        self._state.submode = SubMode.REGISTER

    def pending_scroll(self, key: str) -> None:
        self._state.submode = SubMode.Z

    def pending_capital_z(self, key: str) -> None:
        self._state.submode = SubMode.CAPITAL_Z

    def pending_window(self, key: str) -> None:
        self._state.submode = SubMode.WINDOW

    def complete_find_char(self, key: str) -> None:
        state = self._state
        state.subsubmode = SubSubMode.NONE
        if len(key) != 1:
            self._cancel_pending()
            return
        state.semicolon_type = state.subsubdata
        state.semicolon_key = key
        result = motion_find_char(self._doc, state, state.count(), state.subsubdata, key)
        self._apply_motion(result, state.subsubdata + key)

    def complete_set_mark(self, key: str) -> None:
        self._state.subsubmode = SubSubMode.NONE
        if len(key) == 1:
            self._marks.set(key, self.position)

    def complete_jump_to_mark(self, key: str) -> None:
        state = self._state
        linewise = state.subsubmode == SubSubMode.TICK
        state.subsubmode = SubSubMode.NONE
        position = self._marks.get(key)
        self.record_jump()
        self.set_position(position)
        if linewise:
            self.move_to_first_non_blank()
            state.move_type = MoveType.LINEWISE
        else:
            state.move_type = MoveType.EXCLUSIVE
        self.set_target_column()
        self.finish_movement()

    def complete_replace_char(self, key: str) -> None:
        state = self._state
        char = "\t" if key == "tab" else key
        count = state.count()
        if len(char) == 1 and count <= self._doc.right_dist(self.position) + int(self.at_end_of_line()):
            if self.at_end_of_line():
                self.move_left()
            self.set_anchor()
            self.move_right(count)
            self._doc.begin_edit_block()
            try:
                self.remove_selected_text()
                self.insert_text(char * count)
            finally:
                self._doc.end_edit_block()
            self.move_left()
            state.move_type = MoveType.EXCLUSIVE
            self.set_dot_command("r" + char)
        self.set_target_column()
        state.submode = SubMode.NONE
        self.finish_movement()

    def complete_register(self, key: str) -> None:
        self._state.submode = SubMode.NONE
        if len(key) == 1:
            self._state.register = key

    def complete_scroll(self, key: str) -> None:
        state = self._state
        state.submode = SubMode.NONE
        if key in ("enter", "t"):
            offset = 0
        elif key in (".", "z"):
            offset = self._host.lines_on_screen() // 2
        elif key in ("-", "b"):
            offset = self._host.lines_on_screen() - 1
        else:
            logger.debug("Ignored z%s", key)
            state.reset_counts()
            return
        if state.mvcount:
            self.set_position(self._doc.first_position_in_line(state.count()))
        self._host.scroll_to_line(max(1, self.cursor_line() - offset))
        if key in ("enter", ".", "-"):
            self.move_to_first_non_blank()
        self.finish_movement()

    def complete_capital_z(self, key: str) -> None:
        self._state.submode = SubMode.NONE
        if key == "Z":
            self._run_ex_command("x")
        elif key == "Q":
            self._run_ex_command("q!")

    def complete_window_command(self, key: str) -> None:
        self._state.submode = SubMode.NONE
        self._host.window_command_requested(key)

    # ─────────────────────────────────────────────────────────────────
    # Actions: entering insert mode
    # ─────────────────────────────────────────────────────────────────

    def action_insert(self) -> None:
        self.set_dot_command("i")
        self.enter_insert_mode()
        if self.at_end_of_line():
            self.move_left()

    def action_insert_line_start(self) -> None:
        self.set_dot_command("gI" if self._state.gflag else "I")
        self.enter_insert_mode()
        if self._state.gflag:
            self.move_to_start_of_line()
        else:
            self.move_to_first_non_blank()
        self._state.gflag = False

    def action_append(self) -> None:
        self.set_dot_command("a")
        self.enter_insert_mode()
        if not self.at_end_of_line():
            self.move_right()

    def action_append_line_end(self) -> None:
        self.set_dot_command("A")
        self.enter_insert_mode()
        self.move_to_end_of_line()

    def _open_line(self, below: bool) -> None:
        state = self._state
        self.set_dot_command("o" if below else "O")
        self.enter_insert_mode()
        state.insert_repeat_prefix = "\n"
        if below:
            self.move_to_end_of_line()
            self.insert_text("\n")
        else:
            self.move_to_start_of_line()
            start = self.position
            self.insert_text("\n")
            self.set_position(start)
        self._insert_automatic_indentation(going_down=below)

    def action_open_below(self) -> None:
        self._open_line(below=True)

    def action_open_above(self) -> None:
        self._open_line(below=False)

    def action_replace_mode(self) -> None:
        self.set_dot_command("R")
        self._state.submode = SubMode.REPLACE
        self.enter_insert_mode()

    def action_substitute(self) -> None:
        state = self._state
        if self.at_end_of_line():
            self.move_left()
        self.set_anchor()
        self.move_right(state.count())
        self._registers.set(state.register, self.remove_selected_text())
        self.set_dot_command("s")
        state.reset_counts()
        state.register = UNNAMED_REGISTER
        self.enter_insert_mode()

    def action_change_to_eol(self) -> None:
        state = self._state
        self.set_anchor()
        self.move_to_end_of_line()
        self._registers.set(state.register, self.remove_selected_text())
        self.set_dot_command("C")
        self.enter_insert_mode()
        self.finish_movement()

    def action_delete_to_eol(self) -> None:
        state = self._state
        self.set_anchor()
        state.submode = SubMode.DELETE
        self.move_down(max(state.count() - 1, 0))
        state.move_type = MoveType.EXCLUSIVE
        self.move_to_end_of_line()
        self.set_dot_command("D")
        self.finish_movement()

    # ─────────────────────────────────────────────────────────────────
    # Actions: small edits
    # ─────────────────────────────────────────────────────────────────

    def action_delete_char(self) -> None:
        state = self._state
        if self.at_end_of_line():
            self.move_left()
        if self._doc.right_dist(self.position) == 0:
            # Empty line
            state.reset_counts()
            return
        state.move_type = MoveType.EXCLUSIVE
        self.set_anchor()
        state.submode = SubMode.DELETE
        self.move_right(state.count())
        self.set_dot_command("x")
        self.finish_movement()

    def action_delete_char_before(self) -> None:
        state = self._state
        if self._doc.left_dist(self.position) > 0:
            self.set_anchor()
            self.move_left(state.count())
            self._registers.set(state.register, self.remove_selected_text())
            self.set_dot_command("X")
        self.set_target_column()
        self.finish_movement()

    def action_join_lines(self) -> None:
        state = self._state
        doc = self._doc
        spaced = not state.gflag
        self.set_dot_command("J" if spaced else "gJ")
        joined = False
        doc.begin_edit_block()
        try:
            for _ in range(max(state.count(), 2) - 1):
                if self.cursor_line() >= doc.line_count:
                    break
                self.move_to_end_of_line()
                self.set_anchor()
                self.set_position(self.position + 1)
                if spaced:
                    while doc.character_at(self.position) == " ":
                        self.set_position(self.position + 1)
                self.remove_selected_text()
                if spaced:
                    self.insert_text(" ")
                joined = True
        finally:
            doc.end_edit_block()
        if spaced and joined:
            self.move_left()
        self.set_target_column()
        self.finish_movement()

    def action_toggle_case(self) -> None:
        state = self._state
        if not self.at_end_of_line():
            self.set_anchor()
            self.move_right(state.count())
            self._doc.begin_edit_block()
            try:
                self.insert_text(self.remove_selected_text().swapcase())
            finally:
                self._doc.end_edit_block()
            self.set_dot_command("~")
        self.set_target_column()
        self.finish_movement()

    def action_yank_lines(self) -> None:
        state = self._state
        state.saved_yank_position = self.position
        state.move_count_to_operator()
        state.submode = SubMode.YANK
        self._linewise_operator("y")

    # ─────────────────────────────────────────────────────────────────
    # Actions: registers, undo, repeat
    # ─────────────────────────────────────────────────────────────────

    def _paste(self, after: bool) -> None:
        state = self._state
        doc = self._doc
        register = self._registers.get(state.register)
        if not register.content:
            self.show_message(f"E353: Nothing in register {state.register}", error=True)
            self.finish_movement()
            return
        count = state.count()
        chunk = register.content * count
        if register.linewise:
            line = self.cursor_line()
            if not after:
                start = doc.first_position_in_line(line)
                doc.insert_text(start, chunk)
            elif line < doc.line_count:
                start = doc.first_position_in_line(line + 1)
                doc.insert_text(start, chunk)
            else:
                # No line after the last one: lead with a separator instead
                doc.insert_text(doc.length, "\n" + chunk[:-1])
                start = doc.first_position_in_line(line + 1)
            self.set_position(doc.first_non_blank(start))
        else:
            start = self.position + (min(1, doc.right_dist(self.position)) if after else 0)
            doc.insert_text(start, chunk)
            self.set_position(start + len(chunk) - 1)
        self.set_target_column()
        self.set_dot_command("p" if after else "P")
        self.finish_movement()

    def action_paste_after(self) -> None:
        self._paste(after=True)

    def action_paste_before(self) -> None:
        self._paste(after=False)

    def undo(self) -> None:
        current = self._buffer.revision
        self._buffer.undo()
        self._after_history_step(current, "Already at oldest change")

    def redo(self) -> None:
        current = self._buffer.revision
        self._buffer.redo()
        self._after_history_step(current, "Already at newest change")

    def _after_history_step(self, previous: int, unchanged_message: str) -> None:
        revision = self._buffer.revision
        self.show_message(unchanged_message if revision == previous else "")
        if revision in self._undo_cursor_position:
            self.set_position(self._undo_cursor_position[revision])
        else:
            self.set_position(self.position)
        self.set_target_column()

    def action_undo(self) -> None:
        self.undo()
        self._state.reset_counts()

    def action_redo(self) -> None:
        self.redo()
        self._state.reset_counts()

    def action_repeat(self) -> None:
        state = self._state
        saved = state.dot_command
        count = state.count()
        state.reset_counts()
        state.dot_command = ""
        try:
            self.replay(saved, count)
        finally:
            if state.mode != Mode.COMMAND:
                self.enter_command_mode()
            state.dot_command = saved

    def action_jump_back(self) -> None:
        position = self._jumps.back(self.position)
        if position is not None:
            self.set_position(position)
            self.set_target_column()
        self._state.reset_counts()

    def action_jump_forward(self) -> None:
        position = self._jumps.forward(self.position)
        if position is not None:
            self.set_position(position)
            self.set_target_column()
        self._state.reset_counts()

    # ─────────────────────────────────────────────────────────────────
    # Actions: screen motions
    # ─────────────────────────────────────────────────────────────────

    def _last_visible_line(self) -> int:
        first = self._host.first_visible_line()
        return max(first, min(self._doc.line_count, first + self._host.lines_on_screen() - 1))

    def _screen_line_motion(self, line: int) -> None:
        line = max(1, min(line, self._doc.line_count))
        self.set_position(self._doc.first_position_in_line(line))
        self.handle_start_of_line()
        self._state.move_type = MoveType.LINEWISE
        self.set_target_column()
        self.finish_movement()

    def action_screen_top(self) -> None:
        first = self._host.first_visible_line()
        self._screen_line_motion(min(first + self._state.count() - 1, self._last_visible_line()))

    def action_screen_middle(self) -> None:
        self._screen_line_motion((self._host.first_visible_line() + self._last_visible_line()) // 2)

    def action_screen_bottom(self) -> None:
        last = self._last_visible_line()
        self._screen_line_motion(max(last - self._state.count() + 1, self._host.first_visible_line()))

    def action_page_down(self) -> None:
        page = max(1, self._host.lines_on_screen() - 2)
        first = min(self._host.first_visible_line() + self._state.count() * page, self._doc.line_count)
        self._host.scroll_to_line(first)
        self._screen_line_motion(first)

    def action_page_up(self) -> None:
        page = max(1, self._host.lines_on_screen() - 2)
        first = max(1, self._host.first_visible_line() - self._state.count() * page)
        self._host.scroll_to_line(first)
        self._screen_line_motion(min(self._doc.line_count, first + self._host.lines_on_screen() - 1))

    def action_half_page_up(self) -> None:
        half = max(1, self._host.lines_on_screen() // 2)
        self._host.scroll_to_line(max(1, self._host.first_visible_line() - half))
        self._screen_line_motion(self.cursor_line() - half)

    def action_matching_bracket(self) -> None:
        state = self._state
        state.move_type = MoveType.EXCLUSIVE
        found = self._host.match_bracket(self._doc.text, self.position)
        if found is None:
            self._cancel_pending()
            return
        position, forward = found
        self.record_jump()
        if forward and not state.has_pending_operator():
            # Land on the bracket itself, not after it
            position -= 1
        self.set_position(position)
        self.set_target_column()
        self.finish_movement("%")

    # ─────────────────────────────────────────────────────────────────
    # Actions: search
    # ─────────────────────────────────────────────────────────────────

    def search(self, needle: str, forward: bool, position: int | None = None) -> bool:
        """Move to the next match of ``needle``; report wrap or failure."""
        self._state.command_buffer = ("/" if forward else "?") + needle
        start = self.position if position is None else position
        match = search_text(self._doc.text, needle, start, forward)
        if match is None:
            self.show_message(NOT_FOUND_MESSAGE + needle, error=True)
            self.highlight_matches("")
            return False
        self.set_position(match.start)
        self.set_target_column()
        line = self.cursor_line()
        first = self._host.first_visible_line()
        if not first <= line < first + self._host.lines_on_screen():
            self._host.scroll_to_line(max(1, line - self._host.lines_on_screen() // 2))
        if match.wrapped:
            self.show_message(BOTTOM_WRAP_MESSAGE if forward else TOP_WRAP_MESSAGE, error=True)
        self.highlight_matches(needle)
        return True

    def highlight_matches(self, needle: str) -> None:
        if not self._settings.value(SettingCode.HL_SEARCH):
            return
        if needle == self._old_needle:
            return
        self._old_needle = needle
        self._search_spans = [
            SelectionSpan(start, end, "search") for start, end in match_spans(self._doc.text, needle)
        ]
        self.update_selection()

    def _last_search(self) -> str:
        for needle in reversed(self._history.searches.items):
            if needle:
                return needle
        return ""

    def _search_again(self, reverse: bool) -> None:
        state = self._state
        state.reset_counts()
        if self._settings.value(SettingCode.INC_SEARCH) and self._host.find_next_requested(reverse):
            return
        needle = self._last_search()
        if not needle:
            self.show_message("E35: No previous regular expression", error=True)
            return
        forward = state.last_search_forward != reverse
        self.record_jump()
        self.search(needle, forward)

    def action_search_next(self) -> None:
        self._search_again(reverse=False)

    def action_search_previous(self) -> None:
        self._search_again(reverse=True)

    def _search_word(self, forward: bool) -> None:
        state = self._state
        state.reset_counts()
        span = word_under_cursor(self._doc.text, self.position)
        if span is None:
            self.show_message("E348: No string under cursor", error=True)
            return
        needle = f"\\<{self._doc.text_between(*span)}\\>"
        self._history.searches.append(needle)
        state.last_search_forward = forward
        self.record_jump()
        self.search(needle, forward, self.position if forward else span[0])

    def action_search_word_forward(self) -> None:
        self._search_word(forward=True)

    def action_search_word_backward(self) -> None:
        self._search_word(forward=False)

    # ─────────────────────────────────────────────────────────────────
    # Actions: other
    # ─────────────────────────────────────────────────────────────────

    def action_g_prefix(self) -> None:
        state = self._state
        if not state.gflag:
            state.gflag = True
            return
        state.gflag = False
        self._apply_motion(motion_document_start(self._doc, state, state.count()), "gg")

    def action_toggle_passing(self) -> None:
        self._state.passing = not self._state.passing

    def action_quit_hint(self) -> None:
        self.show_message(QUIT_HINT)

    def action_escape(self) -> None:
        state = self._state
        if state.is_visual():
            self.leave_visual_mode()
        elif state.submode != SubMode.NONE or state.subsubmode != SubSubMode.NONE:
            state.submode = SubMode.NONE
            state.subsubmode = SubSubMode.NONE
            self.finish_movement()
        else:
            state.reset_counts()
            state.gflag = False

    # ─────────────────────────────────────────────────────────────────
    # Mode switches
    # ─────────────────────────────────────────────────────────────────

    def mode_visual_char(self) -> None:
        self.enter_visual_mode(VisualMode.CHAR)

    def mode_visual_line(self) -> None:
        self.enter_visual_mode(VisualMode.LINE)

    def mode_visual_block(self) -> None:
        self.enter_visual_mode(VisualMode.BLOCK)

    def mode_ex(self) -> None:
        if self._state.is_visual():
            self._marks.set(">", self.position)
        self._state.reset_counts()
        self.enter_ex_mode("'<,'>" if self._state.is_visual() else "")

    def _enter_search_mode(self, forward: bool) -> None:
        state = self._state
        state.reset_counts()
        if self._settings.value(SettingCode.INC_SEARCH) and self._host.find_requested(not forward):
            return
        state.mode = Mode.SEARCH_FORWARD if forward else Mode.SEARCH_BACKWARD
        state.current_message = ""
        state.command_buffer = ""
        self._history.searches.begin_entry()
        self._host.mode_changed(state.mode, False)

    def mode_search_forward(self) -> None:
        self._enter_search_mode(forward=True)

    def mode_search_backward(self) -> None:
        self._enter_search_mode(forward=False)

    # ─────────────────────────────────────────────────────────────────
    # Visual mode operations
    # ─────────────────────────────────────────────────────────────────

    def _visual_bounds(self) -> tuple[VisualMode, int, int]:
        self._marks.set(">", self.position)
        visual_mode = self._state.visual_mode
        anchor = self._marks.get("<")
        self.leave_visual_mode()
        return visual_mode, anchor, self.position

    def _visual_region(self, visual_mode: VisualMode, anchor: int, position: int, submode: SubMode) -> Region:
        if visual_mode == VisualMode.CHAR:
            return operator_region(self._doc, anchor, position, MoveType.INCLUSIVE, submode)
        return operator_region(self._doc, anchor, position, MoveType.LINEWISE, submode)

    def _visual_operator(self, submode: SubMode, force_lines: bool = False) -> None:
        state = self._state
        visual_mode, anchor, position = self._visual_bounds()
        if force_lines:
            visual_mode = VisualMode.LINE
        if visual_mode == VisualMode.BLOCK and submode != SubMode.YANK:
            result = delete_block(self._doc, anchor, position, self._registers, state.register)
            state.register = UNNAMED_REGISTER
            self.set_position(result.position)
            if submode == SubMode.CHANGE:
                self.enter_insert_mode(record=False)
            self.finish_movement()
            return
        if visual_mode == VisualMode.BLOCK:
            self._registers.set(state.register, block_text(self._doc, anchor, position))
            state.register = UNNAMED_REGISTER
            self.set_position(min(anchor, position))
            self.finish_movement()
            return
        region = self._visual_region(visual_mode, anchor, position, submode)
        state.saved_yank_position = region.start
        self._apply_operator(submode, region)
        if submode == SubMode.CHANGE:
            # Not repeatable with .
            self._record_insertion = False
        self.finish_movement()

    def visual_delete(self) -> None:
        self._visual_operator(SubMode.DELETE)

    def visual_delete_lines(self) -> None:
        self._visual_operator(SubMode.DELETE, force_lines=True)

    def visual_change(self) -> None:
        self._visual_operator(SubMode.CHANGE)

    def visual_yank(self) -> None:
        self._visual_operator(SubMode.YANK)

    def visual_yank_lines(self) -> None:
        self._visual_operator(SubMode.YANK, force_lines=True)

    def _visual_lines(self, submode: SubMode) -> None:
        _, anchor, position = self._visual_bounds()
        first = min(self._doc.line_for_position(anchor), self._doc.line_for_position(position))
        last = max(self._doc.line_for_position(anchor), self._doc.line_for_position(position))
        self._shift_lines(submode, first, last)
        self.finish_movement()

    def visual_shift_left(self) -> None:
        self._visual_lines(SubMode.SHIFT_LEFT)

    def visual_shift_right(self) -> None:
        self._visual_lines(SubMode.SHIFT_RIGHT)

    def visual_indent(self) -> None:
        self._visual_lines(SubMode.INDENT)

    def visual_toggle_case(self) -> None:
        doc = self._doc
        visual_mode, anchor, position = self._visual_bounds()
        if visual_mode == VisualMode.BLOCK:
            spans = block_spans(doc, anchor, position)
        else:
            region = self._visual_region(visual_mode, anchor, position, SubMode.NONE)
            spans = [(region.start, region.end)]
        doc.begin_edit_block()
        try:
            for start, end in spans:
                doc.replace(start, end, doc.text_between(start, end).swapcase())
        finally:
            doc.end_edit_block()
        if spans:
            self.set_position(spans[0][0])
        self.finish_movement()

    def visual_filter(self) -> None:
        self._marks.set(">", self.position)
        self._state.reset_counts()
        self.enter_ex_mode("'<,'>!")

    def visual_ex(self) -> None:
        self.mode_ex()

    def visual_other_end(self) -> None:
        anchor = self._marks.get("<")
        self._marks.set("<", self.position)
        self.set_position(anchor)
        self._marks.set(">", anchor)
        self.set_target_column()
        self.update_selection()

    # ─────────────────────────────────────────────────────────────────
    # Insert Mode
    # ─────────────────────────────────────────────────────────────────

    def _insert_automatic_indentation(self, going_down: bool) -> None:
        if not self._settings.value(SettingCode.AUTO_INDENT):
            return
        doc = self._doc
        block = doc.block_number(self.position) + (-1 if going_down else 1)
        text = doc.block_text(block)
        indent = text[: len(text) - len(text.lstrip())]
        self.insert_text(indent)
        self._state.just_auto_indented = len(indent)

    def _remove_automatic_indentation(self) -> bool:
        state = self._state
        if not self._settings.value(SettingCode.AUTO_INDENT) or state.just_auto_indented == 0:
            return False
        start = self._doc.block_position(self._doc.block_number(self.position))
        self._doc.remove(start, self.position)
        self.set_position(start)
        state.just_auto_indented = 0
        return True

    def _leave_insert_mode(self) -> None:
        state = self._state
        # One copy was inserted while typing; the count adds the rest
        repeat = state.insert_repeat_prefix + state.last_insertion
        for _ in range(1, state.count()):
            self.insert_text(repeat)
        self.move_left(min(1, self._doc.left_dist(self.position)))
        self.set_target_column()
        if self._record_insertion:
            state.dot_command += state.last_insertion + "\x1b"
        state.submode = SubMode.NONE
        state.reset_counts()
        self.enter_command_mode()

    def handle_insert_mode(self, key: str, text: str) -> EventResult:
        """Handle keys in Insert mode."""
        state = self._state
        doc = self._doc
        pages = max(1, self._host.lines_on_screen() - 2)

        if key in ("escape", "ctrl+c", "ctrl+["):
            self._leave_insert_mode()
        elif key == "insert":
            state.submode = SubMode.NONE if state.submode == SubMode.REPLACE else SubMode.REPLACE
            self._host.mode_changed(Mode.INSERT, state.submode == SubMode.REPLACE)
        elif key in ("left", "right"):
            if key == "left":
                self.move_left()
            else:
                self.move_right()
            self.set_target_column()
            state.last_insertion = ""
        elif key in ("up", "down", "pageup", "pagedown"):
            self._remove_automatic_indentation()
            state.submode = SubMode.NONE
            lines = pages if key.startswith("page") else 1
            self.move_down(lines if key in ("down", "pagedown") else -lines)
            state.last_insertion = ""
        elif key in ("home", "end"):
            if key == "home":
                self.move_to_start_of_line()
            else:
                self.move_to_end_of_line()
            self.set_target_column()
            state.last_insertion = ""
        elif key == "enter":
            state.submode = SubMode.NONE
            self.insert_text("\n")
            state.last_insertion += "\n"
            self._insert_automatic_indentation(going_down=True)
        elif key in ("backspace", "ctrl+h"):
            self._insert_backspace()
        elif key == "delete":
            doc.remove(self.position, self.position + 1)
            state.last_insertion = ""
        elif key == "tab" and self._settings.value(SettingCode.EXPAND_TAB):
            spaces = " " * self._settings.value(SettingCode.TAB_STOP)
            state.last_insertion += spaces
            self.insert_text(spaces)
        elif key.startswith("ctrl+") and len(key) == 6 and key[5].isalpha():
            # Remaining control letters have no insert-mode meaning
            pass
        elif len(key) == 1 or key == "tab":
            self._insert_typed("\t" if key == "tab" else key)
        else:
            logger.debug("Unhandled in insert mode: %r", key)
            return EventResult.UNHANDLED
        return EventResult.HANDLED

    def _insert_backspace(self) -> None:
        state = self._state
        if self._remove_automatic_indentation():
            return
        backspace = str(self._settings.value(SettingCode.BACKSPACE)).split(",")
        if not state.last_insertion and "start" not in backspace:
            return
        if self.position == 0:
            return
        if self._doc.character_at(self.position - 1) == "\n" and "eol" not in backspace:
            return
        self._doc.remove(self.position - 1, self.position)
        self.set_position(self.position - 1)
        state.last_insertion = state.last_insertion[:-1]

    def _insert_typed(self, char: str) -> None:
        state = self._state
        state.last_insertion += char
        if state.submode == SubMode.REPLACE:
            if self.at_end_of_line() or self.position >= self._doc.length:
                state.submode = SubMode.NONE
            else:
                self._doc.remove(self.position, self.position + 1)
        self.insert_text(char)
        state.just_auto_indented = 0
        if not state.in_replay:
            self._host.completion_requested()

    # ─────────────────────────────────────────────────────────────────
    # Ex and search line
    # ─────────────────────────────────────────────────────────────────

    def handle_minibuffer_mode(self, key: str, text: str) -> EventResult:
        """Handle keys while editing the ex or search line."""
        state = self._state
        ring = self._history.commands if state.mode == Mode.EX else self._history.searches

        if key in ("escape", "ctrl+c"):
            state.command_buffer = ""
            ring.cancel()
            self.enter_command_mode()
            self.leave_visual_mode()
        elif key == "backspace":
            if not state.command_buffer:
                ring.cancel()
                self.enter_command_mode()
            else:
                state.command_buffer = state.command_buffer[:-1]
        elif key == "left":
            state.command_buffer = state.command_buffer[:-1]
        elif key == "enter" and state.mode == Mode.EX:
            command = state.command_buffer
            if command:
                ring.commit(command)
                self._run_ex_command(command)
            else:
                ring.cancel()
                self.enter_command_mode()
            self.leave_visual_mode()
        elif key == "enter":
            self._finish_search_line(ring)
        elif key in ("up", "pageup"):
            item = ring.previous()
            if item is not None:
                state.command_buffer = item
        elif key in ("down", "pagedown"):
            item = ring.next()
            if item is not None:
                state.command_buffer = item
        elif key == "tab":
            state.command_buffer += "\t"
        elif len(key) == 1 and key.isprintable():
            state.command_buffer += key
        else:
            logger.debug("Unhandled in %s mode: %r", state.mode.name, key)
            return EventResult.UNHANDLED
        self.update_mini_buffer()
        return EventResult.HANDLED

    def _finish_search_line(self, ring) -> None:
        state = self._state
        forward = state.mode == Mode.SEARCH_FORWARD
        needle = state.command_buffer
        if needle:
            ring.commit(needle)
        else:
            # An empty pattern repeats the last search
            ring.cancel()
            needle = self._last_search()
        self.enter_command_mode()
        if not needle:
            self.show_message("E35: No previous regular expression", error=True)
            return
        state.last_search_forward = forward
        self.record_jump()
        self.search(needle, forward)

    def _run_ex_command(self, command: str) -> None:
        state = self._state
        state.command_buffer = ""
        result = self._ex.execute(command)
        if state.mode != Mode.COMMAND:
            self.enter_command_mode()
        state.submode = SubMode.NONE
        state.subsubmode = SubSubMode.NONE
        state.reset_counts()
        if result.message:
            self.show_message(result.message, error=result.error)

    # ─────────────────────────────────────────────────────────────────
    # Emacs chord layer
    # ─────────────────────────────────────────────────────────────────

    def emacs_next_line(self) -> None:
        self.move_down()

    def emacs_previous_line(self) -> None:
        self.move_up()

    def emacs_line_start(self) -> None:
        self.move_to_start_of_line()
        self.set_target_column()

    def emacs_line_end(self) -> None:
        self.move_to_end_of_line()
        self.set_target_column()

    def emacs_backward_char(self) -> None:
        self.set_position(self.position - 1)
        self.set_target_column()

    def emacs_forward_char(self) -> None:
        self.set_position(self.position + 1)
        self.set_target_column()

    def emacs_backward_word(self) -> None:
        self.set_position(word_boundary(self._doc, self.position, 1, simple=False, forward=False))
        self.set_target_column()

    def emacs_forward_word(self) -> None:
        self.set_position(next_word(self._doc, self.position, 1, simple=False))
        self.set_target_column()

    def emacs_delete_char(self) -> None:
        self._doc.remove(self.position, self.position + 1)

    def emacs_document_start(self) -> None:
        self.set_position(0)
        self.set_target_column()

    def emacs_document_end(self) -> None:
        self.set_position(self._doc.length)
        self.set_target_column()

    def emacs_set_mark(self) -> None:
        self._mark_ring.add(self.position)
        self.show_message("Mark set")

    def emacs_kill_line(self) -> None:
        doc = self._doc
        end = doc.block_end(doc.block_number(self.position))
        if self.position == end:
            # At the end of a line the newline itself is killed
            end = min(end + 1, doc.length)
        killed = doc.remove(self.position, end)
        self._kill_ring.add(killed)

    def emacs_copy_region(self) -> None:
        mark = self._mark_ring.most_recent()
        if mark is None:
            self.show_message("The mark is not set now", error=True)
            return
        text = self._doc.text_between(mark, self.position)
        self._kill_ring.add(text)
        self.show_message(_squeeze(text, 60))

    def emacs_yank(self) -> None:
        text = self._kill_ring.current()
        if not text:
            self.show_message("Kill ring is empty", error=True)
            return
        start = self.position
        self.insert_text(text)
        self._last_yank = (start, self.position)

    def emacs_yank_pop(self) -> None:
        previous = self._previous_yank
        if previous is None or previous[1] != self.position:
            self.show_message("Previous command was not a yank", error=True)
            return
        text = self._kill_ring.next()
        start, end = previous
        self._doc.begin_edit_block()
        try:
            self._doc.replace(start, end, text)
        finally:
            self._doc.end_edit_block()
        self.set_position(start + len(text))
        self._last_yank = (start, self.position)
