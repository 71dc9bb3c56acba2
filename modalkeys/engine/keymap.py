"""Key bindings and the pending-state transition table.

Command-mode keys are grouped by what they do:
- Motions (move the cursor; finish any pending operator)
- Operators (enter an operator submode awaiting a motion)
- Actions (immediate commands: insert, paste, undo, ...)
- Mode switches (visual modes, ex line, search line)
- Pending (keys that wait for one more key: f, m, r, ", z, ...)

While a submode or sub-submode is pending, the next key is routed by
``(SubMode, SubSubMode)`` instead of through the bindings above.
Handler names resolve to ``ModalEngine`` methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto

from .state import Mode, SubMode, SubSubMode


class BindingType(Enum):
    """Type of command-mode key binding."""

    MOTION = auto()       # Movement command (h, j, w, etc.)
    OPERATOR = auto()     # Operates on range (d, c, y, etc.)
    ACTION = auto()       # Immediate action (i, a, o, p, u, etc.)
    MODE_SWITCH = auto()  # Mode change (v, V, :, etc.)
    PENDING = auto()      # Waits for next char (f, t, r, etc.)


@dataclass
class ModalBinding:
    """Definition of a key binding."""

    key: str
    type: BindingType
    handler: str
    description: str = ""
    template: str | None = None  # Dot-command spelling of a motion (defaults to key)
    submode: SubMode = SubMode.NONE  # Operator submode

    @property
    def dot_template(self) -> str:
        return self.key if self.template is None else self.template


def _motion(key: str, handler: str, description: str, template: str | None = None) -> ModalBinding:
    return ModalBinding(key, BindingType.MOTION, handler, description, template=template)


def _operator(key: str, submode: SubMode, description: str) -> ModalBinding:
    return ModalBinding(key, BindingType.OPERATOR, "start_operator", description, submode=submode)


def _action(key: str, handler: str, description: str) -> ModalBinding:
    return ModalBinding(key, BindingType.ACTION, handler, description)


def _switch(key: str, handler: str, description: str) -> ModalBinding:
    return ModalBinding(key, BindingType.MODE_SWITCH, handler, description)


def _pending(key: str, handler: str, description: str) -> ModalBinding:
    return ModalBinding(key, BindingType.PENDING, handler, description)


@dataclass
class ModalKeymapConfig:
    """All key bindings and state transitions."""

    # ─────────────────────────────────────────────────────────────────
    # Top-level dispatch by mode
    # ─────────────────────────────────────────────────────────────────
    modes: dict[Mode, str] = field(default_factory=lambda: {
        Mode.INSERT: "handle_insert_mode",
        Mode.COMMAND: "handle_command_mode",
        Mode.EX: "handle_minibuffer_mode",
        Mode.SEARCH_FORWARD: "handle_minibuffer_mode",
        Mode.SEARCH_BACKWARD: "handle_minibuffer_mode",
    })

    # ─────────────────────────────────────────────────────────────────
    # Pending states: the next key completes them
    # ─────────────────────────────────────────────────────────────────
    subsubmodes: dict[SubSubMode, str] = field(default_factory=lambda: {
        SubSubMode.FIND_CHAR: "complete_find_char",
        SubSubMode.MARK: "complete_set_mark",
        SubSubMode.BACK_TICK: "complete_jump_to_mark",
        SubSubMode.TICK: "complete_jump_to_mark",
    })
    submodes: dict[SubMode, str] = field(default_factory=lambda: {
        SubMode.WINDOW: "complete_window_command",
        SubMode.REGISTER: "complete_register",
        SubMode.Z: "complete_scroll",
        SubMode.CAPITAL_Z: "complete_capital_z",
        SubMode.REPLACE: "complete_replace_char",
    })

    # ─────────────────────────────────────────────────────────────────
    # Motions
    # ─────────────────────────────────────────────────────────────────
    motions: dict[str, ModalBinding] = field(default_factory=lambda: {
        "h": _motion("h", "motion_left", "Left"),
        "left": _motion("left", "motion_left", "Left", "h"),
        "backspace": _motion("backspace", "motion_left", "Left", "h"),
        "ctrl+h": _motion("ctrl+h", "motion_left", "Left", "h"),
        "l": _motion("l", "motion_right", "Right"),
        "right": _motion("right", "motion_right", "Right", "l"),
        " ": _motion(" ", "motion_right", "Right", "l"),
        "j": _motion("j", "motion_down", "Down"),
        "down": _motion("down", "motion_down", "Down", "j"),
        "k": _motion("k", "motion_up", "Up"),
        "up": _motion("up", "motion_up", "Up", "k"),
        "0": _motion("0", "motion_line_start", "Line start"),
        "home": _motion("home", "motion_line_start", "Line start", "0"),
        "^": _motion("^", "motion_first_non_blank", "First non-blank"),
        "$": _motion("$", "motion_line_end", "Line end"),
        "end": _motion("end", "motion_line_end", "Line end", "$"),
        "|": _motion("|", "motion_column", "Column"),
        "w": _motion("w", "motion_word_forward", "Next word"),
        "W": _motion("W", "motion_word_forward_big", "Next WORD"),
        "e": _motion("e", "motion_word_end", "Word end"),
        "E": _motion("E", "motion_word_end_big", "WORD end"),
        "b": _motion("b", "motion_word_backward", "Previous word"),
        "B": _motion("B", "motion_word_backward_big", "Previous WORD"),
        "G": _motion("G", "motion_document_end", "Document end"),
        "enter": _motion("enter", "motion_next_line_start", "Next line", "+"),
        "+": _motion("+", "motion_next_line_start", "Next line"),
        "-": _motion("-", "motion_previous_line_start", "Previous line"),
        "}": _motion("}", "motion_paragraph_forward", "Next paragraph"),
        "{": _motion("{", "motion_paragraph_backward", "Previous paragraph"),
        ";": _motion(";", "motion_repeat_find", "Repeat f/t"),
    })

    # Motions needing the host viewport or bracket matcher
    screen_motions: dict[str, ModalBinding] = field(default_factory=lambda: {
        "H": _action("H", "action_screen_top", "Top of screen"),
        "M": _action("M", "action_screen_middle", "Middle of screen"),
        "L": _action("L", "action_screen_bottom", "Bottom of screen"),
        "%": _action("%", "action_matching_bracket", "Matching bracket"),
        "pagedown": _action("pagedown", "action_page_down", "Page down"),
        "pageup": _action("pageup", "action_page_up", "Page up"),
        "ctrl+u": _action("ctrl+u", "action_half_page_up", "Half page up"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────────
    operators: dict[str, ModalBinding] = field(default_factory=lambda: {
        "c": _operator("c", SubMode.CHANGE, "Change"),
        "d": _operator("d", SubMode.DELETE, "Delete"),
        "y": _operator("y", SubMode.YANK, "Yank"),
        "<": _operator("<", SubMode.SHIFT_LEFT, "Shift left"),
        ">": _operator(">", SubMode.SHIFT_RIGHT, "Shift right"),
        "=": _operator("=", SubMode.INDENT, "Indent"),
        "!": _operator("!", SubMode.FILTER, "Filter"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────────
    actions: dict[str, ModalBinding] = field(default_factory=lambda: {
        # Insert mode entry
        "i": _action("i", "action_insert", "Insert"),
        "insert": _action("insert", "action_insert", "Insert"),
        "I": _action("I", "action_insert_line_start", "Insert at line start"),
        "a": _action("a", "action_append", "Append"),
        "A": _action("A", "action_append_line_end", "Append at line end"),
        "o": _action("o", "action_open_below", "Open line below"),
        "O": _action("O", "action_open_above", "Open line above"),
        "R": _action("R", "action_replace_mode", "Overwrite"),
        "s": _action("s", "action_substitute", "Substitute chars"),
        "C": _action("C", "action_change_to_eol", "Change to EOL"),
        "D": _action("D", "action_delete_to_eol", "Delete to EOL"),

        # Small edits
        "x": _action("x", "action_delete_char", "Delete char"),
        "delete": _action("delete", "action_delete_char", "Delete char"),
        "X": _action("X", "action_delete_char_before", "Delete char before"),
        "J": _action("J", "action_join_lines", "Join lines"),
        "~": _action("~", "action_toggle_case", "Toggle case"),
        "Y": _action("Y", "action_yank_lines", "Yank lines"),

        # Registers
        "p": _action("p", "action_paste_after", "Paste after"),
        "P": _action("P", "action_paste_before", "Paste before"),

        # History
        "u": _action("u", "action_undo", "Undo"),
        "ctrl+r": _action("ctrl+r", "action_redo", "Redo"),
        ".": _action(".", "action_repeat", "Repeat last change"),
        "ctrl+o": _action("ctrl+o", "action_jump_back", "Older jump"),
        "ctrl+i": _action("ctrl+i", "action_jump_forward", "Newer jump"),
        "tab": _action("tab", "action_jump_forward", "Newer jump"),

        # Search
        "n": _action("n", "action_search_next", "Next match"),
        "N": _action("N", "action_search_previous", "Previous match"),
        "*": _action("*", "action_search_word_forward", "Search word forward"),
        "#": _action("#", "action_search_word_backward", "Search word backward"),

        # Other
        "g": _action("g", "action_g_prefix", "g prefix"),
        ",": _action(",", "action_toggle_passing", "Pass next key to host"),
        "ctrl+c": _action("ctrl+c", "action_quit_hint", "How to leave"),
        "escape": _action("escape", "action_escape", "Cancel"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Keys acting on an active visual selection
    # ─────────────────────────────────────────────────────────────────
    visual_actions: dict[str, ModalBinding] = field(default_factory=lambda: {
        "d": _action("d", "visual_delete", "Delete selection"),
        "x": _action("x", "visual_delete", "Delete selection"),
        "X": _action("X", "visual_delete_lines", "Delete lines"),
        "D": _action("D", "visual_delete_lines", "Delete lines"),
        "c": _action("c", "visual_change", "Change selection"),
        "s": _action("s", "visual_change", "Change selection"),
        "y": _action("y", "visual_yank", "Yank selection"),
        "Y": _action("Y", "visual_yank_lines", "Yank lines"),
        "<": _action("<", "visual_shift_left", "Shift left"),
        ">": _action(">", "visual_shift_right", "Shift right"),
        "=": _action("=", "visual_indent", "Indent"),
        "~": _action("~", "visual_toggle_case", "Toggle case"),
        "!": _action("!", "visual_filter", "Filter selection"),
        ":": _action(":", "visual_ex", "Ex on selection"),
        "o": _action("o", "visual_other_end", "Other end"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Mode switches
    # ─────────────────────────────────────────────────────────────────
    mode_switches: dict[str, ModalBinding] = field(default_factory=lambda: {
        "v": _switch("v", "mode_visual_char", "Visual mode"),
        "V": _switch("V", "mode_visual_line", "Visual line mode"),
        "ctrl+v": _switch("ctrl+v", "mode_visual_block", "Visual block mode"),
        ":": _switch(":", "mode_ex", "Ex command line"),
        "/": _switch("/", "mode_search_forward", "Search forward"),
        "?": _switch("?", "mode_search_backward", "Search backward"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Pending commands (wait for next char)
    # ─────────────────────────────────────────────────────────────────
    pending: dict[str, ModalBinding] = field(default_factory=lambda: {
        "f": _pending("f", "pending_find_char", "Find forward"),
        "F": _pending("F", "pending_find_char", "Find backward"),
        "t": _pending("t", "pending_find_char", "Till forward"),
        "T": _pending("T", "pending_find_char", "Till backward"),
        "m": _pending("m", "pending_mark", "Set mark"),
        "`": _pending("`", "pending_back_tick", "Jump to mark"),
        "'": _pending("'", "pending_tick", "Jump to mark line"),
        "r": _pending("r", "pending_replace_char", "Replace char"),
        '"': _pending('"', "pending_register", "Select register"),
        "z": _pending("z", "pending_scroll", "Scroll"),
        "Z": _pending("Z", "pending_capital_z", "Write/quit"),
        "ctrl+w": _pending("ctrl+w", "pending_window", "Window command"),
    })

    # ─────────────────────────────────────────────────────────────────
    # Emacs chords, checked before the modal dispatch in every mode
    # ─────────────────────────────────────────────────────────────────
    emacs: dict[str, str] = field(default_factory=lambda: {
        "ctrl+n": "emacs_next_line",
        "ctrl+p": "emacs_previous_line",
        "ctrl+a": "emacs_line_start",
        "ctrl+e": "emacs_line_end",
        "ctrl+b": "emacs_backward_char",
        "ctrl+f": "emacs_forward_char",
        "alt+b": "emacs_backward_word",
        "alt+f": "emacs_forward_word",
        "ctrl+d": "emacs_delete_char",
        "alt+<": "emacs_document_start",
        "alt+>": "emacs_document_end",
        "ctrl+space": "emacs_set_mark",
        "ctrl+@": "emacs_set_mark",
        "ctrl+k": "emacs_kill_line",
        "alt+w": "emacs_copy_region",
        "ctrl+y": "emacs_yank",
        "alt+y": "emacs_yank_pop",
    })


class ModalKeymapProvider(ABC):
    """Abstract base class for keymap providers."""

    @abstractmethod
    def get_config(self) -> ModalKeymapConfig:
        """Get the keymap configuration."""
        pass

    def mode_handler(self, mode: Mode) -> str:
        return self.get_config().modes[mode]

    def pending_handler(self, submode: SubMode, subsubmode: SubSubMode) -> str | None:
        """Handler completing the pending state, if one is waiting for a key."""
        config = self.get_config()
        if subsubmode != SubSubMode.NONE:
            return config.subsubmodes.get(subsubmode)
        return config.submodes.get(submode)

    def get_motion(self, key: str) -> ModalBinding | None:
        return self.get_config().motions.get(key)

    def get_operator(self, key: str) -> ModalBinding | None:
        return self.get_config().operators.get(key)

    def get_visual_action(self, key: str) -> ModalBinding | None:
        return self.get_config().visual_actions.get(key)

    def get_emacs(self, key: str) -> str | None:
        return self.get_config().emacs.get(key)

    def lookup(self, key: str) -> ModalBinding | None:
        """Look up a command-mode binding for a key."""
        config = self.get_config()
        for bindings in (
            config.motions,
            config.screen_motions,
            config.operators,
            config.actions,
            config.mode_switches,
            config.pending,
        ):
            binding = bindings.get(key)
            if binding is not None:
                return binding
        return None


class DefaultModalKeymapProvider(ModalKeymapProvider):
    """Default keymap with the standard bindings."""

    def __init__(self) -> None:
        self._config = ModalKeymapConfig()

    def get_config(self) -> ModalKeymapConfig:
        return self._config


# Global keymap instance
_keymap_provider: ModalKeymapProvider | None = None


def get_modal_keymap() -> ModalKeymapProvider:
    """Get the current keymap provider."""
    global _keymap_provider
    if _keymap_provider is None:
        _keymap_provider = DefaultModalKeymapProvider()
    return _keymap_provider


def set_modal_keymap(provider: ModalKeymapProvider) -> None:
    """Set the keymap provider (for testing or custom keymaps)."""
    global _keymap_provider
    _keymap_provider = provider


def reset_modal_keymap() -> None:
    """Reset to the default keymap provider."""
    global _keymap_provider
    _keymap_provider = None
