"""Interpreter state.

Tracks the current mode and every transient pending state: operator
submode, one-key lookahead, counts, active register, dot command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .document import Cursor


class Mode(Enum):
    """Top-level interpreter modes."""

    INSERT = "INSERT"
    COMMAND = "COMMAND"
    EX = "EX"
    SEARCH_FORWARD = "SEARCH_FORWARD"
    SEARCH_BACKWARD = "SEARCH_BACKWARD"


class SubMode(Enum):
    """Pending operator, or a command waiting for one disambiguating key."""

    NONE = auto()
    CHANGE = auto()
    DELETE = auto()
    FILTER = auto()
    INDENT = auto()
    REGISTER = auto()
    REPLACE = auto()
    SHIFT_LEFT = auto()
    SHIFT_RIGHT = auto()
    WINDOW = auto()
    YANK = auto()
    Z = auto()
    CAPITAL_Z = auto()


class SubSubMode(Enum):
    """Lookahead for exactly one more character."""

    NONE = auto()
    FIND_CHAR = auto()  # f, F, t, T
    MARK = auto()       # m
    BACK_TICK = auto()  # `
    TICK = auto()       # '


class VisualMode(Enum):
    NONE = auto()
    CHAR = auto()
    LINE = auto()
    BLOCK = auto()


class MoveType(Enum):
    """Classification of the last motion."""

    EXCLUSIVE = auto()  # Motion excludes final character
    INCLUSIVE = auto()  # Motion includes final character
    LINEWISE = auto()   # Operates on whole lines


# Operators that wait for a motion to define their region
OPERATOR_SUBMODES = frozenset({
    SubMode.CHANGE,
    SubMode.DELETE,
    SubMode.FILTER,
    SubMode.INDENT,
    SubMode.SHIFT_LEFT,
    SubMode.SHIFT_RIGHT,
    SubMode.YANK,
})

UNNAMED_REGISTER = '"'


@dataclass
class EditorState:
    """All per-buffer interpreter state.

    One instance belongs to one ``ModalEngine`` and lives as long as the
    engine is attached to its buffer.
    """

    mode: Mode = Mode.COMMAND
    submode: SubMode = SubMode.NONE
    subsubmode: SubSubMode = SubSubMode.NONE
    subsubdata: str = ""  # f/F/t/T awaiting its target
    visual_mode: VisualMode = VisualMode.NONE
    move_type: MoveType = MoveType.INCLUSIVE

    cursor: Cursor = field(default_factory=Cursor)
    target_column: int = 0  # -1 means "end of line"

    # Counts are kept as typed so that "0" can mean start of line
    mvcount: str = ""
    opcount: str = ""

    register: str = UNNAMED_REGISTER
    gflag: bool = False
    passing: bool = False
    in_replay: bool = False

    saved_yank_position: int = 0
    dot_command: str = ""

    # Repeat for ; (last f/F/t/T)
    semicolon_type: str = ""
    semicolon_key: str = ""

    # Insert session
    last_insertion: str = ""
    insert_repeat_prefix: str = ""
    just_auto_indented: int = 0

    # Command line
    command_buffer: str = ""
    current_message: str = ""
    message_is_error: bool = False

    last_search_forward: bool = True
    current_file_name: str = ""

    def count(self) -> int:
        """Effective repeat count: max(1, mvcount) * max(1, opcount)."""
        mv = int(self.mvcount) if self.mvcount else 1
        op = int(self.opcount) if self.opcount else 1
        return max(1, mv) * max(1, op)

    def has_count(self) -> bool:
        return bool(self.mvcount or self.opcount)

    def reset_counts(self) -> None:
        self.mvcount = ""
        self.opcount = ""

    def accumulate_digit(self, digit: str) -> bool:
        """Append a digit to the motion count. Returns False for a leading 0."""
        if digit == "0" and not self.mvcount:
            return False
        if digit.isdigit() and len(digit) == 1:
            self.mvcount += digit
            return True
        return False

    def move_count_to_operator(self) -> None:
        """Keep the count typed before an operator apart from the motion count."""
        self.opcount = self.mvcount
        self.mvcount = ""

    def has_pending_operator(self) -> bool:
        return self.submode in OPERATOR_SUBMODES

    def is_visual(self) -> bool:
        return self.visual_mode != VisualMode.NONE

    def is_minibuffer(self) -> bool:
        return self.mode in (Mode.EX, Mode.SEARCH_FORWARD, Mode.SEARCH_BACKWARD)
