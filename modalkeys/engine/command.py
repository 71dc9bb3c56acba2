"""Ex command interpreter.

Parses ``[range]command[!][ args]`` lines typed after ``:`` and executes
them against the engine's buffer. A range is ``addr[,addr]`` or ``%``;
an address is ``.``, ``$``, a line number, ``'x`` (line of mark x) or
``+N``/``-N`` relative to the cursor line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import SettingCode
from .errors import BufferIOError, ExCommandError, ModalKeysError
from .operators import operator_delete, operator_region, shift_lines_left, shift_lines_right
from .state import UNNAMED_REGISTER, Mode, MoveType, SubMode

if TYPE_CHECKING:
    from .engine import ModalEngine
    from .operators import Region

logger = logging.getLogger(__name__)

QUIT_RE = re.compile(r"^qa?!?$")
DELETE_RE = re.compile(r"^d( (.*))?$")
HISTORY_RE = re.compile(r"^his(tory)?( (.*))?$")
NORMAL_RE = re.compile(r"^norm(al)? (.*)$")
SET_RE = re.compile(r"^set?( (.*))?$")
WRITE_RE = re.compile(r"^[wx]q?a?!?( (.*))?$")
READ_RE = re.compile(r"^r (.+)$")
REDO_RE = re.compile(r"^red(o)?$")
UNDO_RE = re.compile(r"^u(ndo)?$")
SUBSTITUTE_RE = re.compile(r"^s([^\w\s\\\"|])((?:\\.|(?!\1).)*)\1((?:\\.|(?!\1).)*)(?:\1([gi]*))?$")
REPEAT_SUBSTITUTE_RE = re.compile(r"^&(&)?([gi]*)$")


@dataclass
class CommandResult:
    """Result of executing an ex command."""

    message: str = ""
    error: bool = False


@dataclass
class LineRange:
    """Parsed range; -1 marks an address that was not given."""

    begin: int = -1
    end: int = -1

    @property
    def given(self) -> bool:
        return self.begin != -1


def vim_replacement(text: str) -> str:
    """Turn a vi replacement string into a ``re`` template (``&`` is the match)."""
    out = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            following = text[index + 1]
            out.append("&" if following == "&" else char + following)
            index += 2
            continue
        out.append(r"\g<0>" if char == "&" else char)
        index += 1
    return "".join(out)


class ExCommandInterpreter:
    """Executes ex command lines for one engine."""

    def __init__(self, engine: ModalEngine) -> None:
        self._engine = engine
        self._last_substitute: tuple[str, str, str, str] | None = None

    @property
    def _doc(self):
        return self._engine.doc

    def _current_line(self) -> int:
        return self._doc.line_for_position(self._engine.state.cursor.position)

    # ─────────────────────────────────────────────────────────────────
    # Range parsing
    # ─────────────────────────────────────────────────────────────────

    def read_line_code(self, cmd: str) -> tuple[int, str]:
        """Parse one address from the front of ``cmd``.

        Returns ``(line, rest)``; ``line`` is -1 and ``cmd`` is returned
        untouched when no address is present.
        """
        if not cmd:
            return -1, cmd
        char = cmd[0]
        if char == ".":
            return self._current_line(), cmd[1:]
        if char == "$":
            return self._doc.line_count, cmd[1:]
        if char == "'" and len(cmd) > 1:
            position = self._engine.marks.get(cmd[1])
            return self._doc.line_for_position(position), cmd[2:]
        if char in "+-":
            amount, rest = self.read_line_code(cmd[1:])
            if amount == -1:
                amount = 1
            if char == "-":
                return self._current_line() - amount, rest
            return self._current_line() + amount, rest
        digits = re.match(r"\d+", cmd)
        if digits:
            return int(digits.group()), cmd[digits.end():]
        return -1, cmd

    def parse_range(self, cmd: str) -> tuple[LineRange, str]:
        if cmd.startswith("%"):
            cmd = "1,$" + cmd[1:]
        line_range = LineRange()
        line_range.begin, cmd = self.read_line_code(cmd)
        if cmd.startswith(","):
            line_range.end, cmd = self.read_line_code(cmd[1:])
        return line_range, cmd.lstrip(" ")

    def _lines(self, line_range: LineRange) -> tuple[int, int]:
        """Resolve a range to ``(first, last)``, defaulting to the cursor line."""
        begin = line_range.begin if line_range.begin != -1 else self._current_line()
        end = line_range.end if line_range.end != -1 else begin
        if begin > end:
            begin, end = end, begin
        if begin < 1 or end > self._doc.line_count:
            raise ExCommandError("E16: Invalid range")
        return begin, end

    def _line_region(self, first: int, last: int, submode: SubMode = SubMode.NONE) -> Region:
        doc = self._doc
        return operator_region(
            doc,
            doc.first_position_in_line(first),
            doc.first_position_in_line(last),
            MoveType.LINEWISE,
            submode,
        )

    # ─────────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────────

    def execute(self, command: str) -> CommandResult:
        """Run one command line; user-level failures come back as errors."""
        logger.debug("Executing ex command %r", command)
        try:
            message = self._dispatch(command)
        except ModalKeysError as e:
            logger.debug("Ex command %r failed: %s", command, e.message)
            return CommandResult(message=e.message, error=True)
        return CommandResult(message=message or "")

    def _dispatch(self, command: str) -> str | None:
        line_range, cmd = self.parse_range(command)

        if not cmd:
            return self._goto_line(line_range)
        if QUIT_RE.match(cmd):
            return self._quit(cmd)
        match = DELETE_RE.match(cmd)
        if match:
            return self._delete(line_range, match.group(2))
        match = WRITE_RE.match(cmd)
        if match:
            return self._write(line_range, cmd, match.group(2))
        match = READ_RE.match(cmd)
        if match:
            return self._read(match.group(1).strip())
        if cmd.startswith("!"):
            return self._filter(line_range, cmd[1:])
        if cmd.startswith(">") or cmd.startswith("<"):
            return self._shift(line_range, cmd[0])
        if REDO_RE.match(cmd):
            self._engine.redo()
            return None
        if UNDO_RE.match(cmd):
            self._engine.undo()
            return None
        match = NORMAL_RE.match(cmd)
        if match:
            return self._normal(match.group(2))
        match = SUBSTITUTE_RE.match(cmd)
        if match:
            return self._substitute(line_range, *match.groups())
        match = REPEAT_SUBSTITUTE_RE.match(cmd)
        if match:
            return self._repeat_substitute(line_range, bool(match.group(1)), match.group(2))
        match = SET_RE.match(cmd)
        if match:
            return self._set((match.group(2) or "").strip())
        if HISTORY_RE.match(cmd):
            return self._history()
        raise ExCommandError(f"E492: Not an editor command: {command}")

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    def _goto_line(self, line_range: LineRange) -> None:
        if not line_range.given:
            return None
        line = max(1, min(line_range.end if line_range.end != -1 else line_range.begin, self._doc.line_count))
        self._engine.set_position(self._doc.first_position_in_line(line))
        self._engine.set_target_column()
        return None

    def _quit(self, cmd: str) -> None:
        force = cmd.endswith("!")
        if "a" in cmd:
            self._engine.host.quit_all_requested(force)
        else:
            self._engine.host.quit_requested(force)
        return None

    def _delete(self, line_range: LineRange, register: str | None) -> None:
        first, last = self._lines(line_range)
        region = self._line_region(first, last, SubMode.DELETE)
        name = register[0] if register else UNNAMED_REGISTER
        result = operator_delete(self._doc, region, self._engine.registers, name)
        self._engine.set_position(result.position)
        self._engine.leave_visual_mode()
        return None

    def _write(self, line_range: LineRange, cmd: str, argument: str | None) -> str:
        engine = self._engine
        prefix = cmd.split(" ", 1)[0]
        forced = "!" in prefix
        quit_after = "q" in prefix or prefix.startswith("x")
        quit_all = "a" in prefix

        file_name = (argument or "").strip() or engine.state.current_file_name
        if not file_name:
            raise ExCommandError("E32: No file name")
        path = Path(file_name)
        exists = path.exists()
        if exists and not forced and (line_range.given or file_name != engine.state.current_file_name):
            raise ExCommandError(f"File '{file_name}' exists (add ! to override)")

        if line_range.given:
            first, last = self._lines(line_range)
            region = self._line_region(first, last)
            contents = self._doc.text_between(region.start, region.end)
        else:
            contents = self._doc.text

        if not engine.host.write_file_requested(file_name, contents):
            logger.debug("Writing %d characters to %s", len(contents), path)
            try:
                path.write_text(contents, encoding="utf-8")
            except OSError as e:
                logger.warning("Could not write %s: %s", path, e)
                raise BufferIOError(f"Cannot open file '{file_name}' for writing") from e
        if not engine.state.current_file_name:
            engine.state.current_file_name = file_name

        new = "" if exists else "[New] "
        message = f'"{file_name}" {new}{len(contents.splitlines())}L, {len(contents)}C written'
        if quit_all:
            engine.host.quit_all_requested(forced)
        elif quit_after:
            engine.host.quit_requested(forced)
        return message

    def _read(self, file_name: str) -> str:
        path = Path(file_name)
        logger.debug("Reading %s", path)
        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            raise BufferIOError(f"E484: Can't open file {file_name}") from e
        self._doc.buffer.set_text(contents)
        self._engine.state.current_file_name = file_name
        self._engine.set_position(0)
        self._engine.set_target_column()
        return f'"{file_name}" {len(contents.splitlines())}L, {len(contents)}C'

    def _filter(self, line_range: LineRange, shell_command: str) -> str:
        first, last = self._lines(line_range)
        doc = self._doc
        region = self._line_region(first, last)
        text = doc.text_between(region.start, region.end)
        output = self._engine.host.run_filter(shell_command, text)
        if region.end == doc.length and not text.endswith("\n") and output.endswith("\n"):
            output = output[:-1]
        doc.begin_edit_block()
        try:
            doc.replace(region.start, region.end, output)
        finally:
            doc.end_edit_block()
        self._engine.leave_visual_mode()
        self._engine.set_position(doc.first_position_in_line(min(first, doc.line_count)))
        return f"{last - first + 1} lines filtered"

    def _shift(self, line_range: LineRange, direction: str) -> str:
        first, last = self._lines(line_range)
        settings = self._engine.settings
        width = settings.value(SettingCode.SHIFT_WIDTH)
        if direction == ">":
            shift_lines_right(self._doc, first, last, width)
        else:
            shift_lines_left(self._doc, first, last, width, settings.value(SettingCode.TAB_STOP))
        self._engine.leave_visual_mode()
        self._engine.set_position(self._doc.first_non_blank(self._doc.first_position_in_line(first)))
        return f"{last - first + 1} lines {direction}ed 1 time"

    def _normal(self, keys: str) -> None:
        engine = self._engine
        engine.enter_command_mode()
        engine.replay(keys, 1)
        if engine.state.mode == Mode.INSERT:
            # An unfinished insert ends with the command
            engine.replay("\x1b", 1)
        return None

    def _substitute(
        self,
        line_range: LineRange,
        delimiter: str,
        needle: str,
        replacement: str,
        flags: str | None,
    ) -> None:
        first, last = self._lines(line_range)
        doc = self._doc
        flags = flags or ""
        self._last_substitute = (delimiter, needle, replacement, flags)
        needle = needle.replace("\\" + delimiter, delimiter)
        replacement = replacement.replace("\\" + delimiter, delimiter)

        anchored = needle.startswith("^")
        if anchored:
            needle = needle[1:]
        needle = needle.replace("\\<", r"\b").replace("\\>", r"\b")
        try:
            pattern = re.compile(needle, re.MULTILINE | (re.IGNORECASE if "i" in flags else 0))
        except re.error as e:
            raise ExCommandError(f"E383: Invalid search string: {needle}") from e
        template = vim_replacement(replacement)
        global_ = "g" in flags

        substitutions = 0
        last_changed = first
        line = first
        doc.begin_edit_block()
        try:
            while line <= last:
                position = doc.first_position_in_line(line)
                line_start = position
                line_end = doc.last_position_in_line(line)
                added_lines = 0
                while position <= line_end:
                    text = doc.text
                    if anchored:
                        match = pattern.match(text, position, line_end) if position == line_start else None
                    else:
                        match = pattern.search(text, position, line_end)
                    if match is None:
                        break
                    try:
                        new_text = match.expand(template)
                    except (re.error, IndexError) as e:
                        raise ExCommandError(f"E488: Invalid replacement: {replacement}") from e
                    doc.replace(match.start(), match.end(), new_text)
                    substitutions += 1
                    last_changed = line
                    added_lines += new_text.count("\n")
                    line_end += len(new_text) - (match.end() - match.start())
                    position = match.start() + len(new_text)
                    if match.end() == match.start():
                        position += 1
                    if not global_ or anchored:
                        break
                line += 1 + added_lines
                last += added_lines
        finally:
            doc.end_edit_block()

        if not substitutions:
            raise ExCommandError(f"E486: Pattern not found: {needle}")
        self._engine.leave_visual_mode()
        self._engine.set_position(doc.first_non_blank(doc.first_position_in_line(min(last_changed, doc.line_count))))
        self._engine.set_target_column()
        return None

    def _repeat_substitute(self, line_range: LineRange, keep_flags: bool, flags: str) -> None:
        """``:&`` runs the last substitute again; ``:&&`` also keeps its flags."""
        if self._last_substitute is None:
            raise ExCommandError("E35: No previous regular expression")
        delimiter, needle, replacement, last_flags = self._last_substitute
        if keep_flags:
            flags = last_flags + flags
        return self._substitute(line_range, delimiter, needle, replacement, flags)

    def _set(self, argument: str) -> str | None:
        engine = self._engine
        if not argument:
            engine.host.settings_dialog_requested()
            return None
        settings = engine.settings
        if argument.endswith("?"):
            item = settings.item(argument[:-1])
            if item is None:
                raise ExCommandError(f"E518: Unknown option: {argument}")
            return item.display()
        item = settings.item(argument)
        if item is not None:
            if item.is_bool:
                item.set_value(True)
                return None
            return item.display()
        if argument.startswith("no"):
            item = settings.item(argument[2:])
            if item is not None and item.is_bool:
                item.set_value(False)
                return None
        if "=" in argument:
            name, value = argument.split("=", 1)
            item = settings.item(name)
            if item is not None:
                try:
                    item.set_value(value)
                except ValueError:
                    raise ExCommandError(f"E521: Number required after =: {argument}") from None
                return None
        raise ExCommandError(f"E512: Unknown option: {argument}")

    def _history(self) -> None:
        # Any argument is ignored: every form lists the command history.
        lines = ["#  command history"]
        for index, item in enumerate(self._engine.history.commands, start=1):
            lines.append(f"{index:<8} {item}")
        self._engine.host.extra_information_changed("\n".join(lines) + "\n")
        return None
