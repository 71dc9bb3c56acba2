"""Key normalization.

Keys travel through the interpreter as strings, using textual's naming
for special keys ("escape", "enter", "pageup", ...). Control chords are
spelled ``ctrl+<key>`` and Meta/Alt chords ``alt+<key>``.
"""

from __future__ import annotations

from enum import Flag, auto


class Modifiers(Flag):
    """Keyboard modifiers accompanying a key."""

    NONE = 0
    SHIFT = auto()
    CONTROL = auto()
    ALT = auto()


ESCAPE = "escape"
ENTER = "enter"
BACKSPACE = "backspace"
TAB = "tab"

# Keys that never reach the interpreter on their own
MODIFIER_KEYS = frozenset({"shift", "control", "ctrl", "alt", "meta", "super", "hyper"})

# Characters produced by replayed command strings
_REPLAY_NAMES = {
    "\x1b": ESCAPE,
    "\x08": BACKSPACE,
    "\r": ENTER,
}


def control(key: str) -> str:
    """Return the control-chord code for a key."""
    return f"ctrl+{key.lower()}"


def alt(key: str) -> str:
    """Return the Meta/Alt-chord code for a key."""
    return f"alt+{key.lower() if key.isalpha() else key}"


def is_control(key: str) -> bool:
    return key.startswith("ctrl+")


def normalize_key(key: str, modifiers: Modifiers = Modifiers.NONE, text: str = "") -> str:
    """Fold a raw key plus modifiers into the interpreter's key code.

    Control-modified keys become ``ctrl+x`` and Alt-modified keys ``alt+x``.
    A bare letter keeps the case of the text it produced, or is upper-cased
    when Shift is held.
    """
    if len(key) == 1:
        if modifiers & Modifiers.CONTROL:
            return control(key)
        if modifiers & Modifiers.ALT:
            return alt(key)
        if key.isalpha():
            if modifiers & Modifiers.SHIFT:
                return key.upper()
            if len(text) == 1 and text.isalpha():
                return text
        return key
    if key == "space":
        if modifiers & Modifiers.CONTROL:
            return "ctrl+space"
        return " "
    if modifiers & Modifiers.CONTROL and not is_control(key):
        return control(key)
    return key


def replay_key(char: str) -> str:
    """Map one character of a replayed command string to a key code."""
    return _REPLAY_NAMES.get(char, char)


def display_text(text: str) -> str:
    """Render control characters the way a command line shows them (^X)."""
    out = []
    for char in text:
        code = ord(char)
        if code < 32 and char != "\t":
            out.append("^" + chr(code + 64))
        else:
            out.append(char)
    return "".join(out)


def split_keys(text: str) -> list[str]:
    """Split a key string such as ``"3dd<escape>:w<enter>"`` into key codes.

    Names between angle brackets are passed through as key codes; a lone
    ``<`` that does not open a name is the character itself.
    """
    keys = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "<":
            end = text.find(">", index + 2)
            name = text[index + 1 : end] if end != -1 else ""
            if name and " " not in name and "<" not in name:
                keys.append(name)
                index = end + 1
                continue
        keys.append(replay_key(char))
        index += 1
    return keys
