"""Buffer search.

Search patterns are Python regular expressions with one piece of vi
syntax understood: a pattern wrapped in ``\\<`` ... ``\\>`` matches whole
words only. Patterns that do not compile as regular expressions are
searched for literally. Searches are case-sensitive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

BOTTOM_WRAP_MESSAGE = "search hit BOTTOM, continuing at TOP"
TOP_WRAP_MESSAGE = "search hit TOP, continuing at BOTTOM"
NOT_FOUND_MESSAGE = "E486: Pattern not found: "


@dataclass
class SearchMatch:
    start: int
    end: int
    wrapped: bool = False


@lru_cache(maxsize=64)
def compile_needle(needle: str) -> re.Pattern[str] | None:
    """Translate a vi search needle into a compiled pattern (None if empty)."""
    whole_words = needle.startswith("\\<") and needle.endswith("\\>")
    core = needle.replace("\\<", "").replace("\\>", "")
    if not core:
        return None
    try:
        re.compile(core)
    except re.error:
        core = re.escape(core)
    if whole_words:
        core = rf"\b(?:{core})\b"
    return re.compile(core)


def _find_forward(pattern: re.Pattern[str], text: str, start: int) -> re.Match[str] | None:
    if start > len(text):
        return None
    return pattern.search(text, start)


def _find_backward(pattern: re.Pattern[str], text: str, before: int) -> re.Match[str] | None:
    found = None
    for match in pattern.finditer(text):
        if match.start() >= before:
            break
        found = match
    return found


def search(text: str, needle: str, position: int, forward: bool) -> SearchMatch | None:
    """Find ``needle`` after (or before) ``position``, wrapping around once.

    A forward search starts one character right of ``position``. When the
    scan direction has no match, the search restarts from the opposite
    end of the text and the result is flagged as ``wrapped``.
    """
    pattern = compile_needle(needle)
    if pattern is None:
        return None
    if forward:
        match = _find_forward(pattern, text, position + 1)
    else:
        match = _find_backward(pattern, text, position)
    if match is not None:
        return SearchMatch(match.start(), match.end())
    if forward:
        match = _find_forward(pattern, text, 0)
    else:
        match = _find_backward(pattern, text, len(text) + 1)
    if match is not None:
        return SearchMatch(match.start(), match.end(), wrapped=True)
    return None


def match_spans(text: str, needle: str) -> list[tuple[int, int]]:
    """All non-empty match spans of ``needle`` in ``text``."""
    pattern = compile_needle(needle)
    if pattern is None:
        return []
    return [match.span() for match in pattern.finditer(text) if match.end() > match.start()]


def word_under_cursor(text: str, position: int) -> tuple[int, int] | None:
    """Span of the word (alphanumerics and underscore) at ``position``."""
    def is_word(index: int) -> bool:
        return 0 <= index < len(text) and (text[index].isalnum() or text[index] == "_")

    if not is_word(position):
        return None
    start = position
    while is_word(start - 1):
        start -= 1
    end = position
    while is_word(end):
        end += 1
    return start, end
