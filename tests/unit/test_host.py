"""Tests for the default host."""

from __future__ import annotations

import pytest

from modalkeys.engine import FilterError, Host, SelectionSpan
from modalkeys.engine.host import find_matching_bracket


class TestBracketMatching:
    """Tests for bracket matching."""

    @pytest.mark.parametrize(
        "text,position,expected",
        [
            ("(a)", 0, 2),
            ("(a)", 2, 0),
            ("((a))", 0, 4),
            ("[x{y}]", 2, 4),
            ("(a", 0, None),
            ("abc", 1, None),
            ("()", 5, None),
        ],
    )
    def test_find_matching_bracket(self, text, position, expected):
        assert find_matching_bracket(text, position) == expected

    def test_host_match_direction(self):
        """Forward matches land past the bracket, backward matches on it."""
        host = Host()
        assert host.match_bracket("(a)", 0) == (3, True)
        assert host.match_bracket("(a)", 2) == (0, False)
        assert host.match_bracket("abc", 0) is None


class TestDefaultHost:
    """Tests for the headless defaults."""

    def test_declines_delegations(self):
        """The default host leaves writes, indentation and find to the interpreter."""
        host = Host()
        assert host.write_file_requested("x.txt", "text") is False
        assert host.indent_region(1, 2, "") is False
        assert host.find_requested(reverse=False) is False

    def test_viewport(self):
        host = Host(lines_on_screen=10)
        assert host.lines_on_screen() == 10
        host.scroll_to_line(0)
        assert host.first_visible_line() == 1
        host.scroll_to_line(7)
        assert host.first_visible_line() == 7

    def test_selection_span_kind(self):
        assert SelectionSpan(0, 1).kind == "visual"


class TestRunFilter:
    """Tests for shell filters."""

    def test_filter_output(self):
        assert Host().run_filter("sort", "b\na\n") == "a\nb\n"

    def test_nonzero_exit(self):
        """A failing command raises with its exit status."""
        with pytest.raises(FilterError) as exc_info:
            Host().run_filter("exit 3", "")
        assert exc_info.value.message == "shell returned 3"
