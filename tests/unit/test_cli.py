"""Tests for the command-line entry point and batch mode."""

from __future__ import annotations

import sys

import pytest

from modalkeys import cli
from modalkeys.cli import run_batch
from modalkeys.config import Settings


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("b\na\nc\n", encoding="utf-8")
    return path


class TestRunBatch:
    """Tests for headless editing."""

    def test_ex_commands_to_stdout(self, text_file, capsys):
        """Ex commands run in order and the result goes to stdout."""
        assert run_batch(text_file, ["2d"], "", False, Settings()) == 0
        assert capsys.readouterr().out == "b\nc\n"
        assert text_file.read_text(encoding="utf-8") == "b\na\nc\n"

    def test_keys_before_commands(self, text_file, capsys):
        """Keys are fed before the ex commands."""
        assert run_batch(text_file, ["1d"], "dd", False, Settings()) == 0
        assert capsys.readouterr().out == "c\n"

    def test_in_place(self, text_file, capsys):
        assert run_batch(text_file, ["%!sort"], "", True, Settings()) == 0
        assert text_file.read_text(encoding="utf-8") == "a\nb\nc\n"
        assert capsys.readouterr().out == ""

    def test_error_sets_exit_status(self, text_file, capsys):
        """An error message makes the run fail and is reported on stderr."""
        assert run_batch(text_file, ["bogus"], "", False, Settings()) == 1
        assert "E492" in capsys.readouterr().err

    def test_quit_stops_commands(self, text_file, capsys):
        run_batch(text_file, ["q", "1d"], "", False, Settings())
        assert capsys.readouterr().out == "b\na\nc\n"

    def test_missing_file_starts_empty(self, tmp_path, capsys):
        assert run_batch(tmp_path / "new.txt", [], "ihello<escape>", False, Settings()) == 0
        assert capsys.readouterr().out == "hello"


class TestMain:
    """Tests for argument handling."""

    def test_batch_mode(self, text_file, capsys, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["modalkeys", str(text_file), "--ex", "1d", "-c", "1d"])
        monkeypatch.setattr(cli, "load_settings", Settings)
        assert cli.main() == 0
        assert capsys.readouterr().out == "c\n"

    def test_batch_mode_needs_file(self, monkeypatch):
        """--ex without a file is a usage error."""
        monkeypatch.setattr(sys, "argv", ["modalkeys", "--ex", "1d"])
        monkeypatch.setattr(cli, "load_settings", Settings)
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 2
