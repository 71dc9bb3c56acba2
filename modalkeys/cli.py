#!/usr/bin/env python3
"""modalkeys - vi-style modal editing in the terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import Settings, load_settings
from .engine import Host, ModalEngine, StringBuffer
from .engine.keys import split_keys

logger = logging.getLogger(__name__)


class BatchHost(Host):
    """Host for headless runs: messages go to stderr, quitting stops the run."""

    def __init__(self) -> None:
        super().__init__()
        self.quit = False
        self.errors: list[str] = []

    def message_shown(self, text: str, error: bool) -> None:
        if error:
            self.errors.append(text)
        print(text, file=sys.stderr)

    def extra_information_changed(self, text: str) -> None:
        if text:
            print(text, file=sys.stderr)

    def quit_requested(self, force: bool) -> None:
        self.quit = True

    def quit_all_requested(self, force: bool) -> None:
        self.quit = True


def run_batch(path: Path, ex_commands: list[str], keys: str, in_place: bool, settings: Settings) -> int:
    """Apply ``keys`` and then each ex command to ``path``; print or save the result."""
    try:
        text = path.read_text(encoding="utf-8") if path.exists() else ""
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        return 1

    buffer = StringBuffer(text)
    host = BatchHost()
    engine = ModalEngine(buffer, host=host, settings=settings)
    engine.state.current_file_name = str(path)
    engine.attach()

    for key in split_keys(keys):
        engine.handle_key(key)
    for command in ex_commands:
        if host.quit:
            break
        logger.debug("Batch ex command: %s", command)
        engine.handle_command(command)
    engine.detach()

    if in_place:
        try:
            path.write_text(buffer.text, encoding="utf-8")
        except OSError as e:
            print(f"Cannot write {path}: {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(buffer.text)
    return 1 if host.errors else 0


def main() -> int:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="modalkeys",
        description="vi-style modal editing in the terminal",
    )
    parser.add_argument("file", nargs="?", help="File to edit")
    parser.add_argument(
        "--ex",
        "-c",
        action="append",
        default=[],
        metavar="COMMAND",
        help="Run an ex command without opening the editor (repeatable)",
    )
    parser.add_argument(
        "--keys",
        "-k",
        default="",
        help="Feed command-mode keys before the ex commands, e.g. '3dd' or 'Ahi<escape>'",
    )
    parser.add_argument(
        "--in-place",
        "-i",
        action="store_true",
        help="Write the batch result back to FILE instead of stdout",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()

    # Batch mode: no editor
    if args.ex or args.keys:
        if not args.file:
            parser.error("batch mode needs a FILE")
        return run_batch(Path(args.file), args.ex, args.keys, args.in_place, settings)

    from .app import ModalKeysApp

    app = ModalKeysApp(Path(args.file) if args.file else None, settings=settings)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
