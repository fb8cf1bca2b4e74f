"""Command-line interface for the RSVP reader.

WHY: Users run the reader from the terminal on a file or a pipe. The CLI
wires together document loading, tokenizing, terminal setup and the
presenter, and is the one place where failures become exit statuses.

HOW: Uses argparse to accept zero or one document path. Reads the whole
document before touching the terminal, then opens /dev/tty for keys,
enters raw mode and runs the Presenter inside nested context managers so
the terminal is restored on every path.

RULES:
- Positional argument: document path; "-" or absent reads standard input
- No options at all; "--" ends option parsing
- Keys come from the controlling terminal, never from standard input
- Exit 0 on normal completion, 1 on runtime errors, 2 on usage errors
- Error lines go to stderr as "<prog>: <message>"
- The rate comes from RSVP_RATE (see config.py)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import BinaryIO, List, Optional

from rsvp_reader.config import LOG_FILE, LOG_LEVEL, RATE_DELTA, get_word_rate
from rsvp_reader.core.presenter import Presenter
from rsvp_reader.core.tokenizer import tokenize
from rsvp_reader.core.words import WordSequence
from rsvp_reader.terminal import (
    IntervalTimer,
    RawTerminal,
    TerminalError,
    TerminalEventSource,
    open_tty,
    terminal_size,
)

logger = logging.getLogger(__name__)

PROG = "rsvp-reader"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _error(msg: str) -> None:
    """Print an error line tagged with the program name to stderr."""
    print("{}: {}".format(PROG, msg), file=sys.stderr, flush=True)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TerminalError):
        return exc.message
    if isinstance(exc, OSError) and exc.strerror:
        if exc.filename is not None:
            return "{}: {}".format(exc.filename, exc.strerror)
        return exc.strerror
    if isinstance(exc, MemoryError):
        return "out of memory"
    return str(exc) or type(exc).__name__


def _configure_logging() -> None:
    """Send logs to RSVP_LOG_FILE when set, else warnings to stderr."""
    if LOG_FILE:
        logging.basicConfig(
            filename=LOG_FILE,
            level=LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="{}: %(message)s".format(PROG))


def _standard_output() -> BinaryIO:
    """Return the binary standard output, failing if it is closed."""
    if sys.stdout is None:
        raise TerminalError("standard output is closed")
    try:
        os.fstat(sys.stdout.fileno())
    except OSError as exc:
        raise TerminalError("standard output is closed") from exc
    return sys.stdout.buffer


def load_document(path: str) -> bytes:
    """Read the whole document at *path*, or standard input for "-"."""
    if path == "-":
        if sys.stdin is None:
            return b""
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def run_session(words: WordSequence, rate: int, output: BinaryIO) -> None:
    """Run one presentation session on the controlling terminal.

    WHY: The session needs three resources acquired in order (tty fd,
    raw mode, signal handlers) and released in reverse order whatever
    happens in between.

    HOW: open_tty() then nested ``with`` blocks for RawTerminal and
    TerminalEventSource; the tty fd is closed in a finally block.
    """
    tty_fd = open_tty()
    try:
        with RawTerminal(tty_fd, output), TerminalEventSource(tty_fd) as events:
            presenter = Presenter(
                words,
                events,
                IntervalTimer(events),
                output,
                get_size=lambda: terminal_size(output.fileno()),
                rate=rate,
                rate_delta=RATE_DELTA,
            )
            presenter.run()
    finally:
        os.close(tty_fd)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: file (optional, default "-")
    - No other options, not even -h/--help
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Display a text file one word at a time (rapid serial "
                    "visual presentation) in the middle of the terminal.",
        add_help=False,
    )

    parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help='Text file to read; "-" or absent reads standard input.',
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Usage errors raise SystemExit(2) from argparse
    - Returns the exit status for every other outcome
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging()

    try:
        output = _standard_output()
        document = load_document(args.file)
        words = tokenize(document)
        rate = get_word_rate()
        logger.info("Loaded %s: %d words, %d wpm", args.file, len(words), rate)
        run_session(words, rate, output)
    except KeyboardInterrupt:
        _error("interrupted")
        return EXIT_ERROR
    except (OSError, TerminalError, MemoryError) as exc:
        logger.debug("Session failed", exc_info=True)
        _error(_describe(exc))
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
