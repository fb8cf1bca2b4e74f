"""Raw terminal mode and the alternate screen.

WHY: Keys must reach the reader one byte at a time, without echo and
without Ctrl-C killing the process mid-frame, and the words should be
drawn on a scratch screen that disappears on exit. Whatever happens,
the user's terminal must be handed back exactly as it was found.

HOW: RawTerminal is a context manager. On enter it switches to the
alternate screen, hides the cursor, saves the tty attributes and clears
ICANON, ECHO and ISIG. On exit it restores the saved attributes, shows
the cursor and leaves the alternate screen.

RULES:
- Restoration runs on every exit path, including exceptions
- If configuration fails half way, the parts already applied are undone
- termios failures are raised as TerminalError
"""

from __future__ import annotations

import logging
import os
import termios
from typing import BinaryIO, List, Optional, Tuple

logger = logging.getLogger(__name__)

TTY_PATH = "/dev/tty"

ENTER_SCREEN = b"\033[?1049h\033[?25l"  # alternate screen, hide cursor
LEAVE_SCREEN = b"\033[?25h\033[?1049l"  # show cursor, main screen

# Index of the local modes in a termios attribute list
_LFLAG = 3


class TerminalError(Exception):
    """Raised when the terminal cannot be opened, queried or configured.

    Attributes:
        message: Short description suitable for an error line.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def open_tty(path: str = TTY_PATH) -> int:
    """Open the controlling terminal for reading and return its fd."""
    try:
        return os.open(path, os.O_RDONLY)
    except OSError as exc:
        raise TerminalError("cannot open {}: {}".format(path, exc.strerror)) from exc


def terminal_size(fd: int) -> Tuple[int, int]:
    """Return the (rows, columns) of the terminal behind *fd*."""
    try:
        size = os.get_terminal_size(fd)
    except OSError as exc:
        raise TerminalError("cannot get terminal size: {}".format(exc.strerror)) from exc
    return size.lines, size.columns


class RawTerminal:
    """Context manager holding the terminal in raw mode.

    Args:
        tty_fd: File descriptor of the controlling terminal.
        output: Binary stream the screen control sequences go to.
    """

    def __init__(self, tty_fd: int, output: BinaryIO) -> None:
        self.tty_fd = tty_fd
        self.output = output
        self._saved: Optional[List] = None

    def __enter__(self) -> "RawTerminal":
        self._write(ENTER_SCREEN)
        try:
            saved = termios.tcgetattr(self.tty_fd)
            raw = list(saved)
            raw[_LFLAG] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            termios.tcsetattr(self.tty_fd, termios.TCSAFLUSH, raw)
        except termios.error as exc:
            self._write(LEAVE_SCREEN)
            raise TerminalError("cannot configure terminal: {}".format(exc.args[-1])) from exc
        self._saved = saved
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        """Put the terminal back the way __enter__ found it."""
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        try:
            termios.tcsetattr(self.tty_fd, termios.TCSAFLUSH, saved)
        except termios.error:
            logger.warning("Failed to restore terminal attributes on fd %d", self.tty_fd)
        try:
            self._write(LEAVE_SCREEN)
        except OSError:
            logger.warning("Failed to leave the alternate screen")

    def _write(self, data: bytes) -> None:
        self.output.write(data)
        self.output.flush()
