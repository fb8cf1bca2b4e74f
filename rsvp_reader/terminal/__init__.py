"""Terminal plumbing — raw mode, signals, timer and key input.

WHY: The presenter needs keystrokes as they are typed, a countdown that
interrupts the wait for input, and resize notifications. These are all
POSIX terminal and signal concerns that the core should not know about.

HOW: raw_mode.py acquires and restores the terminal configuration as a
context manager. events.py turns tty bytes and SIGALRM / SIGWINCH into
core events and drives the ITIMER_REAL countdown.

RULES:
- Every acquisition is a context manager; restoration runs on all paths
- OS failures are raised as TerminalError with a short message
"""

from rsvp_reader.terminal.events import IntervalTimer, TerminalEventSource
from rsvp_reader.terminal.raw_mode import RawTerminal, TerminalError, open_tty, terminal_size

__all__ = [
    "IntervalTimer",
    "RawTerminal",
    "TerminalError",
    "TerminalEventSource",
    "open_tty",
    "terminal_size",
]
