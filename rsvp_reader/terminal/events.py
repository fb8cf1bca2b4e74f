"""Key input, timer expiry and resize notifications from the real terminal.

WHY: The presenter sleeps in one blocking wait that must end when a key
arrives, when the word's countdown runs out, or when the terminal is
resized. Python retries interrupted reads by itself (PEP 475), so a
signal alone cannot break a blocking read; the wait has to watch for
signals explicitly.

HOW: TerminalEventSource installs SIGALRM and SIGWINCH handlers that set
two pending flags, and registers a non-blocking pipe with
signal.set_wakeup_fd(). next_event() checks the flags, then selects on
the tty and the wakeup pipe. A signal makes the pipe readable, the pipe
is drained, and the flags are turned into events on the next pass.
IntervalTimer arms and disarms a one-shot ITIMER_REAL countdown.

RULES:
- Pending timer expiry is reported before a pending resize, and both
  before any waiting input byte
- Exactly one event per call; a burst of keys is returned one byte at a time
- Arming or disarming the timer discards an expiry not yet reported
- On exit the timer is disarmed before the original handlers come back
"""

from __future__ import annotations

import logging
import os
import select
import signal
from typing import Dict, Optional

from rsvp_reader.core.events import ByteReceived, EndOfInput, Event, Resized, TimerExpired
from rsvp_reader.core.presenter import rate_to_interval
from rsvp_reader.terminal.raw_mode import TerminalError

logger = logging.getLogger(__name__)

_MIN_INTERVAL_S = 0.000001


class TerminalEventSource:
    """Context manager producing core events from a tty and two signals.

    Args:
        tty_fd: File descriptor of the controlling terminal in raw mode.
    """

    def __init__(self, tty_fd: int) -> None:
        self.tty_fd = tty_fd
        self.timer_pending = False
        self.resize_pending = False
        self._wakeup_read = -1
        self._wakeup_write = -1
        self._previous_wakeup_fd = -1
        self._previous_handlers: Dict[int, object] = {}

    def __enter__(self) -> "TerminalEventSource":
        self._wakeup_read, self._wakeup_write = os.pipe()
        os.set_blocking(self._wakeup_read, False)
        os.set_blocking(self._wakeup_write, False)
        self._previous_wakeup_fd = signal.set_wakeup_fd(
            self._wakeup_write, warn_on_full_buffer=False
        )
        for signo, handler in (
            (signal.SIGALRM, self._on_alarm),
            (signal.SIGWINCH, self._on_resize),
        ):
            self._previous_handlers[signo] = signal.signal(signo, handler)
        logger.debug("Watching tty fd %d for keys, timer and resize", self.tty_fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        signal.setitimer(signal.ITIMER_REAL, 0)
        for signo, handler in self._previous_handlers.items():
            signal.signal(signo, handler)
        self._previous_handlers.clear()
        signal.set_wakeup_fd(self._previous_wakeup_fd)
        for fd in (self._wakeup_read, self._wakeup_write):
            if fd >= 0:
                os.close(fd)
        self._wakeup_read = self._wakeup_write = -1

    def _on_alarm(self, signo, frame) -> None:
        self.timer_pending = True

    def _on_resize(self, signo, frame) -> None:
        self.resize_pending = True

    def _drain_wakeup(self) -> None:
        try:
            while os.read(self._wakeup_read, 64):
                pass
        except BlockingIOError:
            pass

    def next_event(self) -> Event:
        """Block until a key, timer expiry, resize or end of input."""
        while True:
            if self.timer_pending:
                self.timer_pending = False
                return TimerExpired()
            if self.resize_pending:
                self.resize_pending = False
                return Resized()

            readable, _, _ = select.select([self.tty_fd, self._wakeup_read], [], [])
            if self._wakeup_read in readable:
                self._drain_wakeup()
                continue
            if self.tty_fd in readable:
                data = os.read(self.tty_fd, 1)
                if not data:
                    return EndOfInput()
                return ByteReceived(data[0])


class IntervalTimer:
    """One-shot countdown on ITIMER_REAL, delivered as SIGALRM.

    Args:
        events: Event source whose pending expiry is discarded on every
            arm or disarm, so a stale expiry cannot skip a word.
    """

    def __init__(self, events: Optional[TerminalEventSource] = None) -> None:
        self.events = events

    def arm(self, rate: int) -> None:
        """Start a countdown of one word at *rate* words per minute."""
        seconds, microseconds = rate_to_interval(rate)
        # A zero interval would disarm the timer instead of firing at once
        self._set(max(seconds + microseconds / 1_000_000, _MIN_INTERVAL_S))

    def disarm(self) -> None:
        self._set(0)

    def _set(self, seconds: float) -> None:
        try:
            signal.setitimer(signal.ITIMER_REAL, seconds)
        except signal.ItimerError as exc:
            raise TerminalError("cannot set timer: {}".format(exc)) from exc
        if self.events is not None:
            self.events.timer_pending = False
