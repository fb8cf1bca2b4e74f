"""Unit tests for the terminal package.

WHY: A terminal left in raw mode or on the alternate screen is the most
annoying failure a terminal program can have, and a lost SIGALRM would
freeze the reader. These tests pin down restoration and event delivery.

HOW: termios calls are monkeypatched so no real tty is needed. The event
source runs against an os.pipe() standing in for the tty, with real
SIGALRM and SIGWINCH delivery to this process.

RULES:
- Every test that installs signal handlers does so inside the context
  manager, so handlers are restored even when an assertion fails
- Timers use intervals of at least 10 ms
"""

import io
import os
import signal
import termios

import pytest

from rsvp_reader.core.events import ByteReceived, EndOfInput, Resized, TimerExpired
from rsvp_reader.terminal import events as terminal_events
from rsvp_reader.terminal import raw_mode
from rsvp_reader.terminal.events import IntervalTimer, TerminalEventSource
from rsvp_reader.terminal.raw_mode import (
    ENTER_SCREEN,
    LEAVE_SCREEN,
    RawTerminal,
    TerminalError,
    open_tty,
    terminal_size,
)

_ATTRS = [0, 0, 0, termios.ICANON | termios.ECHO | termios.ISIG | termios.IEXTEN, 38400, 38400, []]


@pytest.fixture
def fake_termios(monkeypatch):
    """Record tcsetattr calls and serve a fixed attribute list."""
    calls = []
    monkeypatch.setattr(raw_mode.termios, "tcgetattr", lambda fd: list(_ATTRS))
    monkeypatch.setattr(
        raw_mode.termios, "tcsetattr", lambda fd, when, attrs: calls.append((fd, when, list(attrs)))
    )
    return calls


@pytest.fixture
def tty_pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


class TestRawTerminal:
    """RawTerminal enters raw mode and always restores it."""

    def test_enter_and_exit(self, fake_termios):
        out = io.BytesIO()
        with RawTerminal(7, out):
            assert out.getvalue() == ENTER_SCREEN
        assert out.getvalue() == ENTER_SCREEN + LEAVE_SCREEN

        (fd, when, raw), (_, _, restored) = fake_termios
        assert fd == 7
        assert when == termios.TCSAFLUSH
        assert raw[3] == termios.IEXTEN
        assert restored == _ATTRS

    def test_restores_on_exception(self, fake_termios):
        out = io.BytesIO()
        with pytest.raises(RuntimeError):
            with RawTerminal(7, out):
                raise RuntimeError("boom")
        assert out.getvalue().endswith(LEAVE_SCREEN)
        assert fake_termios[-1][2] == _ATTRS

    def test_configuration_failure_leaves_screen(self, monkeypatch):
        def fail(fd):
            raise termios.error(25, "Inappropriate ioctl for device")

        monkeypatch.setattr(raw_mode.termios, "tcgetattr", fail)
        out = io.BytesIO()
        with pytest.raises(TerminalError, match="cannot configure terminal"):
            with RawTerminal(7, out):
                pass
        assert out.getvalue() == ENTER_SCREEN + LEAVE_SCREEN

    def test_restore_is_idempotent(self, fake_termios):
        out = io.BytesIO()
        terminal = RawTerminal(7, out)
        with terminal:
            terminal.restore()
        assert out.getvalue() == ENTER_SCREEN + LEAVE_SCREEN
        assert len(fake_termios) == 2

    def test_restore_failure_is_logged(self, monkeypatch, caplog):
        monkeypatch.setattr(raw_mode.termios, "tcgetattr", lambda fd: list(_ATTRS))
        calls = []

        def tcsetattr(fd, when, attrs):
            calls.append(attrs)
            if len(calls) > 1:
                raise termios.error(5, "Input/output error")

        monkeypatch.setattr(raw_mode.termios, "tcsetattr", tcsetattr)
        out = io.BytesIO()
        with RawTerminal(7, out):
            pass
        assert "Failed to restore terminal attributes" in caplog.text
        assert out.getvalue().endswith(LEAVE_SCREEN)


class TestTerminalQueries:
    """open_tty and terminal_size wrap OS errors in TerminalError."""

    def test_open_missing_tty(self, tmp_path):
        with pytest.raises(TerminalError, match="cannot open"):
            open_tty(str(tmp_path / "no-such-tty"))

    def test_open_readable_path(self, tmp_path):
        path = tmp_path / "fake-tty"
        path.write_bytes(b"")
        fd = open_tty(str(path))
        try:
            assert fd >= 0
        finally:
            os.close(fd)

    def test_terminal_size(self, monkeypatch):
        monkeypatch.setattr(raw_mode.os, "get_terminal_size", lambda fd: os.terminal_size((132, 43)))
        assert terminal_size(1) == (43, 132)

    def test_terminal_size_failure(self, tty_pipe):
        read_fd, _ = tty_pipe
        with pytest.raises(TerminalError, match="cannot get terminal size"):
            terminal_size(read_fd)


class TestIntervalTimer:
    """IntervalTimer sets a one-shot ITIMER_REAL countdown."""

    def test_arm_and_disarm(self, monkeypatch):
        calls = []
        monkeypatch.setattr(terminal_events.signal, "setitimer", lambda which, s: calls.append((which, s)))
        timer = IntervalTimer()
        timer.arm(120)
        timer.arm(7)
        timer.disarm()
        assert calls == [
            (signal.ITIMER_REAL, 0.5),
            (signal.ITIMER_REAL, pytest.approx(8.571428)),
            (signal.ITIMER_REAL, 0),
        ]

    def test_very_high_rate_still_fires(self, monkeypatch):
        calls = []
        monkeypatch.setattr(terminal_events.signal, "setitimer", lambda which, s: calls.append(s))
        IntervalTimer().arm(120_000_000)
        assert calls[0] > 0

    def test_arm_discards_pending_expiry(self, monkeypatch):
        monkeypatch.setattr(terminal_events.signal, "setitimer", lambda which, s: None)
        source = TerminalEventSource(-1)
        source.timer_pending = True
        IntervalTimer(source).arm(120)
        assert not source.timer_pending

    def test_itimer_error(self, monkeypatch):
        def fail(which, seconds):
            raise signal.ItimerError("bad timer")

        monkeypatch.setattr(terminal_events.signal, "setitimer", fail)
        with pytest.raises(TerminalError, match="cannot set timer"):
            IntervalTimer().disarm()


class TestTerminalEventSource:
    """next_event turns tty bytes and signals into core events."""

    def test_bytes_one_at_a_time(self, tty_pipe):
        read_fd, write_fd = tty_pipe
        os.write(write_fd, b"p+")
        with TerminalEventSource(read_fd) as source:
            assert source.next_event() == ByteReceived(ord("p"))
            assert source.next_event() == ByteReceived(ord("+"))

    def test_end_of_input(self, tty_pipe):
        read_fd, write_fd = tty_pipe
        os.close(write_fd)
        with TerminalEventSource(read_fd) as source:
            assert source.next_event() == EndOfInput()

    def test_pending_flags_come_before_input(self, tty_pipe):
        read_fd, write_fd = tty_pipe
        os.write(write_fd, b"q")
        with TerminalEventSource(read_fd) as source:
            source.timer_pending = True
            source.resize_pending = True
            assert source.next_event() == TimerExpired()
            assert source.next_event() == Resized()
            assert source.next_event() == ByteReceived(ord("q"))

    def test_real_timer_expiry_wakes_wait(self, tty_pipe):
        read_fd, _ = tty_pipe
        with TerminalEventSource(read_fd) as source:
            IntervalTimer(source).arm(6000)  # 10 ms
            assert source.next_event() == TimerExpired()

    def test_sigwinch_reports_resize(self, tty_pipe):
        read_fd, _ = tty_pipe
        with TerminalEventSource(read_fd) as source:
            os.kill(os.getpid(), signal.SIGWINCH)
            assert source.next_event() == Resized()

    def test_exit_restores_handlers_and_disarms(self, tty_pipe):
        read_fd, _ = tty_pipe
        before_alarm = signal.getsignal(signal.SIGALRM)
        before_winch = signal.getsignal(signal.SIGWINCH)
        with TerminalEventSource(read_fd) as source:
            IntervalTimer(source).arm(1)
            assert signal.getsignal(signal.SIGALRM) == source._on_alarm
        assert signal.getsignal(signal.SIGALRM) == before_alarm
        assert signal.getsignal(signal.SIGWINCH) == before_winch
        assert signal.getitimer(signal.ITIMER_REAL) == (0.0, 0.0)
