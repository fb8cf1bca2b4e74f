"""Events delivered to the presenter's event loop.

WHY: The loop suspends in exactly one place — waiting for the next
thing to happen. A keypress, a timer expiry, a terminal resize or the
end of the input stream all wake it up. Modelling these as plain values
keeps the dispatch logic independent of signals and file descriptors.

HOW: Four small frozen dataclasses form a tagged variant. Event sources
(the real terminal, or a scripted fake in tests) return one per call.

RULES:
- ByteReceived carries exactly one input byte as an int (0-255)
- TimerExpired means the countdown for the current word ran out
- Resized means the terminal size must be refreshed before the next render
- EndOfInput means the control stream is closed; the session stops
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class ByteReceived:
    byte: int


@dataclass(frozen=True)
class TimerExpired:
    pass


@dataclass(frozen=True)
class Resized:
    pass


@dataclass(frozen=True)
class EndOfInput:
    pass


Event = Union[ByteReceived, TimerExpired, Resized, EndOfInput]


class EventSource(Protocol):
    """Anything that can block until the next event."""

    def next_event(self) -> Event:
        ...


class Timer(Protocol):
    """A one-shot countdown that produces TimerExpired when it runs out."""

    def arm(self, rate: int) -> None:
        ...

    def disarm(self) -> None:
        ...
