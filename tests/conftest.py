"""Shared test fixtures for the rsvp_reader test suite.

WHY: The presenter tests need an event source, a timer and an output
stream that behave like the terminal ones without a tty, signals or a
clock. Centralizing the fakes here keeps every test module small.

HOW: ScriptedEvents returns a fixed list of events and then EndOfInput.
RecordingTimer logs every arm/disarm call. Fixtures build sequences from
literal byte strings.

RULES:
- Fakes never block; a drained script always ends with EndOfInput
- RecordingTimer.calls holds ("arm", rate) and ("disarm", None) tuples
"""

import io
from typing import List, Optional, Tuple

import pytest

from rsvp_reader.core.events import EndOfInput, Event
from rsvp_reader.core.tokenizer import tokenize


class ScriptedEvents:
    """Event source replaying a list of events."""

    def __init__(self, events: List[Event]) -> None:
        self.events = list(events)
        self.consumed = 0

    def next_event(self) -> Event:
        if not self.events:
            return EndOfInput()
        self.consumed += 1
        return self.events.pop(0)


class RecordingTimer:
    """Timer that records calls instead of setting an itimer."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Optional[int]]] = []

    def arm(self, rate: int) -> None:
        self.calls.append(("arm", rate))

    def disarm(self) -> None:
        self.calls.append(("disarm", None))

    @property
    def armed(self) -> bool:
        return bool(self.calls) and self.calls[-1][0] == "arm"


@pytest.fixture
def timer():
    return RecordingTimer()


@pytest.fixture
def output():
    return io.BytesIO()


@pytest.fixture
def go_go_stop():
    """The three-word document whose middle word repeats."""
    return tokenize(b"go go stop")
