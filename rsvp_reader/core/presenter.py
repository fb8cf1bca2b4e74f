"""The presentation loop: pacing, key handling and rendering.

WHY: This is the heart of the reader. Words must appear at a steady
rate, yet the user can speed up, slow down, pause, step forward or back,
or quit at any moment, and the terminal may be resized mid-session. All
of that has to work from a single thread that sleeps in one place.

HOW: Three layers, from pure to effectful:
  dispatch()     — pure function (state, event) → Step(new state, action)
  render_frame() — pure function building the bytes of one screen
  Presenter      — the loop that waits for events, applies dispatch()
                   and carries out its action on the timer and output

RULES:
- state.index is the next word to show; showing word i sets index to i + 1
- "+" / "-" change the rate by RATE_DELTA, never below 1, without advancing
- "p" toggles pause; while paused the timer stays disarmed
- "q" and end of input stop at once
- Arrow down/right advance one word; arrow up/left go back two words
  (clamped at 0) so the previous word is shown again
- Every other byte is ignored and nothing is redrawn
- After the last word the timer is disarmed and one more key is awaited
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import BinaryIO, Callable, Optional, Tuple

from rsvp_reader.config import DEFAULT_RATE, RATE_DELTA
from rsvp_reader.core.events import (
    ByteReceived,
    EndOfInput,
    Event,
    EventSource,
    Resized,
    Timer,
    TimerExpired,
)
from rsvp_reader.core.words import WordSequence

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_ROWS = 30
DEFAULT_COLUMNS = 80

ESC = 0x1B

CLEAR_SCREEN = b"\033[H\033[2J"
REVERSE_VIDEO_ON = b"\033[7m"
REVERSE_VIDEO_OFF = b"\033[27m"

# Final bytes of the arrow key escape sequences (ESC [ x or ESC O x)
_FORWARD_KEYS = frozenset(b"BC")   # down, right
_BACKWARD_KEYS = frozenset(b"AD")  # up, left

# Escape sequence decoder states
_ESC_NONE = 0
_ESC_START = 1     # ESC seen
_ESC_SEQUENCE = 2  # ESC [ or ESC O seen, waiting for the final byte


def clamp_rate(rate: int) -> int:
    """Keep a rate at 1 word per minute or above."""
    return rate if rate > 0 else 1


def rate_to_interval(rate: int) -> Tuple[int, int]:
    """Convert words per minute into a (seconds, microseconds) interval.

    The interval is 60,000,000 / rate microseconds, truncated.
    """
    usec = 60_000_000 // clamp_rate(rate)
    return usec // 1_000_000, usec % 1_000_000


# ---------------------------------------------------------------------------
# State and dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PresentationState:
    """The runtime cursor of one display session.

    Attributes:
        index: Next word to show; equals the word count when finished.
        rate: Current rate in words per minute (at least 1).
        paused: True while automatic advancement is frozen.
        escape: Progress through an arrow key escape sequence.
    """

    index: int = 0
    rate: int = DEFAULT_RATE
    paused: bool = False
    escape: int = _ESC_NONE


class Action(enum.Enum):
    """What the loop must do after a dispatch."""

    WAIT = "wait"      # nothing visible changes; wait for the next event
    REARM = "rearm"    # restart the countdown at the current rate
    DISARM = "disarm"  # stop the countdown
    SHOW = "show"      # render Step.word, then arm for the next one
    STOP = "stop"      # end the session


@dataclass(frozen=True)
class Step:
    state: PresentationState
    action: Action
    word: Optional[int] = None


def _advance(state: PresentationState, word_count: int) -> Step:
    if state.index >= word_count:
        return Step(state, Action.STOP)
    return Step(replace(state, index=state.index + 1), Action.SHOW, state.index)


def _rewind(state: PresentationState, word_count: int) -> Step:
    if word_count == 0:
        return Step(state, Action.WAIT)
    index = min(max(state.index - 2, 0), word_count - 1)
    return Step(replace(state, index=index + 1), Action.SHOW, index)


def _dispatch_byte(
    state: PresentationState,
    byte: int,
    word_count: int,
    rate_delta: int,
) -> Step:
    if state.escape == _ESC_START:
        if byte in b"[O":
            return Step(replace(state, escape=_ESC_SEQUENCE), Action.WAIT)
        # Not a sequence after all; treat the byte as an ordinary key
        state = replace(state, escape=_ESC_NONE)
    elif state.escape == _ESC_SEQUENCE:
        if 0x20 <= byte <= 0x3F:
            # Parameter and intermediate bytes, e.g. "1;5" in ESC [ 1;5 A
            return Step(state, Action.WAIT)
        state = replace(state, escape=_ESC_NONE)
        if byte in _FORWARD_KEYS:
            return _advance(state, word_count)
        if byte in _BACKWARD_KEYS:
            return _rewind(state, word_count)
        return Step(state, Action.WAIT)

    if byte == ESC:
        return Step(replace(state, escape=_ESC_START), Action.WAIT)

    if byte in b"+-":
        delta = rate_delta if byte == ord("+") else -rate_delta
        state = replace(state, rate=clamp_rate(state.rate + delta))
        return Step(state, Action.WAIT if state.paused else Action.REARM)

    if byte == ord("p"):
        state = replace(state, paused=not state.paused)
        return Step(state, Action.DISARM if state.paused else Action.REARM)

    if byte == ord("q"):
        return Step(state, Action.STOP)

    return Step(state, Action.WAIT)


def dispatch(
    state: PresentationState,
    event: Event,
    word_count: int,
    rate_delta: int = RATE_DELTA,
) -> Step:
    """Decide how the session reacts to one event.

    WHY: Keeping this a pure function lets every key and timer rule be
    tested without a terminal, signals or a clock.

    HOW: End of input stops. A timer expiry advances unless paused.
    Bytes go through a small escape sequence decoder, then the key table.
    Resize events change nothing here; the loop records them.

    RULES:
    - Never returns a word index outside 0 .. word_count - 1
    - Rate changes and pause toggles never move the index
    - A timer expiry while paused is ignored
    - A timer expiry leaves a half-read escape sequence in progress

    Args:
        state: The current presentation state.
        event: The event that woke the loop.
        word_count: Number of words in the document.
        rate_delta: Words per minute per "+" / "-" press.

    Returns:
        The new state, the action to perform and, for SHOW, the word.
    """
    if isinstance(event, EndOfInput):
        return Step(state, Action.STOP)
    if isinstance(event, TimerExpired):
        if state.paused:
            return Step(state, Action.WAIT)
        return _advance(state, word_count)
    if isinstance(event, ByteReceived):
        return _dispatch_byte(state, event.byte, word_count, rate_delta)
    return Step(state, Action.WAIT)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_frame(words: WordSequence, index: int, rows: int, cols: int) -> bytes:
    """Build the bytes that clear the screen and draw word *index*.

    The word goes on row (rows + 1) / 2, starting at column
    (cols - width) / 2 + 1, wrapped in reverse video when flagged.
    Word bytes are written verbatim.
    """
    word = words[index]
    row = (rows + 1) // 2
    column = max(cols - words.width(index), 0) // 2 + 1

    frame = CLEAR_SCREEN + b"\033[%d;%dH" % (row, column)
    if word.reverse_video:
        return frame + REVERSE_VIDEO_ON + words.text(index) + REVERSE_VIDEO_OFF
    return frame + words.text(index)


# ---------------------------------------------------------------------------
# Session loop
# ---------------------------------------------------------------------------


class Presenter:
    """Runs one interactive display session over a WordSequence.

    WHY: dispatch() decides, this class acts — it owns the side effects
    (timer, output stream, terminal size) and the one blocking wait.

    HOW: run() arms the timer, then repeatedly takes the next event from
    the event source, records resizes, feeds everything else through
    dispatch() and performs the returned action.

    RULES:
    - The terminal size is refreshed lazily, only before a render and
      only when a resize is pending (one is pending at start)
    - Output errors and timer errors propagate to the caller
    - The timer is always disarmed when run() returns normally
    """

    def __init__(
        self,
        words: WordSequence,
        events: EventSource,
        timer: Timer,
        output: BinaryIO,
        get_size: Optional[Callable[[], Tuple[int, int]]] = None,
        rate: int = DEFAULT_RATE,
        rate_delta: int = RATE_DELTA,
    ) -> None:
        self.words = words
        self.events = events
        self.timer = timer
        self.output = output
        self.get_size = get_size
        self.rate = clamp_rate(rate)
        self.rate_delta = rate_delta
        self.rows = DEFAULT_ROWS
        self.cols = DEFAULT_COLUMNS
        self.resize_pending = True

    def run(self) -> PresentationState:
        """Display the words until they run out or the user quits.

        Returns:
            The final presentation state.
        """
        word_count = len(self.words)
        state = PresentationState(rate=self.rate)
        logger.info("Session started: %d words at %d wpm", word_count, state.rate)

        if word_count:
            self.timer.arm(state.rate)

        while state.index < word_count:
            event = self.events.next_event()
            if isinstance(event, Resized):
                self.resize_pending = True
                continue

            step = dispatch(state, event, word_count, self.rate_delta)
            if step.state.rate != state.rate:
                logger.debug("Rate changed to %d wpm", step.state.rate)
            if step.state.paused != state.paused:
                logger.debug("Paused" if step.state.paused else "Resumed")
            state = step.state

            if step.action is Action.STOP:
                self.timer.disarm()
                logger.info("Session stopped at word %d of %d", state.index, word_count)
                return state
            if step.action is Action.REARM:
                self.timer.arm(state.rate)
            elif step.action is Action.DISARM:
                self.timer.disarm()
            elif step.action is Action.SHOW:
                self._show(step.word)
                if state.index < word_count and not state.paused:
                    self.timer.arm(state.rate)

        self.timer.disarm()
        self._wait_for_key()
        logger.info("Session finished after %d words", word_count)
        return state

    def _refresh_size(self) -> None:
        if not self.resize_pending:
            return
        self.resize_pending = False
        if self.get_size is not None:
            self.rows, self.cols = self.get_size()
            logger.debug("Terminal size is %dx%d", self.cols, self.rows)

    def _show(self, index: int) -> None:
        self._refresh_size()
        self.output.write(render_frame(self.words, index, self.rows, self.cols))
        self.output.flush()

    def _wait_for_key(self) -> None:
        # Keep the last word on screen until a key arrives
        while True:
            event = self.events.next_event()
            if isinstance(event, (ByteReceived, EndOfInput)):
                return
