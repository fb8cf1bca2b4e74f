"""Word splitting and repeated-word highlighting.

WHY: The presenter shows one word per tick, so the document must be cut
into words first. Words that repeat their predecessor exactly ("the the")
would look like a frozen display; highlighting alternate repeats in
reverse video makes each new tick visible.

HOW: A first pass skips whitespace and records each maximal run of
non-whitespace bytes as a Word (start, length) into the buffer. A second
pass, left to right, flips reverse_video relative to the previous word
whenever the text repeats byte for byte.

RULES:
- Whitespace is space, form feed, newline, carriage return, tab, vertical tab
- An empty or all-whitespace buffer yields zero words
- word[0].reverse_video is always False
- word[i].reverse_video = not word[i-1].reverse_video when the texts are
  equal, else False (a non-repeat resets the highlight)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from rsvp_reader.core.words import Word, WordSequence

logger = logging.getLogger(__name__)

WHITESPACE = frozenset(b" \f\n\r\t\v")


def split_words(buffer: bytes) -> List[Word]:
    """Split *buffer* into words delimited by WHITESPACE.

    Args:
        buffer: The raw document bytes.

    Returns:
        Word objects in document order, all with reverse_video False.
    """
    words: List[Word] = []
    size = len(buffer)
    pos = 0

    while pos < size:
        # Skip leading whitespace
        while pos < size and buffer[pos] in WHITESPACE:
            pos += 1
        if pos == size:
            break

        start = pos
        while pos < size and buffer[pos] not in WHITESPACE:
            pos += 1
        words.append(Word(start=start, length=pos - start))

    return words


def mark_repeats(sequence: WordSequence) -> None:
    """Set reverse_video on words that repeat their predecessor.

    The flag alternates through a run of identical words and drops back
    to False on the first word that differs.
    """
    words = sequence.words
    if words:
        words[0].reverse_video = False
    for i in range(1, len(words)):
        if sequence.text(i) == sequence.text(i - 1):
            words[i].reverse_video = not words[i - 1].reverse_video
        else:
            words[i].reverse_video = False


def tokenize(buffer: Optional[bytes]) -> WordSequence:
    """Build a WordSequence from a document buffer.

    Args:
        buffer: The raw document bytes, or None for no document.

    Returns:
        A WordSequence owning *buffer* (empty bytes when None).
    """
    data = bytes(buffer) if buffer else b""
    sequence = WordSequence(buffer=data, words=split_words(data))
    mark_repeats(sequence)
    logger.debug("Tokenized %d bytes into %d words", len(data), len(sequence))
    return sequence
