"""Word and WordSequence — the data model shared by tokenizer and presenter.

WHY: The presenter needs each word's bytes and whether it should be
shown in reverse video. Copying every word out of the document is not
needed: a word is fully described by where it sits in the buffer.

HOW: Word is an index range (start, length) into the document buffer
plus the reverse_video flag. WordSequence owns the buffer and the list
of words, so a word can never outlive the bytes it points into.

RULES:
- Words are stored in document order
- The first word never has reverse_video set
- Word text is the raw byte slice, with no normalization or case folding
- display_width() counts bytes that are not UTF-8 continuation bytes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List


def display_width(text: bytes) -> int:
    """Approximate the number of glyphs in a UTF-8 byte string.

    Counts every byte whose top two bits are not ``10``. This ignores
    wide and zero-width characters; it is only used for centering.
    """
    return sum(1 for byte in text if byte & 0xC0 != 0x80)


@dataclass
class Word:
    """One word of the document.

    Attributes:
        start: Offset of the first byte in the document buffer.
        length: Number of bytes in the word (always at least 1).
        reverse_video: True when the word repeats its predecessor and
            should be highlighted to make the repeat visible.
    """

    start: int
    length: int
    reverse_video: bool = False

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class WordSequence:
    """The words of one document together with the buffer they index.

    WHY: Keeping the buffer and the index ranges in one object ties the
    lifetime of the bytes to the lifetime of the words.

    HOW: ``text(i)`` slices the buffer for word *i*. The sequence also
    supports ``len()``, indexing and iteration over Word objects.
    """

    buffer: bytes
    words: List[Word] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.words)

    def __getitem__(self, index: int) -> Word:
        return self.words[index]

    def __iter__(self) -> Iterator[Word]:
        return iter(self.words)

    def text(self, index: int) -> bytes:
        """Return the bytes of word *index*."""
        word = self.words[index]
        return self.buffer[word.start:word.end]

    def texts(self) -> List[bytes]:
        """Return the bytes of every word, in order."""
        return [self.buffer[w.start:w.end] for w in self.words]

    def width(self, index: int) -> int:
        """Return the display width of word *index*."""
        return display_width(self.text(index))
