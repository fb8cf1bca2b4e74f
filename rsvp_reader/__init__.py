"""RSVP Reader — word-at-a-time speed reading in the terminal.

WHY: Rapid serial visual presentation (RSVP) shows a text one word at a
time in a fixed screen position, removing eye movement from reading. A
plain terminal is enough to do this for any text file.

HOW: Two-stage pipeline — tokenize (split the document into words and
flag immediate repeats) and present (a timer-driven event loop that
renders each word centered on the screen and reacts to keys).

RULES:
- The core (tokenizer, presenter) never touches the OS directly
- Terminal mode, signals and timers live in the terminal package
- The presenter's dispatch step is a pure function of (state, event)
"""

__version__ = "0.1.0"
