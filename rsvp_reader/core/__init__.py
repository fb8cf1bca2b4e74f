"""Core tokenizing and presentation modules.

WHY: The core holds everything the reader decides — how a document
becomes words and how the session reacts to each event — and nothing
that talks to the operating system.

HOW: words.py defines the data model, tokenizer.py builds it from raw
bytes, events.py defines the event variant, presenter.py runs the loop.

RULES:
- No termios, signal or file descriptor code in this package
- The presenter receives its event source, timer and output from outside
"""
