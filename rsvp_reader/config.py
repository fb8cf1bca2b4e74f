"""Configuration constants, rate parsing, and .env loading.

WHY: The reading rate is the one user-tunable value of a session. It
comes from the environment so the reader can be scripted without flags,
and the parsing rules (unit suffixes, fallbacks) are plain data rather
than logic buried in the CLI.

HOW: python-dotenv loads the .env file on import. Constants are module
level values. parse_rate() turns a rate string into words per minute and
get_word_rate() applies it to the RSVP_RATE variable.

RULES:
- DEFAULT_RATE is 120 words per minute (2 Hz)
- RATE_DELTA is the step of the "+" and "-" keys (10 wpm)
- A rate must start with a digit; anything unparseable or non-positive
  falls back to DEFAULT_RATE
- Unit suffixes are matched case-insensitively after optional spaces
- Real environment variables take precedence over .env entries
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from the working directory, never overriding the real environment
load_dotenv()

_DIGITS = "0123456789"


def _positive_int_env(name: str, fallback: int) -> int:
    """Read a positive integer from the environment, or return *fallback*."""
    raw = os.getenv(name, "").strip()
    if not raw or raw.strip(_DIGITS) or int(raw) <= 0:
        return fallback
    return int(raw)


def _log_level_env(name: str, fallback: str) -> str:
    """Read a logging level name from the environment, or return *fallback*."""
    level = os.getenv(name, "").strip().upper()
    if not level or not isinstance(logging.getLevelName(level), int):
        return fallback
    return level


# ---------------------------------------------------------------------------
# Rate defaults
# ---------------------------------------------------------------------------

DEFAULT_RATE = _positive_int_env("RSVP_DEFAULT_RATE", 120)
"""Words per minute used when RSVP_RATE is unset or invalid."""

RATE_DELTA = _positive_int_env("RSVP_RATE_DELTA", 10)
"""Words per minute added or removed by one "+" / "-" keypress."""

RATE_ENV_VAR = "RSVP_RATE"

# ---------------------------------------------------------------------------
# Rate unit suffixes → multiplier to words per minute
# ---------------------------------------------------------------------------

RATE_UNITS: dict[str, int] = {
    "": 1,
    "wpm": 1,
    "w/m": 1,
    "/m": 1,
    "wpmin": 1,
    "w/min": 1,
    "/min": 1,
    "wps": 60,
    "w/s": 60,
    "/s": 60,
    "wpsec": 60,
    "w/sec": 60,
    "/sec": 60,
    "hz": 60,
}

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_FILE: Optional[str] = os.getenv("RSVP_LOG_FILE") or None
LOG_LEVEL = _log_level_env("RSVP_LOG_LEVEL", "WARNING")


def parse_rate(value: Optional[str]) -> int:
    """Parse a rate string such as ``"150"``, ``"2hz"`` or ``"90 WPM"``.

    WHY: Rates are natural to express either per minute or per second.
    Accepting both with a handful of spellings keeps the variable
    forgiving without inventing a config format.

    HOW: Take the leading run of decimal digits as the number, skip
    spaces, then look up the remainder (lowercased) in RATE_UNITS.

    RULES:
    - None, empty, or not starting with a digit → DEFAULT_RATE
    - Number of zero → DEFAULT_RATE
    - Unknown suffix → DEFAULT_RATE
    - Per-second units multiply by 60

    Args:
        value: The raw rate string, or None when unset.

    Returns:
        The rate in words per minute, always positive.
    """
    if not value or value[0] not in _DIGITS:
        return DEFAULT_RATE

    end = 0
    while end < len(value) and value[end] in _DIGITS:
        end += 1
    rate = int(value[:end])
    if rate <= 0:
        return DEFAULT_RATE

    suffix = value[end:].lstrip(" ").lower()
    multiplier = RATE_UNITS.get(suffix)
    if multiplier is None:
        return DEFAULT_RATE
    return rate * multiplier


def get_word_rate() -> int:
    """Return the configured rate from RSVP_RATE in words per minute."""
    return parse_rate(os.getenv(RATE_ENV_VAR))
