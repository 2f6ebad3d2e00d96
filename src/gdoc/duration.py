"""Go-style duration strings ("300ms", "1.5h", "2h45m")."""

from __future__ import annotations

import re
from datetime import timedelta

# Microseconds per unit; timedelta cannot represent anything finer.
_UNITS: dict[str, float] = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}

_TERM = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# Largest duration Go can represent (int64 nanoseconds), in microseconds.
MAX_MICROSECONDS = (2**63 - 1) / 1000


class InvalidDurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(value: str) -> timedelta:
    """Parse a duration string into a timedelta.

    The string is an optionally signed sequence of decimal numbers, each with
    an optional fraction and a unit suffix. Valid units are "ns", "us" (or
    "µs"), "ms", "s", "m", "h". The bare string "0" is also accepted.
    Surrounding whitespace is not allowed.
    """
    text = value
    if not text:
        raise InvalidDurationError(f"invalid duration {value!r}")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None:
            raise InvalidDurationError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise InvalidDurationError(f"invalid duration {value!r}")

    if total > MAX_MICROSECONDS:
        raise InvalidDurationError(f"invalid duration {value!r}: out of range")

    try:
        return timedelta(microseconds=sign * total)
    except OverflowError as e:
        raise InvalidDurationError(f"invalid duration {value!r}: out of range") from e
