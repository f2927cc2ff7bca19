"""Clock source and wall-clock time helpers."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime

# A clock returns the current local wall time. Injected everywhere timing matters.
Clock = Callable[[], datetime]

DEFAULT_DEPARTURE_TIME = "08:00"

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def system_clock() -> datetime:
    """Current local wall time."""
    return datetime.now()


def parse_hhmm(value: str) -> tuple[int, int] | None:
    """Parse an "HH:MM" string into (hour, minute), or None if malformed."""
    if not isinstance(value, str):
        return None
    match = _HHMM.match(value)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def normalize_hhmm(value: object, default: str = DEFAULT_DEPARTURE_TIME) -> str:
    """Return a zero-padded "HH:MM" string, falling back to ``default``."""
    parsed = parse_hhmm(value) if isinstance(value, str) else None
    if parsed is None:
        return default
    return f"{parsed[0]:02d}:{parsed[1]:02d}"


def at_time_of_day(now: datetime, value: str) -> datetime:
    """The instant on ``now``'s calendar day at the given "HH:MM" time."""
    hour, minute = parse_hhmm(value) or parse_hhmm(DEFAULT_DEPARTURE_TIME)  # type: ignore[misc]
    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def format_clock(moment: datetime) -> str:
    """Format an instant as "H:MM"."""
    return f"{moment.hour}:{moment.minute:02d}"


def format_mmss(seconds: float) -> str:
    """Human-readable duration as "M:SS"."""
    if seconds <= 0:
        return "0:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
