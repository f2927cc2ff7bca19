"""Turn a departed run into a mission log entry."""

from __future__ import annotations

from datetime import datetime

from morningquest.budget import departure_instant
from morningquest.mission import RunSnapshot
from morningquest.models import MissionLog


def is_on_time(now: datetime, departure_time: str) -> bool:
    """Departure counts as on time up to and including the departure minute.

    The deadline is taken on ``now``'s calendar day, without midnight rollover.
    """
    return now <= departure_instant(now, departure_time, rollover=False)


def evaluate_outcome(
    snapshot: RunSnapshot,
    departure_time: str,
    is_bonus: bool = False,
    now: datetime | None = None,
    track_actual: bool = True,
) -> MissionLog:
    """Build the immutable log entry for a finished run.

    ``is_bonus`` is decided upstream (early wake-up) and passed through as-is.
    """
    now = now or snapshot.departed_at or datetime.now()
    return MissionLog(
        date=now.date(),
        completed_at=now,
        total_duration_seconds=snapshot.planned_seconds,
        actual_duration_seconds=snapshot.actual_seconds if track_actual else None,
        is_success=is_on_time(now, departure_time),
        is_bonus=is_bonus,
    )
