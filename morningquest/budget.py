"""Time budget engine: how much slack remains before departure."""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from morningquest.clock import Clock, at_time_of_day, system_clock
from morningquest.models import Task

DEFAULT_WARNING_BUFFER_MINUTES = 10

# A departure more than this far in the past is taken to mean tomorrow.
ROLLOVER_WINDOW = timedelta(hours=12)


class UrgencyLevel(StrEnum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


def departure_instant(now: datetime, departure_time: str, rollover: bool = True) -> datetime:
    """Build the departure instant for ``now``.

    With ``rollover`` a time that lies more than 12 hours in the past is moved
    to the next day, so a run straddling midnight still counts down.
    """
    departure = at_time_of_day(now, departure_time)
    if rollover and departure < now - ROLLOVER_WINDOW:
        departure += timedelta(days=1)
    return departure


def planned_minutes(tasks: Iterable[Task]) -> int:
    """Total planned duration of a task list."""
    return sum(t.duration_minutes for t in tasks)


def estimated_finish(now: datetime, tasks: Iterable[Task]) -> datetime:
    """When the routine would end if started at ``now``."""
    return now + timedelta(minutes=planned_minutes(tasks))


@dataclass(frozen=True)
class TimeBudget:
    """A snapshot of the urgency meter."""

    level: UrgencyLevel
    minutes_to_departure: float
    remaining_task_minutes: float
    buffer_minutes: float

    @property
    def diff_minutes(self) -> int:
        """Whole buffer minutes, floored (negative when behind)."""
        return math.floor(self.buffer_minutes)

    @property
    def fill_ratio(self) -> float:
        """Share of the time left that the remaining tasks need, capped at 1."""
        if self.minutes_to_departure <= 0:
            return 1.0
        return min(1.0, self.remaining_task_minutes / self.minutes_to_departure)


class TimeBudgetCalculator:
    """Derives a TimeBudget purely from the current time and task state."""

    def __init__(
        self,
        departure_time: str,
        warning_buffer_minutes: float = DEFAULT_WARNING_BUFFER_MINUTES,
        clock: Clock = system_clock,
    ) -> None:
        self.departure_time = departure_time
        self.warning_buffer_minutes = warning_buffer_minutes
        self._clock = clock

    def classify(self, buffer_minutes: float) -> UrgencyLevel:
        if buffer_minutes < 0:
            return UrgencyLevel.DANGER
        if buffer_minutes < self.warning_buffer_minutes:
            return UrgencyLevel.WARNING
        return UrgencyLevel.SAFE

    def minutes_to_departure(self, now: datetime | None = None) -> float:
        now = now or self._clock()
        departure = departure_instant(now, self.departure_time)
        return (departure - now).total_seconds() / 60

    def evaluate(
        self,
        tasks: Iterable[Task],
        completed_ids: Collection[str],
        now: datetime | None = None,
    ) -> TimeBudget:
        """Budget for a run where any incomplete task may still be done."""
        remaining = sum(t.duration_minutes for t in tasks if t.id not in completed_ids)
        return self._build(float(remaining), now)

    def evaluate_ordered(
        self,
        active_remaining_seconds: float,
        upcoming_tasks: Iterable[Task],
        now: datetime | None = None,
    ) -> TimeBudget:
        """Budget for a strictly ordered timer: the active countdown plus later tasks."""
        remaining = max(0.0, active_remaining_seconds) / 60 + planned_minutes(upcoming_tasks)
        return self._build(remaining, now)

    def _build(self, remaining_task_minutes: float, now: datetime | None) -> TimeBudget:
        minutes_left = self.minutes_to_departure(now)
        buffer = minutes_left - remaining_task_minutes
        return TimeBudget(
            level=self.classify(buffer),
            minutes_to_departure=minutes_left,
            remaining_task_minutes=remaining_task_minutes,
            buffer_minutes=buffer,
        )
