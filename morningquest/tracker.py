"""Per-task elapsed time accounting for an active run."""

from __future__ import annotations

import math
from datetime import datetime

from morningquest.clock import Clock, system_clock


class TaskElapsedTracker:
    """Accumulates the seconds actually spent on each task.

    Time is charged to whichever task is active between two actions. Stored
    accumulators only change on ``record``; live readings are derived from
    ``last_action_at`` so that a refresh tick never double counts.
    """

    def __init__(self, clock: Clock = system_clock, started_at: datetime | None = None) -> None:
        self._clock = clock
        self.last_action_at: datetime = started_at or clock()
        self.elapsed_by_task: dict[str, int] = {}

    def _seconds_since_last_action(self, now: datetime) -> int:
        delta = (now - self.last_action_at).total_seconds()
        # Clock regressions count as zero elapsed time.
        return max(0, math.floor(delta))

    def record(self, active_task_id: str | None, now: datetime | None = None) -> int:
        """Charge time since the last action to ``active_task_id``.

        Must be called with the task that was active *before* the action is
        applied. Returns the seconds charged.
        """
        now = now or self._clock()
        delta = self._seconds_since_last_action(now)
        if active_task_id is not None:
            self.elapsed_by_task[active_task_id] = self.elapsed_by_task.get(active_task_id, 0) + delta
        self.last_action_at = now
        return delta

    def current_elapsed(self, task_id: str | None, now: datetime | None = None) -> int:
        """Live elapsed seconds for the active task, without mutating state."""
        if task_id is None:
            return 0
        now = now or self._clock()
        return self.elapsed_by_task.get(task_id, 0) + self._seconds_since_last_action(now)

    def elapsed_for(self, task_id: str) -> int:
        return self.elapsed_by_task.get(task_id, 0)

    def total_elapsed(self) -> int:
        """Sum of all stored accumulators."""
        return sum(self.elapsed_by_task.values())
