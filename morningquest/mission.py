"""Mission phase state machine: wake up, free-order tasks, departure."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from morningquest.clock import Clock, system_clock
from morningquest.models import Task, TaskType
from morningquest.tracker import TaskElapsedTracker


class MissionPhase(StrEnum):
    WAKE_UP = "WAKE_UP"
    IN_PROGRESS = "IN_PROGRESS"
    READY_TO_DEPART = "READY_TO_DEPART"
    DEPARTED = "DEPARTED"


@dataclass(frozen=True)
class RunSnapshot:
    """Final state of a departed run, handed to outcome evaluation."""

    tasks: tuple[Task, ...]
    completed_task_ids: tuple[str, ...]
    elapsed_by_task: dict[str, int] = field(default_factory=dict)
    started_at: datetime | None = None
    departed_at: datetime | None = None

    @property
    def planned_seconds(self) -> int:
        return sum(t.duration_minutes for t in self.tasks) * 60

    @property
    def actual_seconds(self) -> int:
        return sum(self.elapsed_by_task.values())


class MissionRun:
    """One active run of a routine.

    The active task is never stored: it is always the first task, in list
    order, that has not been completed. ``depart`` is guarded and returns
    ``None`` unless the wake-up task and every flexible task are done.
    """

    def __init__(
        self,
        tasks: Iterable[Task],
        clock: Clock = system_clock,
        started_at: datetime | None = None,
    ) -> None:
        self.tasks: list[Task] = list(tasks)
        self._clock = clock
        self.started_at = started_at or clock()
        self.tracker = TaskElapsedTracker(clock, started_at=self.started_at)
        # dict keeps completion order while giving set semantics
        self._completed: dict[str, None] = {}
        self._departed_at: datetime | None = None

        self._by_id = {t.id: t for t in self.tasks}
        self.start_task = next((t for t in self.tasks if t.type == TaskType.START), None)
        self.end_task = next((t for t in self.tasks if t.type == TaskType.END), None)
        self.flexible_tasks = [t for t in self.tasks if t.type == TaskType.FLEXIBLE]

    # --- derived state ---

    @property
    def completed_task_ids(self) -> frozenset[str]:
        return frozenset(self._completed)

    def is_completed(self, task_id: str) -> bool:
        return task_id in self._completed

    @property
    def is_departed(self) -> bool:
        return self._departed_at is not None

    @property
    def is_wake_up_phase(self) -> bool:
        return self.start_task is not None and self.start_task.id not in self._completed

    @property
    def all_flexible_completed(self) -> bool:
        return all(t.id in self._completed for t in self.flexible_tasks)

    @property
    def can_depart(self) -> bool:
        return not self.is_departed and not self.is_wake_up_phase and self.all_flexible_completed

    @property
    def phase(self) -> MissionPhase:
        if self.is_departed:
            return MissionPhase.DEPARTED
        if self.is_wake_up_phase:
            return MissionPhase.WAKE_UP
        if self.all_flexible_completed:
            return MissionPhase.READY_TO_DEPART
        return MissionPhase.IN_PROGRESS

    @property
    def active_task(self) -> Task | None:
        if self.is_departed:
            return None
        return next((t for t in self.tasks if t.id not in self._completed), None)

    @property
    def active_task_id(self) -> str | None:
        task = self.active_task
        return task.id if task else None

    def remaining_tasks(self) -> list[Task]:
        return [t for t in self.tasks if t.id not in self._completed]

    def current_elapsed(self, now: datetime | None = None) -> int:
        """Live seconds spent on the active task so far."""
        return self.tracker.current_elapsed(self.active_task_id, now)

    # --- actions ---

    def complete_task(self, task_id: str, now: datetime | None = None) -> bool:
        """Mark a task done. Returns False when the call changed nothing.

        Repeats are no-ops. The end task is only completed through ``depart``.
        """
        task = self._by_id.get(task_id)
        if task is None or self.is_departed or task_id in self._completed:
            return False
        if task.type == TaskType.END:
            return False

        # Charge elapsed time to the task that was active before this action.
        self.tracker.record(self.active_task_id, now or self._clock())
        self._completed[task_id] = None
        return True

    def depart(self, now: datetime | None = None) -> RunSnapshot | None:
        """Finish the run. Rejected (None) unless the run is ready to depart."""
        if not self.can_depart:
            return None

        now = now or self._clock()
        self.tracker.record(self.active_task_id, now)
        if self.end_task is not None:
            self._completed[self.end_task.id] = None
        self._departed_at = now

        return RunSnapshot(
            tasks=tuple(self.tasks),
            completed_task_ids=tuple(self._completed),
            elapsed_by_task=dict(self.tracker.elapsed_by_task),
            started_at=self.started_at,
            departed_at=now,
        )
