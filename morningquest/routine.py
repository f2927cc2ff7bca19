"""Per-profile routine manager: wires the mission engine to persisted state."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Literal

from morningquest.budget import TimeBudget, TimeBudgetCalculator, estimated_finish, planned_minutes
from morningquest.clock import Clock, normalize_hhmm, parse_hhmm, system_clock
from morningquest.config.settings import MorningQuestSettings
from morningquest.generation.comment import generate_reward_comment
from morningquest.generation.schedule import ScheduleGenerationError, generate_schedule
from morningquest.llm.base import LLMProvider
from morningquest.logging.events import EventLog
from morningquest.mission import MissionRun
from morningquest.models import (
    DEFAULT_TASK_COLOR,
    ChildState,
    Medal,
    MissionLog,
    Task,
    TaskIcon,
    TaskType,
    default_tasks,
    migrate_task_types,
)
from morningquest.outcome import evaluate_outcome
from morningquest.progression import ProgressionLedger
from morningquest.storage import ProfileDir, ProfileStore

# Two children share one device by default, each with an independent profile.
DEFAULT_PROFILES: dict[str, str] = {
    "child1": "Player 1",
    "child2": "Player 2",
}

NEW_TASK_TITLE = "New task"
NEW_TASK_MINUTES = 5


class AppMode(StrEnum):
    SETUP = "setup"
    ACTIVE = "active"
    REWARD = "reward"
    COMPLETED = "completed"


class RoutineManager:
    """Owns one child's state and at most one active MissionRun.

    Every mutation of the persisted state is followed by a full save. Actions
    that are not allowed in the current mode return False/None and change
    nothing.
    """

    def __init__(
        self,
        profile_dir: ProfileDir,
        settings: MorningQuestSettings,
        clock: Clock = system_clock,
        event_log: EventLog | None = None,
        default_name: str | None = None,
    ) -> None:
        self.profile_dir = profile_dir
        self.settings = settings
        self.event_log = event_log
        self._clock = clock
        self.store = ProfileStore(profile_dir)

        name = default_name if default_name is not None else DEFAULT_PROFILES.get(profile_dir.profile_id, "")
        self.state: ChildState = self.store.load(
            default_name=name,
            default_departure_time=settings.default_departure_time,
        )

        self.run: MissionRun | None = None
        self.is_bonus = False
        self.last_log: MissionLog | None = None
        # A reward left unclaimed by a previous session must still be claimed.
        self.mode = AppMode.REWARD if self.ledger.reward_pending else AppMode.SETUP

        if self.store.load_error:
            self._emit(
                "state.load_failed",
                "Saved state damaged, defaults used where unreadable",
                {"error": self.store.load_error, "backup": str(profile_dir.backup_path)},
            )

    @property
    def profile_id(self) -> str:
        return self.profile_dir.profile_id

    def now(self) -> datetime:
        """Current time from the injected clock."""
        return self._clock()

    @property
    def ledger(self) -> ProgressionLedger:
        return ProgressionLedger(
            self.state.stamp_card,
            threshold=self.settings.reward_threshold,
            overflow_policy=self.settings.overflow_policy,
        )

    @property
    def calculator(self) -> TimeBudgetCalculator:
        return TimeBudgetCalculator(
            self.state.departure_time,
            warning_buffer_minutes=self.settings.warning_buffer_minutes,
            clock=self._clock,
        )

    # --- persistence & events ---

    def _phase_label(self) -> str:
        if self.run is not None:
            return self.run.phase.value
        return self.mode.value.upper()

    def _emit(self, event_type: str, summary: str, data: dict | None = None) -> None:
        if self.event_log is not None:
            self.event_log.emit(self._phase_label(), event_type, summary, data)

    def report_error(self, event_type: str, summary: str, error: Exception) -> None:
        self._emit(event_type, f"{summary}: {error}", {"error": str(error), "type": type(error).__name__})

    def save(self) -> bool:
        ok = self.store.save(self.state)
        if not ok:
            self._emit("state.save_failed", "Could not save state", {"error": self.store.save_error})
        return ok

    # --- setup editing ---

    def _editable(self) -> bool:
        return self.mode in (AppMode.SETUP, AppMode.COMPLETED)

    def _index_of(self, task_id: str) -> int | None:
        return next((i for i, t in enumerate(self.state.tasks) if t.id == task_id), None)

    def _set_tasks(self, tasks: list[Task]) -> None:
        self.state.tasks = migrate_task_types(tasks)
        self.save()

    def rename(self, name: str) -> bool:
        if not self._editable() or not name.strip():
            return False
        self.state.name = name.strip()
        self.save()
        return True

    def set_departure_time(self, value: str) -> bool:
        """Change the departure time. Malformed times are rejected, keeping the old one."""
        if not self._editable() or parse_hhmm(value) is None:
            return False
        self.state.departure_time = normalize_hhmm(value)
        self.save()
        return True

    def add_task(
        self,
        title: str = NEW_TASK_TITLE,
        duration_minutes: int = NEW_TASK_MINUTES,
        icon: TaskIcon | str = TaskIcon.DEFAULT,
        color: str = DEFAULT_TASK_COLOR,
    ) -> Task | None:
        """Add a flexible task just before the departure task."""
        if not self._editable():
            return None
        task = Task(
            id=uuid.uuid4().hex[:8],
            title=title.strip() or NEW_TASK_TITLE,
            duration_minutes=duration_minutes,
            icon=icon,
            color=color,
            type=TaskType.FLEXIBLE,
        )
        tasks = list(self.state.tasks)
        end_index = next((i for i, t in enumerate(tasks) if t.type == TaskType.END), len(tasks))
        tasks.insert(end_index, task)
        self._set_tasks(tasks)
        return task

    def remove_task(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if not self._editable() or index is None:
            return False
        tasks = list(self.state.tasks)
        del tasks[index]
        self._set_tasks(tasks)
        return True

    def move_task(self, task_id: str, direction: Literal["up", "down"]) -> bool:
        index = self._index_of(task_id)
        if not self._editable() or index is None:
            return False
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self.state.tasks):
            return False
        tasks = list(self.state.tasks)
        tasks[index], tasks[target] = tasks[target], tasks[index]
        self._set_tasks(tasks)
        return True

    def edit_task(self, task_id: str, title: str | None = None, duration_minutes: int | None = None) -> bool:
        index = self._index_of(task_id)
        if not self._editable() or index is None:
            return False
        update: dict[str, object] = {}
        if title is not None and title.strip():
            update["title"] = title.strip()
        if duration_minutes is not None:
            update["duration_minutes"] = max(1, int(duration_minutes))
        if not update:
            return False
        tasks = list(self.state.tasks)
        tasks[index] = tasks[index].model_copy(update=update)
        self._set_tasks(tasks)
        return True

    def reset_tasks(self) -> bool:
        if not self._editable():
            return False
        self._set_tasks(default_tasks())
        return True

    def replace_tasks(self, tasks: list[Task]) -> bool:
        if not self._editable() or not tasks:
            return False
        self._set_tasks(list(tasks))
        return True

    async def generate_tasks(self, prompt: str, provider: LLMProvider) -> list[Task]:
        """Replace the routine with one proposed by the schedule assistant.

        Raises ScheduleGenerationError (after logging it) and leaves the task
        list untouched when generation fails.
        """
        if not self._editable():
            raise ScheduleGenerationError("Finish or abandon the current run before changing tasks.")
        try:
            tasks = await generate_schedule(prompt, provider)
        except ScheduleGenerationError as e:
            self._emit("schedule.failed", "Schedule generation failed", {"prompt": prompt, "error": str(e)})
            raise
        self.replace_tasks(tasks)
        self._emit(
            "schedule.generated",
            f"Generated {len(tasks)} tasks",
            {"prompt": prompt, "task_count": len(tasks)},
        )
        return tasks

    def planned_minutes(self) -> int:
        return planned_minutes(self.state.tasks)

    def estimated_finish(self, now: datetime | None = None) -> datetime:
        return estimated_finish(now or self._clock(), self.state.tasks)

    # --- running a mission ---

    def start_run(self) -> bool:
        if self.mode != AppMode.SETUP:
            return False
        self.run = MissionRun(self.state.tasks, clock=self._clock)
        self.is_bonus = False
        self.last_log = None
        self.mode = AppMode.ACTIVE
        self._emit(
            "run.start",
            f"Run started for {self.state.name}",
            {
                "task_count": len(self.state.tasks),
                "departure_time": self.state.departure_time,
                "planned_minutes": self.planned_minutes(),
            },
        )
        return True

    def budget(self, now: datetime | None = None) -> TimeBudget | None:
        """Current urgency meter, or None when no run is active."""
        if self.run is None:
            return None
        return self.calculator.evaluate(self.run.tasks, self.run.completed_task_ids, now)

    def complete_task(self, task_id: str) -> bool:
        if self.mode != AppMode.ACTIVE or self.run is None:
            return False
        now = self._clock()
        waking_up = self.run.is_wake_up_phase and self.run.start_task is not None and self.run.start_task.id == task_id
        if not self.run.complete_task(task_id, now):
            return False

        if waking_up:
            # Early risers earn the bonus: enough slack left when the wake-up task is done.
            budget = self.calculator.evaluate(self.run.tasks, self.run.completed_task_ids, now)
            self.is_bonus = budget.buffer_minutes >= self.settings.bonus_lead_minutes

        self._emit(
            "task.complete",
            f"Completed {task_id}",
            {
                "task_id": task_id,
                "elapsed_seconds": self.run.tracker.elapsed_for(task_id),
                "bonus": self.is_bonus,
            },
        )
        return True

    def depart(self) -> MissionLog | None:
        """Finish the run if allowed; records the log and stamps together."""
        if self.mode != AppMode.ACTIVE or self.run is None:
            return None
        now = self._clock()
        snapshot = self.run.depart(now)
        if snapshot is None:
            self._emit(
                "run.depart_rejected",
                "Departure rejected: tasks remaining",
                {"remaining": [t.id for t in self.run.remaining_tasks()]},
            )
            return None

        log = evaluate_outcome(snapshot, self.state.departure_time, is_bonus=self.is_bonus, now=now)
        ledger = self.ledger
        self.state.logs.append(log)
        stamps = ledger.apply_outcome(log)
        self.save()

        self.last_log = log
        self.run = None
        self.mode = AppMode.REWARD if ledger.reward_pending else AppMode.COMPLETED
        self._emit(
            "run.depart",
            "On time!" if log.is_success else "Late departure",
            {
                "stamps_added": stamps,
                "current_stamps": self.state.stamp_card.current_stamps,
                "actual_seconds": log.actual_duration_seconds,
            },
        )
        if self.mode == AppMode.REWARD:
            self._emit("reward.pending", "Stamp card full", {"rank": self.state.stamp_card.rank})
        return log

    def abandon(self, confirmed: bool) -> bool:
        """Drop the active run without recording anything. Requires confirmation."""
        if self.mode != AppMode.ACTIVE or not confirmed:
            return False
        completed = len(self.run.completed_task_ids) if self.run else 0
        self._emit("run.abandon", "Run abandoned", {"completed": completed})
        self.run = None
        self.mode = AppMode.SETUP
        return True

    # --- rewards ---

    async def reward_comment(self, provider: LLMProvider | None) -> str:
        def _log_failure(e: Exception) -> None:
            self._emit("comment.failed", "Reward comment generation failed", {"error": str(e)})

        return await generate_reward_comment(self.state.name, self.state.logs, provider, on_error=_log_failure)

    def acknowledge_reward(self, comment: str) -> Medal | None:
        if self.mode != AppMode.REWARD:
            return None
        medal = self.ledger.acknowledge_reward(comment, today=self._clock().date())
        if medal is None:
            return None
        self.save()
        self.mode = AppMode.COMPLETED
        self._emit(
            "reward.acknowledged",
            f"Ranked up to {medal.title}",
            {"rank": medal.rank_at_time, "medal_id": medal.id},
        )
        return medal

    def return_to_setup(self) -> bool:
        """Leave the results screen. Blocked while a run or a reward is pending."""
        if self.mode in (AppMode.ACTIVE, AppMode.REWARD):
            return False
        self.mode = AppMode.SETUP
        return True
