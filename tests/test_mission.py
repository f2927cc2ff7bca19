"""Tests for the mission phase state machine."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from morningquest.mission import MissionPhase, MissionRun
from morningquest.models import Task, TaskType, default_tasks

T0 = datetime(2024, 5, 13, 7, 0, 0)


def _later(minutes: float) -> datetime:
    return T0 + timedelta(minutes=minutes)


@pytest.fixture
def run() -> MissionRun:
    # 1 = wake up (start), 2..5 flexible, 6 = leave home (end)
    return MissionRun(default_tasks(), clock=lambda: T0, started_at=T0)


def _finish_flexible(run: MissionRun, start_minute: float = 5) -> None:
    for offset, task_id in enumerate(["2", "3", "4", "5"]):
        run.complete_task(task_id, _later(start_minute + offset))


class TestPhases:
    def test_starts_in_wake_up(self, run: MissionRun) -> None:
        assert run.phase == MissionPhase.WAKE_UP
        assert run.is_wake_up_phase
        assert run.active_task_id == "1"

    def test_wake_up_moves_to_in_progress(self, run: MissionRun) -> None:
        assert run.complete_task("1", _later(2))
        assert run.phase == MissionPhase.IN_PROGRESS

    def test_ready_after_all_flexible(self, run: MissionRun) -> None:
        run.complete_task("1", _later(2))
        _finish_flexible(run)
        assert run.phase == MissionPhase.READY_TO_DEPART
        assert run.can_depart

    def test_no_flexible_tasks_is_ready_after_wake_up(self) -> None:
        tasks = [Task(id="a", type=TaskType.START), Task(id="b", type=TaskType.END)]
        run = MissionRun(tasks, started_at=T0)
        run.complete_task("a", _later(1))
        assert run.phase == MissionPhase.READY_TO_DEPART

    def test_departed(self, run: MissionRun) -> None:
        run.complete_task("1", _later(2))
        _finish_flexible(run)
        assert run.depart(_later(20)) is not None
        assert run.phase == MissionPhase.DEPARTED
        assert run.active_task is None


class TestCompleteTask:
    def test_repeat_is_noop(self, run: MissionRun) -> None:
        assert run.complete_task("1", _later(1))
        elapsed = dict(run.tracker.elapsed_by_task)
        assert not run.complete_task("1", _later(3))
        assert run.completed_task_ids == frozenset({"1"})
        assert run.tracker.elapsed_by_task == elapsed

    def test_unknown_id_is_rejected(self, run: MissionRun) -> None:
        assert not run.complete_task("nope", _later(1))
        assert run.completed_task_ids == frozenset()

    def test_end_task_only_via_depart(self, run: MissionRun) -> None:
        assert not run.complete_task("6", _later(1))

    def test_flexible_order_is_free(self, run: MissionRun) -> None:
        run.complete_task("1", _later(1))
        assert run.complete_task("4", _later(2))
        assert run.active_task_id == "2"

    def test_active_task_is_first_incomplete(self, run: MissionRun) -> None:
        run.complete_task("1", _later(1))
        run.complete_task("2", _later(2))
        run.complete_task("3", _later(3))
        assert run.active_task_id == "4"
        assert [t.id for t in run.remaining_tasks()] == ["4", "5", "6"]

    def test_time_charged_to_previously_active_task(self, run: MissionRun) -> None:
        run.complete_task("1", _later(3))
        # "2" is active while "4" is ticked off out of order
        run.complete_task("4", _later(8))
        assert run.tracker.elapsed_for("1") == 180
        assert run.tracker.elapsed_for("2") == 300
        assert run.tracker.elapsed_for("4") == 0

    def test_current_elapsed_is_live(self, run: MissionRun) -> None:
        run.complete_task("1", _later(1))
        assert run.current_elapsed(_later(3)) == 120


class TestDepart:
    def test_rejected_during_wake_up(self, run: MissionRun) -> None:
        assert run.depart(_later(1)) is None
        assert not run.is_departed

    def test_rejected_with_flexible_remaining(self, run: MissionRun) -> None:
        run.complete_task("1", _later(1))
        run.complete_task("2", _later(2))
        assert run.depart(_later(3)) is None
        assert run.phase == MissionPhase.IN_PROGRESS
        assert "6" not in run.completed_task_ids

    def test_snapshot(self, run: MissionRun) -> None:
        run.complete_task("1", _later(2))
        _finish_flexible(run)
        snapshot = run.depart(_later(20))
        assert snapshot is not None
        assert snapshot.completed_task_ids[-1] == "6"
        assert set(snapshot.completed_task_ids) == {t.id for t in run.tasks}
        assert snapshot.departed_at == _later(20)
        assert snapshot.planned_seconds == 50 * 60
        assert snapshot.actual_seconds == 20 * 60

    def test_trailing_interval_charged_to_end_task(self, run: MissionRun) -> None:
        run.complete_task("1", _later(2))
        _finish_flexible(run)
        snapshot = run.depart(_later(20))
        assert snapshot is not None
        assert snapshot.elapsed_by_task["6"] == (20 - 8) * 60

    def test_depart_twice_rejected(self, run: MissionRun) -> None:
        run.complete_task("1", _later(2))
        _finish_flexible(run)
        assert run.depart(_later(20)) is not None
        assert run.depart(_later(21)) is None
        assert not run.complete_task("2", _later(22))

    def test_without_end_task(self) -> None:
        tasks = [Task(id="a", type=TaskType.START), Task(id="b", type=TaskType.FLEXIBLE)]
        run = MissionRun(tasks, started_at=T0)
        run.complete_task("a", _later(1))
        run.complete_task("b", _later(2))
        snapshot = run.depart(_later(3))
        assert snapshot is not None
        assert snapshot.completed_task_ids == ("a", "b")
