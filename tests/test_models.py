"""Tests for persisted models and task type migration."""

from __future__ import annotations

import datetime as dt
import json

from morningquest.models import (
    DEFAULT_TASK_COLOR,
    ChildState,
    Medal,
    MissionLog,
    StampCard,
    Task,
    TaskIcon,
    TaskType,
    default_tasks,
    migrate_task_types,
)


def _untyped(count: int) -> list[Task]:
    return [Task(id=str(i), title=f"Task {i}", duration_minutes=5) for i in range(count)]


class TestTask:
    def test_numeric_id_becomes_string(self) -> None:
        task = Task.model_validate({"id": 3, "title": "Brush teeth"})
        assert task.id == "3"

    def test_duration_is_rounded_and_non_negative(self) -> None:
        assert Task(id="a", duration_minutes=4.6).duration_minutes == 5  # type: ignore[arg-type]
        assert Task(id="a", duration_minutes=-10).duration_minutes == 0
        assert Task(id="a", duration_minutes="soon").duration_minutes == 0  # type: ignore[arg-type]

    def test_unknown_icon_and_color_fall_back(self) -> None:
        task = Task.model_validate({"id": "a", "icon": "rocket", "color": "blue"})
        assert task.icon == TaskIcon.DEFAULT
        assert task.color == DEFAULT_TASK_COLOR

    def test_unknown_type_is_missing(self) -> None:
        assert Task.model_validate({"id": "a", "type": "bonus"}).type is None

    def test_camel_case_keys(self) -> None:
        task = Task.model_validate({"id": "a", "durationMinutes": 12})
        assert task.duration_minutes == 12
        assert "durationMinutes" in task.model_dump(by_alias=True)


class TestMigrateTaskTypes:
    def test_positional_defaults(self) -> None:
        types = [t.type for t in migrate_task_types(_untyped(4))]
        assert types == [TaskType.START, TaskType.FLEXIBLE, TaskType.FLEXIBLE, TaskType.END]

    def test_explicit_types_are_kept(self) -> None:
        tasks = _untyped(3)
        tasks[0] = tasks[0].model_copy(update={"type": TaskType.FLEXIBLE})
        types = [t.type for t in migrate_task_types(tasks)]
        assert types == [TaskType.FLEXIBLE, TaskType.FLEXIBLE, TaskType.END]

    def test_duplicate_start_is_demoted(self) -> None:
        tasks = [
            Task(id="a", type=TaskType.START),
            Task(id="b", type=TaskType.START),
            Task(id="c", type=TaskType.END),
        ]
        types = [t.type for t in migrate_task_types(tasks)]
        assert types == [TaskType.START, TaskType.FLEXIBLE, TaskType.END]

    def test_duplicate_end_is_demoted(self) -> None:
        tasks = [Task(id="a", type=TaskType.END), Task(id="b"), Task(id="c")]
        types = [t.type for t in migrate_task_types(tasks)]
        assert types == [TaskType.END, TaskType.FLEXIBLE, TaskType.FLEXIBLE]

    def test_single_task_becomes_start(self) -> None:
        assert migrate_task_types(_untyped(1))[0].type == TaskType.START

    def test_empty_list(self) -> None:
        assert migrate_task_types([]) == []

    def test_does_not_mutate_input(self) -> None:
        tasks = _untyped(3)
        migrate_task_types(tasks)
        assert all(t.type is None for t in tasks)


class TestDefaults:
    def test_default_routine_shape(self) -> None:
        tasks = default_tasks()
        assert len(tasks) == 6
        assert tasks[0].type == TaskType.START
        assert tasks[-1].type == TaskType.END
        assert tasks[-1].duration_minutes == 0
        assert sum(t.duration_minutes for t in tasks) == 50

    def test_new_state(self) -> None:
        state = ChildState()
        assert state.departure_time == "08:00"
        assert state.logs == []
        assert state.stamp_card.current_stamps == 0
        assert len(state.tasks) == 6


class TestChildStateLoading:
    def test_legacy_state_is_migrated(self) -> None:
        raw = {
            "name": "Mia",
            "tasks": [
                {"id": 1, "title": "Wake up", "durationMinutes": 5},
                {"id": 2, "title": "Eat", "durationMinutes": 15},
                {"id": 3, "title": "Go", "durationMinutes": 0},
            ],
            "departureTime": "7:45",
        }
        state = ChildState.model_validate(raw)
        assert [t.type for t in state.tasks] == [TaskType.START, TaskType.FLEXIBLE, TaskType.END]
        assert state.departure_time == "07:45"
        assert state.stamp_card.rank == 0

    def test_null_fields_become_defaults(self) -> None:
        state = ChildState.model_validate({"tasks": None, "logs": None, "stampCard": None})
        assert len(state.tasks) == 6
        assert state.logs == []
        assert state.stamp_card == StampCard()

    def test_bad_departure_time_falls_back(self) -> None:
        assert ChildState.model_validate({"departureTime": "25:99"}).departure_time == "08:00"

    def test_stamp_card_is_clamped(self) -> None:
        card = StampCard.model_validate({"currentStamps": -4, "totalRewards": "3", "rank": 80})
        assert card.current_stamps == 0
        assert card.total_rewards == 3
        assert card.rank == 34

    def test_loose_dates_are_accepted(self) -> None:
        log = MissionLog.model_validate({"date": "2024/5/3", "completedAt": "2024-05-03T07:55:00"})
        assert log.date == dt.date(2024, 5, 3)
        medal = Medal.model_validate(
            {"id": "m", "title": "t", "date": "2024-05-03T08:00:00Z", "rankAtTime": -1}
        )
        assert medal.date == dt.date(2024, 5, 3)
        assert medal.rank_at_time == 0

    def test_json_uses_camel_case(self) -> None:
        data = json.loads(ChildState(name="Mia").to_json())
        assert "departureTime" in data
        assert "stampCard" in data
        assert "currentStamps" in data["stampCard"]
        assert "durationMinutes" in data["tasks"][0]

    def test_round_trip(self) -> None:
        state = ChildState(name="Mia", departure_time="07:30")
        state.logs.append(
            MissionLog(
                date=dt.date(2024, 5, 13),
                completed_at=dt.datetime(2024, 5, 13, 7, 29),
                total_duration_seconds=3000,
                actual_duration_seconds=2700,
                is_success=True,
            )
        )
        loaded = ChildState.model_validate_json(state.to_json())
        assert loaded == state
