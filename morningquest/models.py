"""Persisted routine models: tasks, mission logs, stamp card and child state."""

from __future__ import annotations

import datetime as dt
import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from morningquest.clock import DEFAULT_DEPARTURE_TIME, normalize_hhmm
from morningquest.ranks import clamp_rank

DEFAULT_TASK_COLOR = "#cbd5e1"

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_LOOSE_DATE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")


class TaskIcon(StrEnum):
    SUN = "sun"
    TOOTHBRUSH = "toothbrush"
    SHIRT = "shirt"
    UTENSILS = "utensils"
    BACKPACK = "backpack"
    DOOR_OPEN = "door-open"
    BOOK = "book"
    GAMEPAD = "gamepad"
    DEFAULT = "circle"


class TaskType(StrEnum):
    START = "start"
    FLEXIBLE = "flexible"
    END = "end"


class _Record(BaseModel):
    """Base for persisted records; JSON keys are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(_Record):
    """A single step of the morning routine."""

    id: str
    title: str = ""
    duration_minutes: int = 0
    icon: TaskIcon = TaskIcon.DEFAULT
    color: str = DEFAULT_TASK_COLOR
    type: TaskType | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        return str(v)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def clamp_duration(cls, v: object) -> int:
        try:
            minutes = round(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0
        return max(0, minutes)

    @field_validator("icon", mode="before")
    @classmethod
    def coerce_icon(cls, v: object) -> TaskIcon:
        if isinstance(v, str) and v in TaskIcon._value2member_map_:
            return TaskIcon(v)
        return TaskIcon.DEFAULT

    @field_validator("color", mode="before")
    @classmethod
    def coerce_color(cls, v: object) -> str:
        if isinstance(v, str) and _HEX_COLOR.match(v):
            return v
        return DEFAULT_TASK_COLOR

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: object) -> TaskType | None:
        # Unknown types are treated as missing and resolved by migrate_task_types.
        if isinstance(v, str) and v in TaskType._value2member_map_:
            return TaskType(v)
        return None


def migrate_task_types(tasks: list[Task]) -> list[Task]:
    """Fill in missing task types and enforce a single start and end task.

    Untyped tasks get a positional default: first is ``start``, last is
    ``end``, anything else is ``flexible``. A second ``start`` or ``end``
    is demoted to ``flexible``.
    """
    last = len(tasks) - 1
    seen_start = False
    seen_end = False
    migrated: list[Task] = []
    for index, task in enumerate(tasks):
        task_type = task.type
        if task_type is None:
            if index == 0:
                task_type = TaskType.START
            elif index == last:
                task_type = TaskType.END
            else:
                task_type = TaskType.FLEXIBLE

        if task_type == TaskType.START:
            if seen_start:
                task_type = TaskType.FLEXIBLE
            seen_start = True
        elif task_type == TaskType.END:
            if seen_end:
                task_type = TaskType.FLEXIBLE
            seen_end = True

        migrated.append(task if task_type == task.type else task.model_copy(update={"type": task_type}))
    return migrated


def default_tasks() -> list[Task]:
    """The built-in routine used for new or unreadable profiles."""
    return [
        Task(id="1", title="Wake up & wash face", duration_minutes=10, icon=TaskIcon.SUN,
             color="#fbbf24", type=TaskType.START),
        Task(id="2", title="Breakfast", duration_minutes=20, icon=TaskIcon.UTENSILS,
             color="#f87171", type=TaskType.FLEXIBLE),
        Task(id="3", title="Brush teeth", duration_minutes=5, icon=TaskIcon.TOOTHBRUSH,
             color="#60a5fa", type=TaskType.FLEXIBLE),
        Task(id="4", title="Get dressed", duration_minutes=10, icon=TaskIcon.SHIRT,
             color="#a78bfa", type=TaskType.FLEXIBLE),
        Task(id="5", title="Check backpack", duration_minutes=5, icon=TaskIcon.BACKPACK,
             color="#34d399", type=TaskType.FLEXIBLE),
        Task(id="6", title="Leave home!", duration_minutes=0, icon=TaskIcon.DOOR_OPEN,
             color="#fb7185", type=TaskType.END),
    ]


def _coerce_date(v: object) -> object:
    """Accept ISO dates, ISO timestamps and "YYYY/M/D" strings."""
    if isinstance(v, str):
        match = _LOOSE_DATE.match(v.strip())
        if match:
            year, month, day = (int(g) for g in match.groups())
            return dt.date(year, month, day)
    return v


class MissionLog(_Record):
    """Outcome of one completed run. Never mutated after it is appended."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    date: dt.date
    completed_at: dt.datetime
    total_duration_seconds: int = 0
    actual_duration_seconds: int | None = None
    is_success: bool = False
    is_bonus: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: object) -> object:
        return _coerce_date(v)


class Medal(_Record):
    """Awarded once per reward event, recording the rank achieved."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    date: dt.date
    comment: str = ""
    rank_at_time: int = 0

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: object) -> object:
        return _coerce_date(v)

    @field_validator("rank_at_time", mode="before")
    @classmethod
    def clamp_rank_at_time(cls, v: object) -> int:
        return clamp_rank(v)


class StampCard(_Record):
    """Long-term progression: stamps toward the next reward, rank and medals."""

    current_stamps: int = 0
    total_rewards: int = 0
    rank: int = 0
    medals: list[Medal] = []

    @field_validator("current_stamps", "total_rewards", mode="before")
    @classmethod
    def non_negative(cls, v: object) -> int:
        try:
            return max(0, int(v))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0

    @field_validator("rank", mode="before")
    @classmethod
    def clamp(cls, v: object) -> int:
        return clamp_rank(v)


class ChildState(_Record):
    """Everything persisted for one child profile."""

    name: str = ""
    tasks: list[Task] = Field(default_factory=default_tasks)
    departure_time: str = DEFAULT_DEPARTURE_TIME
    logs: list[MissionLog] = []
    stamp_card: StampCard = Field(default_factory=StampCard)

    @field_validator("tasks", mode="before")
    @classmethod
    def default_when_missing(cls, v: object) -> object:
        if v is None:
            return default_tasks()
        return v

    @field_validator("departure_time", mode="before")
    @classmethod
    def normalize_departure(cls, v: object) -> str:
        return normalize_hhmm(v)

    @field_validator("logs", mode="before")
    @classmethod
    def empty_logs(cls, v: object) -> object:
        return [] if v is None else v

    @field_validator("stamp_card", mode="before")
    @classmethod
    def empty_card(cls, v: object) -> object:
        return StampCard() if v is None else v

    @model_validator(mode="after")
    def migrate_types(self) -> ChildState:
        self.tasks = migrate_task_types(self.tasks)
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
