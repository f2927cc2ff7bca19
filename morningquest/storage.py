"""Per-profile state directory and best-effort JSON persistence."""

from __future__ import annotations

import json
import os
import re
import shutil
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from morningquest.clock import DEFAULT_DEPARTURE_TIME, normalize_hhmm
from morningquest.models import ChildState, Medal, MissionLog, StampCard, Task, default_tasks

DEFAULT_DATA_DIR = Path(".morningquest")

_PROFILE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")

_M = TypeVar("_M", bound=BaseModel)


def validate_profile_id(profile_id: str) -> str:
    """Profile ids double as directory names, so keep them filesystem safe."""
    if not _PROFILE_ID.match(profile_id):
        raise ValueError(f"Invalid profile id: {profile_id!r} (use letters, digits, '-' or '_')")
    return profile_id


class ProfileDir:
    """Manages the <data_dir>/<profile_id>/ directory structure."""

    def __init__(self, profile_id: str, base: Path | None = None) -> None:
        self.profile_id = validate_profile_id(profile_id)
        base = base or DEFAULT_DATA_DIR
        self.path = base / self.profile_id
        self.path.mkdir(parents=True, exist_ok=True)

    @property
    def state_path(self) -> Path:
        return self.path / "state.json"

    @property
    def backup_path(self) -> Path:
        return self.path / "state.json.bak"

    @property
    def events_path(self) -> Path:
        return self.path / "events.jsonl"


def _validate_entries(model: type[_M], items: object, problems: list[str], label: str) -> list[_M] | None:
    """Validate list entries one by one, dropping the ones that fail.

    Returns None when ``items`` is not a list at all.
    """
    if items is None:
        return None
    if not isinstance(items, list):
        problems.append(f"{label} is not a list")
        return None
    valid: list[_M] = []
    for index, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            problems.append(f"dropped {label}[{index}]: {e.error_count()} error(s)")
    return valid


class ProfileStore:
    """Loads and saves a ChildState snapshot for one profile.

    Every save writes the full state, so an interrupted write can lose the
    latest change but never damage what was saved before. Loading is field
    by field: a damaged entry is dropped without resetting its neighbours,
    and the damaged file is kept as ``state.json.bak``.
    """

    def __init__(self, profile_dir: ProfileDir) -> None:
        self.profile_dir = profile_dir
        self.load_error: str | None = None
        self.save_error: str | None = None

    def load(self, default_name: str = "", default_departure_time: str = DEFAULT_DEPARTURE_TIME) -> ChildState:
        """Read the saved state, defaulting whatever is missing or unreadable."""
        self.load_error = None
        default_departure_time = normalize_hhmm(default_departure_time)
        path = self.profile_dir.state_path
        if not path.exists():
            return ChildState(name=default_name, departure_time=default_departure_time)

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("saved state must be a JSON object")
        except (OSError, ValueError) as e:
            self._keep_backup(str(e))
            return ChildState(name=default_name, departure_time=default_departure_time)

        problems: list[str] = []
        state = ChildState(
            name=_string_or(raw.get("name"), default_name),
            tasks=self._load_tasks(raw.get("tasks"), problems),
            departure_time=normalize_hhmm(raw.get("departureTime"), default=default_departure_time),
            logs=_validate_entries(MissionLog, raw.get("logs"), problems, "logs") or [],
            stamp_card=self._load_stamp_card(raw.get("stampCard"), problems),
        )
        if problems:
            self._keep_backup("; ".join(problems))
        return state

    def _load_tasks(self, items: object, problems: list[str]) -> list[Task]:
        tasks = _validate_entries(Task, items, problems, "tasks")
        if tasks is None or (not tasks and items):
            return default_tasks()
        return tasks

    def _load_stamp_card(self, raw: object, problems: list[str]) -> StampCard:
        if raw is None:
            return StampCard()
        if not isinstance(raw, dict):
            problems.append("stampCard is not an object")
            return StampCard()
        counters: dict[str, Any] = {k: v for k, v in raw.items() if k != "medals"}
        card = StampCard.model_validate(counters)
        card.medals = _validate_entries(Medal, raw.get("medals"), problems, "medals") or []
        return card

    def _keep_backup(self, error: str) -> None:
        """Record the load problem and copy the damaged file aside before it is overwritten."""
        self.load_error = error
        try:
            shutil.copy2(self.profile_dir.state_path, self.profile_dir.backup_path)
        except OSError as e:
            self.load_error = f"{error} (backup failed: {e})"

    def save(self, state: ChildState) -> bool:
        """Write the full snapshot atomically. Returns False if the write failed."""
        self.save_error = None
        path = self.profile_dir.state_path
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(state.to_json(), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            self.save_error = str(e)
            return False
        return True


def _string_or(value: object, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default
