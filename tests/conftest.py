"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from morningquest.config.settings import MorningQuestSettings
from morningquest.logging.events import EventLog
from morningquest.storage import ProfileDir

# Keys that must be cleared to isolate tests from the user's .env file
CLEAR_KEYS = {
    "MORNINGQUEST_ANTHROPIC_API_KEY": "",
    "MORNINGQUEST_OPENAI_API_KEY": "",
    "ANTHROPIC_API_KEY": "",
    "OPENAI_API_KEY": "",
}


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, hour: int, minute: int, second: int = 0) -> datetime:
        self.now = self.now.replace(hour=hour, minute=minute, second=second, microsecond=0)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """A clock fixed at 07:00 on a school day."""
    return FakeClock(datetime(2024, 5, 13, 7, 0, 0))


@pytest.fixture
def profile_dir(tmp_path: Path) -> ProfileDir:
    """Create a profile directory under a temporary data dir."""
    return ProfileDir("child1", base=tmp_path / "data")


@pytest.fixture
def event_log(profile_dir: ProfileDir) -> Iterator[EventLog]:
    """Create an event log in the temporary profile directory."""
    log = EventLog(profile_dir)
    yield log
    log.close()


@pytest.fixture
def settings(tmp_path: Path) -> Iterator[MorningQuestSettings]:
    """Settings isolated from the environment and any .env file."""
    with patch.dict(os.environ, CLEAR_KEYS, clear=False):
        yield MorningQuestSettings(_env_file=None, data_dir=tmp_path / "data")  # type: ignore[call-arg]
