"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from morningquest.clock import DEFAULT_DEPARTURE_TIME, normalize_hhmm
from morningquest.progression import OverflowPolicy


class MorningQuestSettings(BaseSettings):
    """Morning Quest configuration from environment variables and .env files."""

    model_config = {"env_prefix": "MORNINGQUEST_", "env_file": ".env", "extra": "ignore"}

    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    default_provider: Literal["anthropic", "openai"] | None = None
    default_model: str | None = None

    data_dir: Path = Path(".morningquest")
    default_departure_time: str = DEFAULT_DEPARTURE_TIME
    warning_buffer_minutes: int = 10
    reward_threshold: int = 10
    overflow_policy: OverflowPolicy = OverflowPolicy.DISCARD
    bonus_lead_minutes: int = 15
    tick_seconds: float = 1.0

    @field_validator("default_departure_time", mode="before")
    @classmethod
    def normalize_departure(cls, v: object) -> str:
        return normalize_hhmm(v)

    @model_validator(mode="after")
    def fallback_api_keys(self) -> MorningQuestSettings:
        # Also accept standard env vars without the MORNINGQUEST_ prefix
        if not self.anthropic_api_key:
            self.anthropic_api_key = os.environ.get("ANTHROPIC_API_KEY") or None
        if not self.openai_api_key:
            self.openai_api_key = os.environ.get("OPENAI_API_KEY") or None
        if self.reward_threshold < 1:
            raise ValueError("reward_threshold must be at least 1")
        return self

    @property
    def has_api_key(self) -> bool:
        return bool(self.anthropic_api_key or self.openai_api_key)


def load_settings(**overrides: object) -> MorningQuestSettings:
    """Load settings with optional overrides (useful for CLI args)."""
    return MorningQuestSettings(**{k: v for k, v in overrides.items() if v is not None})  # type: ignore[arg-type]
