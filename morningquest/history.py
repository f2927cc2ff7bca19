"""Mission history summaries for the log view."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from morningquest.models import MissionLog

CHART_WINDOW = 14
RECENT_WINDOW = 10


@dataclass(frozen=True)
class ChartPoint:
    date: dt.date
    minutes: int


@dataclass(frozen=True)
class HistorySummary:
    total_runs: int
    success_count: int
    bonus_count: int
    average_minutes: int
    chart: list[ChartPoint]
    recent: list[MissionLog]

    @property
    def success_rate(self) -> float:
        if self.total_runs == 0:
            return 0.0
        return self.success_count / self.total_runs


def sorted_logs(logs: list[MissionLog]) -> list[MissionLog]:
    """Logs in chronological order."""
    return sorted(logs, key=lambda log: (log.date, log.completed_at.replace(tzinfo=None)))


def summarize_history(logs: list[MissionLog]) -> HistorySummary:
    ordered = sorted_logs(logs)
    average = round(sum(log.total_duration_seconds for log in ordered) / len(ordered) / 60) if ordered else 0
    return HistorySummary(
        total_runs=len(ordered),
        success_count=sum(1 for log in ordered if log.is_success),
        bonus_count=sum(1 for log in ordered if log.is_bonus),
        average_minutes=average,
        chart=[
            ChartPoint(date=log.date, minutes=round(log.total_duration_seconds / 60))
            for log in ordered[-CHART_WINDOW:]
        ],
        recent=list(reversed(ordered))[:RECENT_WINDOW],
    )
