"""Congratulatory medal comments from recent mission history."""

from __future__ import annotations

from collections.abc import Callable

from morningquest.llm.base import LLMProvider, Message
from morningquest.models import MissionLog

DEFAULT_REWARD_COMMENT = "Amazing work every morning! Keep it up!"

HISTORY_WINDOW = 10

COMMENT_SYSTEM_PROMPT = """\
You are a warm, enthusiastic coach cheering on a young child who just earned a reward
for finishing their morning routine on time again and again.
Write ONE short sentence (under 25 words) of praise. Mention something concrete from the
history when you can. No emoji, no quotes, no preamble.
"""


def summarize_logs(logs: list[MissionLog], limit: int = HISTORY_WINDOW) -> str:
    """One line per recent run, oldest first."""
    lines = []
    for log in logs[-limit:]:
        status = "on time" if log.is_success else "late"
        minutes = round((log.actual_duration_seconds or log.total_duration_seconds) / 60)
        bonus = ", early riser bonus" if log.is_bonus else ""
        lines.append(f"- {log.date.isoformat()}: {status}, {minutes} min{bonus}")
    return "\n".join(lines) or "- (no runs recorded yet)"


async def generate_reward_comment(
    child_name: str,
    logs: list[MissionLog],
    provider: LLMProvider | None,
    on_error: Callable[[Exception], None] | None = None,
) -> str:
    """Ask the assistant for a medal comment. Never raises; falls back to a fixed message."""
    if provider is None:
        return DEFAULT_REWARD_COMMENT

    messages = [
        Message(role="system", content=COMMENT_SYSTEM_PROMPT),
        Message(
            role="user",
            content=f"Child: {child_name or 'our hero'}\nRecent mornings:\n{summarize_logs(logs)}",
        ),
    ]
    try:
        response = await provider.complete(messages)
    except Exception as e:
        if on_error is not None:
            on_error(e)
        return DEFAULT_REWARD_COMMENT

    comment = response.content.strip().strip('"').strip()
    return comment or DEFAULT_REWARD_COMMENT
