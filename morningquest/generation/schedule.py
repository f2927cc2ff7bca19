"""LLM-based routine generation from a free-text request."""

from __future__ import annotations

import json
import time
from typing import Any

from morningquest.llm.base import LLMProvider, Message
from morningquest.models import Task, TaskIcon, migrate_task_types

SCHEDULE_SYSTEM_PROMPT = f"""\
You plan morning routines for young children.

Given a parent's request, break the morning into short, concrete steps a child can tick off.
Respond with a JSON object of this exact shape:

{{
  "tasks": [
    {{"title": "Short task name", "durationMinutes": 10, "icon": "sun", "color": "#fbbf24", "type": "start"}}
  ]
}}

RULES:
- "icon" must be one of: {", ".join(icon.value for icon in TaskIcon)}
- "color" is a friendly hex color code (pastel or bright)
- "type" is "start" for the first step (waking up), "end" for the final step
  (leaving the house, 0 minutes), and "flexible" for everything in between
- Keep the total duration realistic for a school morning

Respond ONLY with the JSON object, no markdown fences or explanation.
"""

SCHEDULE_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "durationMinutes": {"type": "number"},
                    "icon": {"type": "string"},
                    "color": {"type": "string"},
                    "type": {"type": "string"},
                },
                "required": ["title", "durationMinutes", "icon", "color"],
            },
        }
    },
    "required": ["tasks"],
}

MAX_RETRIES = 2


class ScheduleGenerationError(ValueError):
    """The assistant could not produce a usable routine. Safe to retry."""


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        lines = raw.split("\n")
        raw = "\n".join(lines[1:-1]) if lines[-1].strip() == "```" else "\n".join(lines[1:])
    return raw


def parse_schedule(raw: str, id_prefix: str | None = None) -> list[Task]:
    """Parse the assistant's JSON into validated tasks.

    Unknown icons, colors and types are defaulted rather than rejected.
    """
    data = json.loads(_strip_fences(raw))
    items = data.get("tasks") if isinstance(data, dict) else data
    if not isinstance(items, list) or not items:
        raise ValueError("expected a non-empty list of tasks")

    prefix = id_prefix or f"gen-{int(time.time() * 1000)}"
    tasks: list[Task] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not str(item.get("title", "")).strip():
            raise ValueError(f"task {index} has no title")
        tasks.append(
            Task(
                id=f"{prefix}-{index}",
                title=str(item["title"]).strip(),
                duration_minutes=item.get("durationMinutes", item.get("duration_minutes", 0)),
                icon=item.get("icon"),
                color=item.get("color"),
                type=item.get("type"),
            )
        )
    return migrate_task_types(tasks)


async def generate_schedule(prompt: str, provider: LLMProvider) -> list[Task]:
    """Ask the assistant for a routine matching ``prompt``."""
    if not prompt.strip():
        raise ScheduleGenerationError("Describe the morning you want first.")

    messages = [
        Message(role="system", content=SCHEDULE_SYSTEM_PROMPT),
        Message(role="user", content=f"Create a morning routine for a child based on this request: {prompt.strip()}"),
    ]

    last_error: Exception | None = None
    for attempt in range(MAX_RETRIES + 1):
        try:
            response = await provider.complete(messages, json_schema=SCHEDULE_JSON_SCHEMA)
        except Exception as e:
            raise ScheduleGenerationError(f"Schedule assistant unavailable: {e}") from e

        try:
            return parse_schedule(response.content)
        except ValueError as e:
            last_error = e
            if attempt < MAX_RETRIES:
                messages.append(Message(role="assistant", content=response.content))
                messages.append(
                    Message(
                        role="user",
                        content=f"Your response was not valid. Error: {e}. Please try again with valid JSON only.",
                    )
                )

    raise ScheduleGenerationError(
        f"Failed to generate a routine after {MAX_RETRIES + 1} attempts: {last_error}"
    )
