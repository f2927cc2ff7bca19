"""JSONL event log for a child profile."""

from __future__ import annotations

import json
import os
from contextlib import suppress
from datetime import UTC, datetime
from typing import Any

from morningquest.storage import ProfileDir


class EventLog:
    """Append-only JSONL event log."""

    def __init__(self, profile_dir: ProfileDir) -> None:
        self.profile_dir = profile_dir
        # Sequence numbers continue across sessions for the same profile.
        self._seq = len(read_events(profile_dir))
        fd = os.open(profile_dir.events_path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, 0o600)
        self._file = os.fdopen(fd, "a", encoding="utf-8")
        # Best effort; some filesystems may not support chmod semantics.
        with suppress(OSError):
            os.chmod(profile_dir.events_path, 0o600)

    def emit(
        self,
        phase: str,
        event_type: str,
        summary: str,
        data: dict[str, Any] | None = None,
        result: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Append an event to the log. Returns the event dict."""
        self._seq += 1
        event: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "profile": self.profile_dir.profile_id,
            "phase": phase,
            "seq": self._seq,
            "type": event_type,
            "summary": summary,
            "data": data or {},
        }
        if result is not None:
            event["result"] = result

        self._file.write(json.dumps(event, default=str, ensure_ascii=False) + "\n")
        self._file.flush()
        return event

    def close(self) -> None:
        """Flush and close the log file."""
        if self._file.closed:
            return
        self._file.flush()
        self._file.close()


def read_events(profile_dir: ProfileDir) -> list[dict[str, Any]]:
    """Load every event recorded for a profile, skipping damaged lines."""
    path = profile_dir.events_path
    if not path.exists():
        return []
    events: list[dict[str, Any]] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        with suppress(json.JSONDecodeError):
            events.append(json.loads(line))
    return events
