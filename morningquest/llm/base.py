"""LLM provider protocol and shared message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str = ""


@dataclass
class Usage:
    """Token usage."""

    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class LLMResponse:
    """Response from a non-streaming LLM call."""

    content: str = ""
    usage: Usage = field(default_factory=Usage)
    stop_reason: str = ""


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers."""

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        json_schema: dict[str, Any] | None = None,
    ) -> LLMResponse: ...
