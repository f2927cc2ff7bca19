"""Anthropic Claude provider."""

from __future__ import annotations

from typing import Any

import anthropic

from morningquest.llm.base import LLMResponse, Message, Usage

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 2048


class AnthropicProvider:
    """LLM provider using the Anthropic SDK."""

    def __init__(self, api_key: str, model: str | None = None) -> None:
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._default_model = model or DEFAULT_MODEL

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        json_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        system_msg, api_messages = _split_messages(messages)

        kwargs: dict[str, Any] = {
            "model": model or self._default_model,
            "max_tokens": MAX_TOKENS,
            "messages": api_messages,
        }
        if system_msg:
            kwargs["system"] = system_msg

        response = await self._client.messages.create(**kwargs)

        content = "".join(block.text for block in response.content if block.type == "text")
        return LLMResponse(
            content=content,
            usage=Usage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            ),
            stop_reason=response.stop_reason or "",
        )


def _split_messages(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Split system messages from the conversation for the Anthropic API."""
    system = ""
    api_messages: list[dict[str, Any]] = []
    for msg in messages:
        if msg.role == "system":
            system += msg.content + "\n"
        else:
            api_messages.append({"role": msg.role, "content": msg.content})
    return system.strip(), api_messages
