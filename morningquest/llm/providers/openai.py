"""OpenAI provider."""

from __future__ import annotations

from typing import Any

import openai

from morningquest.llm.base import LLMResponse, Message, Usage

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIProvider:
    """LLM provider using the OpenAI SDK."""

    def __init__(self, api_key: str, model: str | None = None) -> None:
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._default_model = model or DEFAULT_MODEL

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        json_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": model or self._default_model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if json_schema:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**kwargs)
        choice = response.choices[0]

        usage = Usage()
        if response.usage:
            usage = Usage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        return LLMResponse(
            content=choice.message.content or "",
            usage=usage,
            stop_reason=choice.finish_reason or "",
        )
