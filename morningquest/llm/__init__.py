"""LLM provider abstraction and factory."""

from morningquest.config.settings import MorningQuestSettings
from morningquest.llm.base import LLMProvider
from morningquest.llm.providers.anthropic import AnthropicProvider
from morningquest.llm.providers.openai import OpenAIProvider


def create_provider(settings: MorningQuestSettings) -> LLMProvider:
    """Create an LLM provider based on settings."""
    provider_name = settings.default_provider

    if provider_name is None:
        if settings.openai_api_key and not settings.anthropic_api_key:
            provider_name = "openai"
        else:
            provider_name = "anthropic"

    if provider_name == "anthropic":
        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key required but not set (MORNINGQUEST_ANTHROPIC_API_KEY)")
        return AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model=settings.default_model,
        )
    elif provider_name == "openai":
        if not settings.openai_api_key:
            raise ValueError("OpenAI API key required but not set (MORNINGQUEST_OPENAI_API_KEY)")
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.default_model,
        )
    else:
        raise ValueError(f"Unknown provider: {provider_name}")


def try_create_provider(settings: MorningQuestSettings) -> LLMProvider | None:
    """Like create_provider, but returns None when no provider is configured."""
    try:
        return create_provider(settings)
    except ValueError:
        return None
