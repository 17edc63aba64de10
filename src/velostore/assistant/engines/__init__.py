"""Reasoning engine adapters, selected by provider name.

Usage:
    engine = create_engine(settings)  # None when no provider is configured
"""

from __future__ import annotations

import logging

import httpx

from velostore.assistant.engines.anthropic import AnthropicEngine
from velostore.assistant.engines.base import (
    Completion,
    HttpEngine,
    ReasoningEngine,
    ToolCall,
    ToolResult,
)
from velostore.assistant.engines.gemini import GeminiEngine
from velostore.assistant.engines.openai import OpenAIEngine
from velostore.config import Settings

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[HttpEngine]] = {
    "openai": OpenAIEngine,
    "gemini": GeminiEngine,
    "anthropic": AnthropicEngine,
}

# Accepted spellings that map onto a registered provider
_ALIASES = {"claude": "anthropic", "chatgpt": "openai", "google": "gemini"}


def create_engine(
    config: Settings,
    client: httpx.AsyncClient | None = None,
) -> ReasoningEngine | None:
    """Build the configured engine, or None to use the intent router.

    Raises:
        ValueError: If the provider name is not registered
    """
    if not config.llm_provider:
        return None
    provider = config.llm_provider.strip().lower()
    provider = _ALIASES.get(provider, provider)
    if provider not in PROVIDERS:
        raise ValueError(
            f"Unknown LLM provider '{config.llm_provider}'. "
            f"Supported: {', '.join(sorted(PROVIDERS))}"
        )

    api_key = getattr(config, f"{provider}_api_key")
    if not api_key:
        logger.warning("LLM provider %s has no API key; using intent router", provider)
        return None

    common = {
        "api_key": api_key,
        "model": getattr(config, f"{provider}_model"),
        "endpoint": getattr(config, f"{provider}_endpoint"),
        "max_tokens": config.llm_max_tokens,
        "temperature": config.llm_temperature,
        "timeout": config.llm_timeout,
        "client": client,
    }
    if provider == "anthropic":
        return AnthropicEngine(api_version=config.anthropic_version, **common)
    return PROVIDERS[provider](**common)


__all__ = [
    "AnthropicEngine",
    "Completion",
    "GeminiEngine",
    "OpenAIEngine",
    "PROVIDERS",
    "ReasoningEngine",
    "ToolCall",
    "ToolResult",
    "create_engine",
]
