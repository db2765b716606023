"""
Changelog content providers.

Providers are built by name so the primary/fallback order is pure
configuration. SDK modules are imported only for the providers in use.
"""

from chronicle.ai_core.providers.base import BaseChangelogProvider, GenerationRequest
from chronicle.config import Settings

PROVIDER_NAMES = ("gen_ai_hub", "openai", "anthropic")


def build_provider(name: str, settings: Settings) -> BaseChangelogProvider:
    """
    Build a provider from its configured name.

    Raises:
        ValueError: For an unknown provider name
    """
    name = (name or "").strip().lower()

    if name == "gen_ai_hub":
        from chronicle.ai_core.providers.gen_ai_hub import GenAIHubProvider

        return GenAIHubProvider(
            model=settings.gen_ai_hub_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    if name == "openai":
        from chronicle.ai_core.providers.openai import OpenAIProvider

        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    if name == "anthropic":
        from chronicle.ai_core.providers.anthropic import AnthropicProvider

        return AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    raise ValueError(
        f"Unknown AI provider: {name!r}. Choose one of: {', '.join(PROVIDER_NAMES)}"
    )


__all__ = ["BaseChangelogProvider", "GenerationRequest", "build_provider", "PROVIDER_NAMES"]
