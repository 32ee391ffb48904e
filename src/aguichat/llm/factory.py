"""
LLM Provider Factory

Selects the adapter class once, by provider family. Callers hold on to the
returned provider; nothing re-dispatches on the provider name per call.
"""

from __future__ import annotations

from aguichat.config import AguiChatConfig
from aguichat.llm.base import BaseChatProvider
from aguichat.llm.resolver import ProviderConfig, ProviderFamily, resolve_provider_config


def _provider_class(family: ProviderFamily) -> type[BaseChatProvider]:
    if family is ProviderFamily.ANTHROPIC:
        from aguichat.llm.claude import ClaudeProvider

        return ClaudeProvider

    from aguichat.llm.openai import LocalProvider, OpenAIProvider

    if family is ProviderFamily.LOCAL:
        return LocalProvider
    return OpenAIProvider


def create_llm_provider(
    provider_config: ProviderConfig,
    model: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 4000,
    timeout: float | None = None,
) -> BaseChatProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_config: Resolved connection parameters
        model: Model override (uses provider default if not specified)
        temperature: Default sampling temperature
        max_tokens: Default output length cap
        timeout: Default deadline in seconds

    Returns:
        Provider for the config's family

    Raises:
        ConfigurationError: If the credential or model is missing
    """
    provider_cls = _provider_class(provider_config.family)
    return provider_cls(
        provider_config,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
    )


def create_provider_from_config(config: AguiChatConfig) -> BaseChatProvider:
    """Resolve the configured provider and build its adapter."""
    return create_llm_provider(
        resolve_provider_config(config),
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout_seconds,
    )
