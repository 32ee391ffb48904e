"""
LLM Provider Abstraction Layer

Provides a unified interface over chat model backends (cloud
OpenAI-compatible APIs, local OpenAI-compatible servers, Anthropic).
Each adapter prepends the AGUI output contract and normalizes responses
into envelopes and event streams.
"""

from aguichat.llm.factory import create_llm_provider, create_provider_from_config
from aguichat.llm.protocols import (
    ChatMessage,
    ChatOptions,
    ChatResult,
    LLMProvider,
    MessageRole,
    RawCompletion,
)
from aguichat.llm.resolver import ProviderConfig, ProviderFamily, resolve_provider_config

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "ChatResult",
    "LLMProvider",
    "MessageRole",
    "ProviderConfig",
    "ProviderFamily",
    "RawCompletion",
    "create_llm_provider",
    "create_provider_from_config",
    "resolve_provider_config",
]
