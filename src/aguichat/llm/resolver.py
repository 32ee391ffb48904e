"""
Provider Config Resolver

Maps a provider selector plus environment settings to immutable connection
parameters. Resolution happens once at startup; the resulting
ProviderConfig is shared read-only for the process lifetime.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from aguichat.config import AguiChatConfig
from aguichat.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ProviderFamily(str, Enum):
    """Backend families; one adapter implementation each."""

    OPENAI_COMPATIBLE = "openai_compatible"
    LOCAL = "local"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class ProviderConfig:
    """Connection parameters for one logical provider."""

    selector: str
    family: ProviderFamily
    api_key: str | None
    base_url: str | None
    default_model: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    context_length: int = 8192

    def __post_init__(self) -> None:
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class _ProviderDefaults:
    family: ProviderFamily
    base_url: str | None
    default_model: str
    context_length: int


_PROVIDER_DEFAULTS: dict[str, _ProviderDefaults] = {
    "openrouter": _ProviderDefaults(
        ProviderFamily.OPENAI_COMPATIBLE,
        "https://openrouter.ai/api/v1",
        "mistralai/mistral-7b-instruct",
        32768,
    ),
    "deepseek": _ProviderDefaults(
        ProviderFamily.OPENAI_COMPATIBLE,
        "https://api.deepseek.com",
        "deepseek-chat",
        32768,
    ),
    "openai": _ProviderDefaults(
        ProviderFamily.OPENAI_COMPATIBLE,
        "https://api.openai.com/v1",
        "gpt-4",
        16384,
    ),
    "groq": _ProviderDefaults(
        ProviderFamily.OPENAI_COMPATIBLE,
        "https://api.groq.com/openai/v1",
        "mixtral-8x7b-32768",
        32768,
    ),
    "together": _ProviderDefaults(
        ProviderFamily.OPENAI_COMPATIBLE,
        "https://api.together.xyz/v1",
        "mistralai/Mistral-7B-Instruct-v0.2",
        8192,
    ),
    "anthropic": _ProviderDefaults(
        ProviderFamily.ANTHROPIC,
        None,
        "claude-sonnet-4-20250514",
        200000,
    ),
    "ollama": _ProviderDefaults(
        ProviderFamily.LOCAL,
        "http://localhost:11434/v1",
        "mistral:7b",
        32768,
    ),
    "onprem": _ProviderDefaults(
        ProviderFamily.LOCAL,
        "http://localhost:8000/v1",
        "mistral:7b",
        32768,
    ),
    "custom": _ProviderDefaults(
        ProviderFamily.LOCAL,
        "http://localhost:8000/v1",
        "mistral:7b",
        32768,
    ),
}

# Local servers ignore the key but the OpenAI client refuses an empty one
LOCAL_PLACEHOLDER_KEY = "local"

# (substrings, context length), checked in order before provider defaults
_MODEL_CONTEXT_RULES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("llama-3.1", "llama3.1", "llama-3.3", "llama3.3"), 32768),
    (("gemma2",), 8192),
    (("mistral", "mixtral"), 32768),
    (("qwen",), 32768),
    (("deepseek",), 32768),
    (("gpt-4",), 128000),
    (("gpt-3.5",), 16384),
)

DEFAULT_CONTEXT_LENGTH = 8192


def supported_selectors() -> list[str]:
    return sorted(_PROVIDER_DEFAULTS)


def resolve_model_context_length(selector: str, model: str) -> int:
    """Context window for a model, by model-name rule then provider default."""
    lowered = model.lower()
    for needles, length in _MODEL_CONTEXT_RULES:
        if any(needle in lowered for needle in needles):
            return length

    defaults = _PROVIDER_DEFAULTS.get(selector.lower())
    return defaults.context_length if defaults else DEFAULT_CONTEXT_LENGTH


def resolve_provider_config(config: AguiChatConfig) -> ProviderConfig:
    """
    Build the ProviderConfig for the configured selector.

    Raises:
        ConfigurationError: If the selector is unknown, a cloud provider has
            no credential, or the model identifier is empty
    """
    selector = config.llm_provider.lower()
    defaults = _PROVIDER_DEFAULTS.get(selector)
    if defaults is None:
        raise ConfigurationError(
            f"Unknown LLM provider: {selector}. "
            f"Must be one of: {', '.join(supported_selectors())}",
            field="llm_provider",
        )

    api_key = config.provider_api_key(selector)
    if not api_key:
        if defaults.family is ProviderFamily.LOCAL:
            api_key = LOCAL_PLACEHOLDER_KEY
        else:
            raise ConfigurationError(
                f"API key is required for provider '{selector}'. "
                f"Set {selector.upper()}_API_KEY or AGUICHAT_LLM_API_KEY",
                field=f"{selector}_api_key",
            )

    model = (config.llm_model or defaults.default_model).strip()
    if not model:
        raise ConfigurationError("Model is required", field="llm_model")

    headers: dict[str, str] = {}
    if selector == "openrouter":
        headers = {"HTTP-Referer": config.app_url, "X-Title": config.app_title}

    provider_config = ProviderConfig(
        selector=selector,
        family=defaults.family,
        api_key=api_key,
        base_url=config.llm_base_url or defaults.base_url,
        default_model=model,
        headers=headers,
        context_length=resolve_model_context_length(selector, model),
    )
    logger.info(f"Resolved LLM provider: {selector} - {model}")
    return provider_config
