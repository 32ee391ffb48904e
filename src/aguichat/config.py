"""
AguiChat Configuration

Configuration settings using pydantic-settings for environment variable support.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderSelector = Literal[
    "openrouter",
    "deepseek",
    "openai",
    "groq",
    "together",
    "anthropic",
    "ollama",
    "onprem",
    "custom",
]


def _key_field(name: str, description: str) -> str | None:
    """Provider key readable as AGUICHAT_<NAME> or the conventional <NAME>."""
    return Field(
        default=None,
        description=description,
        validation_alias=AliasChoices(f"AGUICHAT_{name}", name),
    )


class AguiChatConfig(BaseSettings):
    """
    Configuration for the AguiChat system.

    Reads from environment variables with AGUICHAT_ prefix. Provider
    credentials also accept their conventional unprefixed names.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGUICHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # LLM Provider Settings
    llm_provider: ProviderSelector = Field(
        default="openrouter",
        description="Provider selector",
    )
    llm_model: str | None = Field(
        default=None,
        description="Model identifier override (provider default if unset)",
    )
    llm_base_url: str | None = Field(
        default=None,
        description="Base URL override for the provider endpoint",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="Generic credential used when no provider-specific key is set",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Default sampling temperature for chat",
    )
    llm_max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Output length cap for chat",
    )
    llm_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Deadline passed through to the provider transport",
    )

    # API Keys
    openrouter_api_key: str | None = _key_field("OPENROUTER_API_KEY", "OpenRouter API key")
    deepseek_api_key: str | None = _key_field("DEEPSEEK_API_KEY", "DeepSeek API key")
    openai_api_key: str | None = _key_field("OPENAI_API_KEY", "OpenAI API key")
    groq_api_key: str | None = _key_field("GROQ_API_KEY", "Groq API key")
    together_api_key: str | None = _key_field("TOGETHER_API_KEY", "Together API key")
    anthropic_api_key: str | None = _key_field("ANTHROPIC_API_KEY", "Anthropic API key")

    # OpenRouter attribution
    app_url: str = Field(
        default="http://localhost:3010",
        description="Sent as HTTP-Referer to OpenRouter",
    )
    app_title: str = Field(
        default="PostgreSQL Agent",
        description="Sent as X-Title to OpenRouter",
    )

    # NL-to-SQL Settings
    nl2sql_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for SQL generation",
    )
    nl2sql_max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Output length cap for SQL generation",
    )
    nl2sql_default_confidence: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Confidence used when a structured parse omits one",
    )
    nl2sql_fallback_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Confidence ceiling for regex fallback extraction",
    )

    # Database Settings
    postgres_url: str | None = Field(
        default=None,
        description="PostgreSQL connection URL for schema and query execution",
    )
    postgres_schema: str = Field(
        default="public",
        description="Schema whose tables are offered to the SQL generator",
    )
    postgres_pool_min_size: int = Field(default=1, ge=0)
    postgres_pool_max_size: int = Field(default=5, ge=1)
    query_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-query deadline for generated SQL",
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    telemetry_enabled: bool = Field(
        default=False,
        description="Whether to install OpenTelemetry SDK exporters",
    )
    otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP gRPC collector endpoint",
    )

    def provider_api_key(self, selector: str) -> str | None:
        """Return the provider-specific key, falling back to llm_api_key."""
        specific = getattr(self, f"{selector}_api_key", None)
        return specific or self.llm_api_key


def load_config() -> AguiChatConfig:
    """Load configuration from environment."""
    return AguiChatConfig()
