"""Shared fixtures for aguichat unit tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest

from aguichat.agui.stream import StreamFragment
from aguichat.llm.base import BaseChatProvider
from aguichat.llm.protocols import ChatMessage, ChatOptions, RawCompletion
from aguichat.llm.resolver import ProviderConfig, ProviderFamily

_PROVIDER_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "DEEPSEEK_API_KEY",
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "TOGETHER_API_KEY",
    "ANTHROPIC_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep developer credentials and .env files out of config resolution."""
    for name in _PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"AGUICHAT_{name}", raising=False)
    for name in ("LLM_PROVIDER", "LLM_MODEL", "LLM_BASE_URL", "LLM_API_KEY", "POSTGRES_URL"):
        monkeypatch.delenv(f"AGUICHAT_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


def make_provider_config(**overrides: Any) -> ProviderConfig:
    values: dict[str, Any] = {
        "selector": "openrouter",
        "family": ProviderFamily.OPENAI_COMPATIBLE,
        "api_key": "sk-or-test",
        "base_url": "https://openrouter.ai/api/v1",
        "default_model": "test-model",
    }
    values.update(overrides)
    return ProviderConfig(**values)


class ScriptedProvider(BaseChatProvider):
    """Provider whose transport replays canned replies and fragments."""

    def __init__(
        self,
        replies: list[str] | None = None,
        fragments: list[StreamFragment] | None = None,
        error: Exception | None = None,
        available: bool = True,
        **kwargs: Any,
    ):
        self.replies = list(replies or [])
        self.fragments = list(fragments or [])
        self.error = error
        self.available = available
        self.calls: list[tuple[list[ChatMessage], ChatOptions]] = []
        self.stream_closed = False
        super().__init__(make_provider_config(), **kwargs)

    def _create_client(self) -> Any:
        return None

    async def _complete(self, messages: list[ChatMessage], options: ChatOptions) -> RawCompletion:
        self.calls.append((messages, options))
        if self.error is not None:
            raise self.error
        text = self.replies.pop(0) if self.replies else ""
        return RawCompletion(text=text, model=self._model, total_tokens=42)

    async def _stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> AsyncGenerator[StreamFragment, None]:
        self.calls.append((messages, options))
        try:
            if self.error is not None:
                raise self.error
            for fragment in self.fragments:
                yield fragment
        finally:
            self.stream_closed = True

    async def _list_models(self) -> Any:
        if not self.available:
            raise ConnectionError("connection refused")
        return ["test-model"]


@pytest.fixture
def provider_config() -> ProviderConfig:
    return make_provider_config()


@pytest.fixture
def scripted_provider() -> type[ScriptedProvider]:
    """The ScriptedProvider class, for tests that build their own instance."""
    return ScriptedProvider


@pytest.fixture
def envelope_fragments() -> list[StreamFragment]:
    """A well-formed envelope split across several fragments."""
    return [
        StreamFragment(delta='{"content": "Here are'),
        StreamFragment(delta=' the results", "agui": [{"type": "table", '),
        StreamFragment(delta='"props": {"headers": ["a"], "rows": [[1]]}}]}'),
        StreamFragment(total_tokens=57, finish_reason="stop"),
    ]


@pytest.fixture
def make_config():
    """Factory for ProviderConfig with test defaults."""
    return make_provider_config
