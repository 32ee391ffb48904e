"""
OpenAI-Compatible LLM Providers

OpenAIProvider speaks the chat-completions API through the openai SDK and
covers every cloud backend that exposes it (OpenRouter, DeepSeek, OpenAI,
Groq, Together). LocalProvider targets self-hosted servers (Ollama, vLLM,
on-prem gateways), which need no real key and accept context-window hints.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Any, ClassVar

from aguichat.agui.stream import StreamFragment
from aguichat.llm.base import BaseChatProvider
from aguichat.llm.protocols import ChatMessage, ChatOptions, RawCompletion
from aguichat.llm.resolver import LOCAL_PLACEHOLDER_KEY

logger = logging.getLogger(__name__)

# Context windows at or below this are left to the server default
_CONTEXT_HINT_THRESHOLD = 4096


class OpenAIProvider(BaseChatProvider):
    """
    LLM provider for cloud OpenAI-compatible chat-completion APIs.

    Base URL and attribution headers come from the ProviderConfig, so one
    class serves all cloud selectors.
    """

    def _create_client(self) -> Any:
        import openai

        return openai.AsyncOpenAI(
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            default_headers=dict(self._config.headers) or None,
        )

    def _request_params(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self._model,
            "messages": [msg.to_wire() for msg in messages],
        }
        if options.temperature is not None:
            params["temperature"] = options.temperature
        if options.max_tokens is not None:
            params["max_tokens"] = options.max_tokens
        if options.timeout is not None:
            params["timeout"] = options.timeout
        return params

    async def _complete(self, messages: list[ChatMessage], options: ChatOptions) -> RawCompletion:
        response = await self._client.chat.completions.create(
            **self._request_params(messages, options),
            stream=False,
        )

        content = ""
        finish_reason = None
        if response.choices:
            choice = response.choices[0]
            content = choice.message.content or ""
            finish_reason = choice.finish_reason

        total_tokens = 0
        if response.usage and response.usage.total_tokens:
            total_tokens = response.usage.total_tokens

        return RawCompletion(
            text=content,
            model=getattr(response, "model", None) or self._model,
            total_tokens=total_tokens,
            finish_reason=finish_reason,
        )

    async def _stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> AsyncGenerator[StreamFragment, None]:
        stream = await self._client.chat.completions.create(
            **self._request_params(messages, options),
            stream=True,
        )
        try:
            async for chunk in stream:
                delta = ""
                finish_reason = None
                if chunk.choices:
                    choice = chunk.choices[0]
                    if choice.delta and choice.delta.content:
                        delta = choice.delta.content
                    finish_reason = choice.finish_reason

                usage = getattr(chunk, "usage", None)
                total_tokens = usage.total_tokens if usage and usage.total_tokens else None

                yield StreamFragment(
                    delta=delta,
                    total_tokens=total_tokens,
                    finish_reason=finish_reason,
                )
        finally:
            await stream.close()

    async def _list_models(self) -> Any:
        return await self._client.models.list()


class LocalProvider(OpenAIProvider):
    """
    LLM provider for self-hosted OpenAI-compatible endpoints.

    Sends the model's context window under the parameter names the common
    local servers understand, since they otherwise default to small windows.
    """

    requires_api_key: ClassVar[bool] = False

    def _create_client(self) -> Any:
        import openai

        return openai.AsyncOpenAI(
            api_key=self._config.api_key or LOCAL_PLACEHOLDER_KEY,
            base_url=self._config.base_url,
            default_headers=dict(self._config.headers) or None,
        )

    def _request_params(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> dict[str, Any]:
        params = super()._request_params(messages, options)
        context_length = self._config.context_length
        if context_length > _CONTEXT_HINT_THRESHOLD:
            params["extra_body"] = {
                "context_length": context_length,
                "max_context": context_length,
                "n_ctx": context_length,
            }
        return params
