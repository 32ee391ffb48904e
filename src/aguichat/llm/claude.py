"""
Claude (Anthropic) LLM Provider

Implementation of the provider contract using the Anthropic Messages API.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Any

from aguichat.agui.stream import StreamFragment
from aguichat.llm.base import BaseChatProvider
from aguichat.llm.protocols import ChatMessage, ChatOptions, MessageRole, RawCompletion

logger = logging.getLogger(__name__)

# The Messages API requires max_tokens on every request
_DEFAULT_MAX_TOKENS = 4096


class ClaudeProvider(BaseChatProvider):
    """
    LLM provider using Anthropic's Claude API.

    System messages are lifted into the top-level ``system`` parameter;
    the rest of the history is sent as user/assistant turns.
    """

    def _create_client(self) -> Any:
        import anthropic

        return anthropic.AsyncAnthropic(
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            default_headers=dict(self._config.headers) or None,
        )

    def _request_params(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> dict[str, Any]:
        system_parts = [m.content for m in messages if m.role == MessageRole.SYSTEM]
        params: dict[str, Any] = {
            "model": self._model,
            "messages": [m.to_wire() for m in messages if m.role != MessageRole.SYSTEM],
            "max_tokens": options.max_tokens or _DEFAULT_MAX_TOKENS,
        }
        if system_parts:
            params["system"] = "\n\n".join(system_parts)
        if options.temperature is not None:
            # Anthropic caps temperature at 1.0
            params["temperature"] = min(options.temperature, 1.0)
        if options.timeout is not None:
            params["timeout"] = options.timeout
        return params

    async def _complete(self, messages: list[ChatMessage], options: ChatOptions) -> RawCompletion:
        response = await self._client.messages.create(**self._request_params(messages, options))

        text = "".join(block.text for block in response.content if block.type == "text")
        usage = response.usage
        total_tokens = (usage.input_tokens + usage.output_tokens) if usage else 0

        return RawCompletion(
            text=text,
            model=getattr(response, "model", None) or self._model,
            total_tokens=total_tokens,
            finish_reason=response.stop_reason,
        )

    async def _stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> AsyncGenerator[StreamFragment, None]:
        stream = await self._client.messages.create(
            **self._request_params(messages, options),
            stream=True,
        )
        input_tokens = 0
        try:
            async for event in stream:
                if event.type == "message_start":
                    usage = getattr(event.message, "usage", None)
                    input_tokens = usage.input_tokens if usage else 0
                elif event.type == "content_block_delta":
                    if event.delta.type == "text_delta":
                        yield StreamFragment(delta=event.delta.text)
                elif event.type == "message_delta":
                    output_tokens = event.usage.output_tokens if event.usage else 0
                    yield StreamFragment(
                        total_tokens=input_tokens + output_tokens,
                        finish_reason=event.delta.stop_reason,
                    )
                elif event.type == "message_stop":
                    yield StreamFragment(finish_reason="message_stop")
        finally:
            await stream.close()

    async def _list_models(self) -> Any:
        return await self._client.models.list(limit=1)
