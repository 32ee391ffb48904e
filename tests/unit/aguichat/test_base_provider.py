"""Tests for the shared provider contract (framing, errors, deadlines, streaming)."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest

from aguichat.agui.models import DoneEvent, ErrorEvent, TextEvent, UIElementEvent
from aguichat.agui.stream import StreamFragment
from aguichat.exceptions import ConfigurationError, ProviderError, ResourceExhaustedError
from aguichat.llm.prompts import AGUI_SYSTEM_PROMPT
from aguichat.llm.protocols import ChatMessage, ChatOptions, LLMProvider, MessageRole

USER_HELLO = [ChatMessage(role=MessageRole.USER, content="Hello")]


class TestProviderConstruction:
    """Tests for construction-time validation."""

    def test_satisfies_protocol(self, scripted_provider) -> None:
        assert isinstance(scripted_provider(), LLMProvider)

    def test_blank_model_fails_fast(self, scripted_provider) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            scripted_provider(model="  ")
        assert exc_info.value.field == "model"

    def test_names(self, scripted_provider) -> None:
        provider = scripted_provider(model="m-1")
        assert provider.provider_name == "openrouter"
        assert provider.model_name == "m-1"


class TestChat:
    """Tests for non-streaming chat."""

    @pytest.mark.asyncio
    async def test_system_contract_prepended(self, scripted_provider) -> None:
        provider = scripted_provider(replies=['{"content": "Hi there"}'])
        await provider.chat(USER_HELLO)

        messages, _ = provider.calls[0]
        assert messages[0] == ChatMessage(role=MessageRole.SYSTEM, content=AGUI_SYSTEM_PROMPT)
        assert messages[1:] == USER_HELLO

    @pytest.mark.asyncio
    async def test_result_parsed_into_envelope(self, scripted_provider) -> None:
        provider = scripted_provider(
            replies=['{"content": "Two items", "agui": [{"type": "list", "props": {"items": [1, 2]}}]}']
        )
        result = await provider.chat(USER_HELLO)

        assert result.envelope.content == "Two items"
        assert result.envelope.agui[0].props == {"items": [1, 2]}
        assert result.model == "test-model"
        assert result.total_tokens == 42
        assert result.elapsed_ms >= 0
        assert result.to_dict()["metadata"]["tokens"] == 42

    @pytest.mark.asyncio
    async def test_empty_messages_rejected(self, scripted_provider) -> None:
        with pytest.raises(ValueError):
            await scripted_provider().chat([])

    @pytest.mark.asyncio
    async def test_options_merge_with_defaults(self, scripted_provider) -> None:
        provider = scripted_provider(replies=["x"], temperature=0.5, max_tokens=100)
        await provider.chat(USER_HELLO, ChatOptions(max_tokens=10))

        _, options = provider.calls[0]
        assert options == ChatOptions(temperature=0.5, max_tokens=10, timeout=None)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, scripted_provider) -> None:
        cause = ConnectionError("network unreachable")
        provider = scripted_provider(error=cause)

        with pytest.raises(ProviderError) as exc_info:
            await provider.chat(USER_HELLO)

        assert exc_info.value.cause is cause
        assert exc_info.value.provider == "openrouter"
        assert "network unreachable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_deadline_expiry_is_a_provider_error(self, scripted_provider) -> None:
        provider = scripted_provider(timeout=0.01)

        async def slow(messages, options):
            await asyncio.sleep(1)

        provider._complete = slow  # type: ignore[method-assign]
        with pytest.raises(ProviderError) as exc_info:
            await provider.chat(USER_HELLO)
        assert "timed out" in exc_info.value.message


class TestComplete:
    """Tests for complete with a caller-supplied system prompt."""

    @pytest.mark.asyncio
    async def test_uses_given_system_prompt_and_returns_raw_text(self, scripted_provider) -> None:
        provider = scripted_provider(replies=['{"sql": "SELECT 1"}'])
        raw = await provider.complete(USER_HELLO, "You write SQL.")

        messages, _ = provider.calls[0]
        assert messages[0].content == "You write SQL."
        assert raw.text == '{"sql": "SELECT 1"}'


class TestStreamChat:
    """Tests for streaming chat."""

    def test_returns_without_issuing_request(self, scripted_provider) -> None:
        provider = scripted_provider()
        stream = provider.stream_chat(USER_HELLO)

        assert provider.calls == []
        assert stream.metadata == {"model": "test-model", "provider": "openrouter"}

    @pytest.mark.asyncio
    async def test_event_order(self, scripted_provider, envelope_fragments) -> None:
        provider = scripted_provider(fragments=envelope_fragments)
        events = await provider.stream_chat(USER_HELLO).collect()

        assert [type(e) for e in events] == [TextEvent, UIElementEvent, DoneEvent]
        assert events[-1].total_tokens == 57
        assert provider.stream_closed

    @pytest.mark.asyncio
    async def test_stream_system_contract(self, scripted_provider) -> None:
        provider = scripted_provider(fragments=[StreamFragment(delta="x", finish_reason="stop")])
        await provider.stream_chat(USER_HELLO).collect()

        messages, _ = provider.calls[0]
        assert messages[0].role is MessageRole.SYSTEM

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_error_event(self, scripted_provider) -> None:
        provider = scripted_provider(error=ConnectionError("reset by peer"))
        events = await provider.stream_chat(USER_HELLO).collect()

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert "reset by peer" in events[0].error

    @pytest.mark.asyncio
    async def test_fragment_deadline_becomes_error_event(self, scripted_provider) -> None:
        provider = scripted_provider(timeout=0.01)

        async def stalled(messages, options) -> AsyncGenerator[StreamFragment, None]:
            yield StreamFragment(delta="partial")
            await asyncio.sleep(1)
            yield StreamFragment(finish_reason="stop")

        provider._stream = stalled  # type: ignore[method-assign]
        events = await provider.stream_chat(USER_HELLO).collect()

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert "no data within" in events[0].error

    @pytest.mark.asyncio
    async def test_second_consumption_raises(self, scripted_provider) -> None:
        provider = scripted_provider(fragments=[StreamFragment(delta="x")])
        stream = provider.stream_chat(USER_HELLO)
        await stream.collect()

        with pytest.raises(ResourceExhaustedError):
            await stream.collect()

    @pytest.mark.asyncio
    async def test_abandoned_stream_releases_transport(self, scripted_provider) -> None:
        provider = scripted_provider(
            fragments=[StreamFragment(delta='{"content": "a", "agui": [{"type": "card"}]}')]
        )
        async with provider.stream_chat(USER_HELLO) as stream:
            async for _ in stream:
                break

        assert provider.stream_closed


class TestIsAvailable:
    """Tests for the availability probe."""

    @pytest.mark.asyncio
    async def test_available(self, scripted_provider) -> None:
        assert await scripted_provider().is_available() is True

    @pytest.mark.asyncio
    async def test_failure_reported_as_false(self, scripted_provider) -> None:
        assert await scripted_provider(available=False).is_available() is False
