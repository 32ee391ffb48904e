"""
Streaming Aggregator / Re-emitter

Providers stream tokens, but the response contract is a single JSON
envelope, and partial JSON cannot be re-parsed mid-stream. The aggregator
therefore buffers the whole turn, parses it once, and re-emits a
normalized event sequence:

    Buffering -> Draining -> Done
        \\           \\
         +-----------+--> Error   (terminal, from any state)

Consumers see at most one terminal event (``done`` or ``error``) and it is
always last. ``text`` precedes every ``agui`` event of the same turn.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from dataclasses import dataclass
from typing import Any

from aguichat.agui.models import DoneEvent, ErrorEvent, StreamEvent, TextEvent, UIElementEvent
from aguichat.agui.parser import parse_envelope
from aguichat.common.logging import truncate_for_log
from aguichat.exceptions import AguiChatError, ResourceExhaustedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamFragment:
    """
    One raw increment from a provider stream.

    Attributes:
        delta: Text appended by this fragment (may be empty)
        total_tokens: Cumulative usage if the provider reported it
        finish_reason: Set when the provider signals its own end-of-turn
    """

    delta: str = ""
    total_tokens: int | None = None
    finish_reason: str | None = None


def _error_message(error: BaseException) -> str:
    if isinstance(error, AguiChatError):
        return error.message
    return str(error) or "Stream processing error"


async def _close_upstream(fragments: AsyncIterator[Any]) -> None:
    aclose = getattr(fragments, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.debug(f"Error while closing upstream stream: {e}")


async def aggregate_stream(
    fragments: AsyncIterator[StreamFragment],
    max_chars: int | None = None,
) -> AsyncGenerator[StreamEvent, None]:
    """
    Buffer a provider fragment stream and re-emit normalized events.

    Upstream failures at any point, including before the first fragment,
    become a single ErrorEvent. The upstream iterator is closed on every
    exit path, including consumer cancellation.

    Args:
        fragments: Raw provider fragments in receipt order
        max_chars: Optional forced cutoff; buffering stops once exceeded
    """
    parts: list[str] = []
    buffered = 0
    total_tokens: int | None = None

    try:
        try:
            async for fragment in fragments:
                if fragment.delta:
                    parts.append(fragment.delta)
                    buffered += len(fragment.delta)
                if fragment.total_tokens is not None:
                    total_tokens = fragment.total_tokens
                if fragment.finish_reason:
                    logger.info(f"Stream finished with reason: {fragment.finish_reason}")
                    break
                if max_chars is not None and buffered >= max_chars:
                    logger.warning(f"Stream cut off after {buffered} buffered chars")
                    break
        except Exception as e:
            logger.error(f"Stream processing error: {e}")
            yield ErrorEvent(error=_error_message(e))
            return
    finally:
        await _close_upstream(fragments)

    full_text = "".join(parts)
    logger.debug(f"Aggregated stream text: {truncate_for_log(full_text, 100)}")

    envelope = parse_envelope(full_text)
    if envelope.content:
        yield TextEvent(content=envelope.content)
    for element in envelope.agui:
        yield UIElementEvent(agui=element)

    yield DoneEvent(total_tokens=total_tokens if total_tokens is not None else len(full_text))


class EventStream:
    """
    Lazy, single-consumption sequence of StreamEvent.

    The underlying provider transport is not replayable: iterating a second
    time raises ResourceExhaustedError. Closing the stream (explicitly, via
    ``async with``, or by abandoning iteration) releases the upstream
    connection.

    Usage:
        async with provider.stream_chat(messages) as events:
            async for event in events:
                ...
    """

    def __init__(
        self,
        events: AsyncGenerator[StreamEvent, None],
        metadata: dict[str, Any] | None = None,
    ):
        self._events = events
        self._iterator: AsyncGenerator[StreamEvent, None] | None = None
        self._consumed = False
        self.metadata: dict[str, Any] = dict(metadata or {})

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __aiter__(self) -> AsyncGenerator[StreamEvent, None]:
        if self._consumed:
            raise ResourceExhaustedError()
        self._consumed = True
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncGenerator[StreamEvent, None]:
        try:
            async for event in self._events:
                yield event
                if event.terminal:
                    break
        finally:
            await self._events.aclose()

    async def aclose(self) -> None:
        """Stop consumption and release the upstream transport."""
        self._consumed = True
        if self._iterator is not None:
            await self._iterator.aclose()
        else:
            await self._events.aclose()

    async def collect(self) -> list[StreamEvent]:
        """Consume the whole stream into a list."""
        return [event async for event in self]

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
