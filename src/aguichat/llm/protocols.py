"""
LLM Provider Protocols

Defines the capability set every backend family implements: chat,
stream_chat and is_available. Uses typing.Protocol for duck-typed
interface definitions so tests can supply their own doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from aguichat.agui.models import ResponseEnvelope
from aguichat.agui.stream import EventStream


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single message of conversation history."""

    role: MessageRole
    content: str = ""

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ChatOptions:
    """
    Per-call request options.

    None means "use the provider default". ``timeout`` is a deadline in
    seconds; expiry is reported exactly like a transport failure.
    """

    temperature: float | None = None
    max_tokens: int | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class RawCompletion:
    """Unparsed text of a complete (non-streaming) provider response."""

    text: str
    model: str
    total_tokens: int = 0
    finish_reason: str | None = None


@dataclass(frozen=True)
class ChatResult:
    """Parsed response of a non-streaming chat call."""

    envelope: ResponseEnvelope
    model: str
    total_tokens: int
    elapsed_ms: int

    def to_dict(self) -> dict[str, object]:
        return {
            **self.envelope.to_dict(),
            "metadata": {
                "model": self.model,
                "tokens": self.total_tokens,
                "processingTime": self.elapsed_ms,
            },
        }


@runtime_checkable
class LLMProvider(Protocol):
    """
    Protocol for chat model providers.

    ``chat`` and ``stream_chat`` prepend the AGUI output contract as the
    system message; ``complete`` lets callers with a different contract
    (the NL-to-SQL pipeline) supply their own.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider selector (e.g. ``openrouter``)."""
        ...

    @property
    def model_name(self) -> str:
        """Return the model identifier."""
        ...

    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Blocking call returning a parsed envelope; raises ProviderError."""
        ...

    def stream_chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> EventStream:
        """Return a lazy, single-consumption stream of normalized events."""
        ...

    async def complete(
        self,
        messages: list[ChatMessage],
        system_prompt: str,
        options: ChatOptions | None = None,
    ) -> RawCompletion:
        """Blocking call with a caller-supplied system prompt, unparsed."""
        ...

    async def is_available(self) -> bool:
        """Lightweight capability probe. Never raises."""
        ...
