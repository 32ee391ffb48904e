"""
Chat Service

Keeps conversation history and routes each new user message through the
provider, either as one parsed response or as a normalized event stream.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Literal, overload

from aguichat.agui.models import (
    DoneEvent,
    StreamEvent,
    TextEvent,
    UIElement,
    UIElementEvent,
)
from aguichat.agui.stream import EventStream
from aguichat.chat.models import (
    DEFAULT_TITLE,
    Conversation,
    StoredMessage,
    title_from_message,
)
from aguichat.chat.storage import ConversationStorage, InMemoryConversationStorage
from aguichat.llm.protocols import LLMProvider, MessageRole

logger = logging.getLogger(__name__)


class ChatService:
    """
    Conversation orchestration over one provider.

    The provider is chosen by the caller at construction; this class never
    looks at provider names.
    """

    def __init__(
        self,
        provider: LLMProvider,
        storage: ConversationStorage | None = None,
    ):
        self._provider = provider
        self._storage = storage or InMemoryConversationStorage()

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    async def create_conversation(self, title: str | None = None) -> Conversation:
        conversation = Conversation(title=title or DEFAULT_TITLE)
        await self._storage.save(conversation)
        logger.info(f"Created new conversation: {conversation.id}")
        return conversation

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        return await self._storage.get(conversation_id)

    async def list_conversations(self) -> list[Conversation]:
        """All conversations, most recently updated first."""
        conversations = await self._storage.list_all()
        return sorted(conversations, key=lambda c: c.updated_at, reverse=True)

    async def _get_or_recover(self, conversation_id: str) -> Conversation:
        conversation = await self._storage.get(conversation_id)
        if conversation is None:
            # Clients keep their id across server restarts
            logger.warning(f"Conversation {conversation_id} not found, creating new one")
            conversation = Conversation(id=conversation_id, title="Recovered Conversation")
            await self._storage.save(conversation)
        return conversation

    @overload
    async def send_message(
        self, conversation_id: str, content: str, stream: Literal[True] = ...
    ) -> EventStream: ...

    @overload
    async def send_message(
        self, conversation_id: str, content: str, stream: Literal[False]
    ) -> StoredMessage: ...

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        stream: bool = True,
    ) -> EventStream | StoredMessage:
        """
        Append a user message and produce the assistant's reply.

        Args:
            conversation_id: Target conversation; unknown ids are recovered
                as a new conversation under the same id
            content: User message text
            stream: Return an EventStream instead of waiting for the reply

        Returns:
            The stored assistant message, or an EventStream that stores the
            assistant message once its ``done`` event has been consumed

        Raises:
            ValueError: If content is empty
            ProviderError: Non-streaming mode only, when the provider fails
        """
        if not content or not content.strip():
            raise ValueError("content must not be empty")

        conversation = await self._get_or_recover(conversation_id)
        conversation.add_message(StoredMessage(role=MessageRole.USER, content=content))
        if len(conversation.messages) == 1:
            conversation.title = title_from_message(content)
        await self._storage.save(conversation)

        logger.info(f"Sending message to {conversation.id}, streaming: {stream}")
        if stream:
            upstream = self._provider.stream_chat(conversation.history())
            return EventStream(
                self._record_stream(conversation, upstream),
                metadata=upstream.metadata,
            )
        return await self._generate_response(conversation)

    async def _generate_response(self, conversation: Conversation) -> StoredMessage:
        try:
            result = await self._provider.chat(conversation.history())
        except Exception as e:
            logger.error(f"Error generating response for {conversation.id}: {e}")
            raise

        assistant = StoredMessage(
            role=MessageRole.ASSISTANT,
            content=result.envelope.content,
            agui=result.envelope.agui,
            metadata={
                "model": result.model,
                "tokens": result.total_tokens,
                "processingTime": result.elapsed_ms,
            },
        )
        conversation.add_message(assistant)
        await self._storage.save(conversation)
        return assistant

    async def _record_stream(
        self,
        conversation: Conversation,
        upstream: EventStream,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Pass events through, assembling the assistant message as they go."""
        text_parts: list[str] = []
        elements: list[UIElement] = []
        try:
            async for event in upstream:
                if isinstance(event, TextEvent):
                    text_parts.append(event.content)
                elif isinstance(event, UIElementEvent):
                    elements.append(event.agui)
                elif isinstance(event, DoneEvent):
                    conversation.add_message(
                        StoredMessage(
                            role=MessageRole.ASSISTANT,
                            content="".join(text_parts),
                            agui=tuple(elements),
                            metadata={
                                "model": upstream.metadata.get("model"),
                                "tokens": event.total_tokens,
                            },
                        )
                    )
                    await self._storage.save(conversation)
                yield event
        finally:
            await upstream.aclose()
