"""Conversation persistence."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from aguichat.chat.models import Conversation


@runtime_checkable
class ConversationStorage(Protocol):
    """Protocol for conversation persistence."""

    async def get(self, conversation_id: str) -> Conversation | None:
        """Get a conversation by ID."""
        ...

    async def save(self, conversation: Conversation) -> None:
        """Insert or replace a conversation."""
        ...

    async def list_all(self) -> list[Conversation]:
        """All conversations, in no particular order."""
        ...


class InMemoryConversationStorage:
    """In-memory conversation storage. Contents are lost on restart."""

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}

    async def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    async def save(self, conversation: Conversation) -> None:
        self._conversations[conversation.id] = conversation

    async def list_all(self) -> list[Conversation]:
        return list(self._conversations.values())
