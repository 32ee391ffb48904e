"""
Conversation Models

Data models for multi-turn chat history.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from aguichat.agui.models import UIElement
from aguichat.llm.protocols import ChatMessage, MessageRole

DEFAULT_TITLE = "New Conversation"
TITLE_MAX_CHARS = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return uuid.uuid4().hex


def title_from_message(content: str) -> str:
    """First characters of the opening message, with an ellipsis when cut."""
    if len(content) > TITLE_MAX_CHARS:
        return content[:TITLE_MAX_CHARS] + "..."
    return content


@dataclass(frozen=True)
class StoredMessage:
    """A message persisted in a conversation."""

    role: MessageRole
    content: str
    agui: tuple[UIElement, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=generate_id)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.agui:
            data["agui"] = [element.to_dict() for element in self.agui]
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass
class Conversation:
    """
    A conversation and its message history.

    Only user and assistant messages are stored; the system contract is
    added by the provider on every call.
    """

    id: str = field(default_factory=generate_id)
    title: str = DEFAULT_TITLE
    messages: list[StoredMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def add_message(self, message: StoredMessage) -> None:
        self.messages.append(message)
        self.updated_at = _utcnow()

    def history(self) -> list[ChatMessage]:
        return [message.to_chat_message() for message in self.messages]

    def to_dict(self, include_messages: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "messageCount": len(self.messages),
        }
        if include_messages:
            data["messages"] = [message.to_dict() for message in self.messages]
        return data
