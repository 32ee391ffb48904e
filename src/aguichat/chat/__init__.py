"""
Chat Orchestration

Conversation history, chat turns against the configured provider, and
end-to-end answers to data questions.
"""

from aguichat.chat.data import (
    AsyncpgQueryExecutor,
    DataQuestionService,
    QueryExecutor,
    create_db_pool,
)
from aguichat.chat.models import Conversation, StoredMessage
from aguichat.chat.service import ChatService
from aguichat.chat.storage import ConversationStorage, InMemoryConversationStorage

__all__ = [
    "AsyncpgQueryExecutor",
    "ChatService",
    "Conversation",
    "ConversationStorage",
    "DataQuestionService",
    "InMemoryConversationStorage",
    "QueryExecutor",
    "StoredMessage",
    "create_db_pool",
]
