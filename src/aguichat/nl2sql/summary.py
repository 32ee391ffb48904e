"""Natural language summaries of query results."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from aguichat.exceptions import ProviderError
from aguichat.llm.protocols import ChatMessage, ChatOptions, LLMProvider, MessageRole
from aguichat.nl2sql.prompts import SUMMARY_SYSTEM_PROMPT, SUMMARY_USER_PROMPT

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data was found matching your query."
EMPTY_SUMMARY_MESSAGE = "Results retrieved successfully."
SAMPLE_SIZE = 3

_SUMMARY_OPTIONS = ChatOptions(temperature=0.3, max_tokens=500)


def row_count_message(count: int) -> str:
    return f"Found {count} record{'s' if count != 1 else ''} matching your query."


async def summarize_results(
    provider: LLMProvider,
    query: str,
    rows: Sequence[Mapping[str, Any]],
) -> str:
    """
    Ask the model for a short markdown summary of query results.

    Only the first few rows are sent. Never raises: a provider failure
    degrades to a row count sentence.
    """
    if not rows:
        return NO_DATA_MESSAGE

    sample = json.dumps([dict(r) for r in rows[:SAMPLE_SIZE]], indent=2, default=str)
    messages = [
        ChatMessage(
            role=MessageRole.USER,
            content=SUMMARY_USER_PROMPT.format(
                query=query,
                row_count=len(rows),
                sample_size=SAMPLE_SIZE,
                sample=sample,
            ),
        )
    ]

    try:
        raw = await provider.complete(messages, SUMMARY_SYSTEM_PROMPT, _SUMMARY_OPTIONS)
    except ProviderError as e:
        logger.error(f"Error generating data summary: {e}")
        return row_count_message(len(rows))

    return raw.text.strip() or EMPTY_SUMMARY_MESSAGE
