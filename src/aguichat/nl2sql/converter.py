"""
Natural Language to SQL Conversion

Prompts the model for a single JSON object {sql, explanation, confidence}
and decodes it. When the reply is not valid JSON, a SELECT statement is
extracted from the free text instead and the result is marked with the
lower fallback confidence.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from aguichat.common.logging import truncate_for_log
from aguichat.common.telemetry import get_tracer
from aguichat.config import AguiChatConfig
from aguichat.exceptions import ConversionError, ProviderError
from aguichat.llm.protocols import ChatMessage, ChatOptions, LLMProvider, MessageRole
from aguichat.nl2sql.prompts import build_sql_system_prompt, build_sql_user_prompt
from aguichat.nl2sql.schema import SchemaColumn, format_schema_for_prompt

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

FALLBACK_EXPLANATION = "Generated SQL query from natural language"

_OPENING_FENCE = re.compile(r"^```(?:json|sql)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```\s*$")
_SELECT_SPAN = re.compile(r"SELECT[\s\S]*?(?=;|\Z)", re.IGNORECASE)


@dataclass(frozen=True)
class SQLConversionResult:
    """Generated SQL with a best-effort confidence score in [0, 1]."""

    sql: str
    explanation: str
    confidence: float
    used_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "explanation": self.explanation,
            "confidence": self.confidence,
        }


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    return _CLOSING_FENCE.sub("", cleaned).strip()


def extract_select_fallback(text: str) -> str:
    """
    Pull the first SELECT statement out of free text.

    The match runs from ``SELECT`` (any case) up to the first ``;`` or the
    end of the text. Returns an empty string when there is no SELECT.
    """
    match = _SELECT_SPAN.search(text)
    return match.group(0).strip() if match else ""


def _clamp_confidence(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, min(1.0, float(value)))


class SQLConverter:
    """
    Converts natural language questions into read-only SQL.

    Stateless apart from its settings, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        provider: LLMProvider,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        default_confidence: float = 0.8,
        fallback_confidence: float = 0.6,
    ):
        self._provider = provider
        self._options = ChatOptions(temperature=temperature, max_tokens=max_tokens)
        self._default_confidence = default_confidence
        self._fallback_confidence = fallback_confidence

    @classmethod
    def from_config(cls, provider: LLMProvider, config: AguiChatConfig) -> SQLConverter:
        return cls(
            provider,
            temperature=config.nl2sql_temperature,
            max_tokens=config.nl2sql_max_tokens,
            default_confidence=config.nl2sql_default_confidence,
            fallback_confidence=config.nl2sql_fallback_confidence,
        )

    async def convert(
        self,
        query: str,
        schema: Iterable[SchemaColumn],
        table_hints: list[str] | None = None,
    ) -> SQLConversionResult:
        """
        Convert a natural language query to SQL.

        Args:
            query: The user's question
            schema: Columns the SQL may reference
            table_hints: Optional tables to focus on

        Returns:
            SQLConversionResult, with the fallback confidence when the reply
            could not be decoded as JSON

        Raises:
            ConversionError: If the provider call fails or returns nothing
        """
        logger.info(f"Converting natural language to SQL: {query!r}")
        system_prompt = build_sql_system_prompt(format_schema_for_prompt(schema))
        messages = [
            ChatMessage(role=MessageRole.USER, content=build_sql_user_prompt(query, table_hints))
        ]

        with tracer.start_as_current_span("nl2sql.convert") as span:
            span.set_attribute("nl2sql.query_length", len(query))
            span.set_attribute("nl2sql.table_hints", len(table_hints or []))
            try:
                raw = await self._provider.complete(messages, system_prompt, self._options)
            except ProviderError as e:
                span.record_exception(e)
                raise ConversionError(query, e) from e

            content = raw.text.strip()
            if not content:
                raise ConversionError(query, ValueError("No response from LLM"))

            result = self._decode(content)
            span.set_attribute("nl2sql.confidence", result.confidence)
            span.set_attribute("nl2sql.fallback", result.used_fallback)
            return result

    def _decode(self, content: str) -> SQLConversionResult:
        cleaned = strip_code_fences(content)
        try:
            parsed = json.loads(cleaned)
        except (json.JSONDecodeError, RecursionError):
            parsed = None

        if isinstance(parsed, dict) and isinstance(parsed.get("sql"), str):
            logger.info(f"Parsed SQL: {parsed['sql']}")
            explanation = parsed.get("explanation")
            return SQLConversionResult(
                sql=parsed["sql"],
                explanation=explanation if isinstance(explanation, str) else "",
                confidence=_clamp_confidence(parsed.get("confidence"), self._default_confidence),
            )

        logger.warning(
            f"Failed to parse SQL JSON, using fallback extraction: {truncate_for_log(cleaned)}"
        )
        sql = extract_select_fallback(cleaned)
        logger.info(f"Extracted SQL via fallback: {sql}")
        return SQLConversionResult(
            sql=sql,
            explanation=FALLBACK_EXPLANATION,
            confidence=self._fallback_confidence,
            used_fallback=True,
        )
