"""
Data Questions

Answers natural language questions about the database: generate SQL,
check that it is read-only, run it, and render the rows as AGUI elements
with a short summary.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from aguichat.agui.elements import build_chart_element, build_sql_card, build_table_element
from aguichat.agui.models import ResponseEnvelope, UIElement
from aguichat.common.telemetry import get_tracer
from aguichat.exceptions import ConversionError, QueryExecutionError, UnsafeQueryError
from aguichat.llm.protocols import LLMProvider
from aguichat.nl2sql.converter import SQLConverter
from aguichat.nl2sql.guard import check_read_only
from aguichat.nl2sql.schema import SchemaSource
from aguichat.nl2sql.summary import summarize_results

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

NO_SQL_MESSAGE = "I couldn't turn that question into a SQL query. Try rephrasing it."


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs a checked read-only query and returns rows as mappings."""

    async def fetch(self, sql: str) -> list[dict[str, Any]]:
        ...


class AsyncpgQueryExecutor:
    """Executes queries on an asyncpg pool inside read-only transactions."""

    def __init__(self, pool: asyncpg.Pool, timeout: float | None = 30.0):
        self._pool = pool
        self._timeout = timeout

    async def fetch(self, sql: str) -> list[dict[str, Any]]:
        import asyncpg

        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction(readonly=True):
                    records = await conn.fetch(sql, timeout=self._timeout)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError) as e:
            raise QueryExecutionError(sql, str(e) or type(e).__name__) from e
        return [dict(record) for record in records]


async def create_db_pool(
    postgres_url: str,
    min_size: int = 1,
    max_size: int = 5,
) -> asyncpg.Pool:
    """
    Create a PostgreSQL connection pool.

    Args:
        postgres_url: Connection URL
        min_size: Minimum connections
        max_size: Maximum connections
    """
    import asyncpg

    logger.info(f"Creating database pool (min={min_size}, max={max_size})")
    pool = await asyncpg.create_pool(postgres_url, min_size=min_size, max_size=max_size)
    logger.info("Database pool created")
    return pool


class DataQuestionService:
    """
    End-to-end data question answering.

    Failures after the question has been understood (unsafe SQL, database
    errors) are answered in plain text rather than raised, so the caller
    always has something to render.
    """

    def __init__(
        self,
        provider: LLMProvider,
        schema_source: SchemaSource,
        executor: QueryExecutor,
        converter: SQLConverter | None = None,
    ):
        self._provider = provider
        self._schema_source = schema_source
        self._executor = executor
        self._converter = converter or SQLConverter(provider)

    async def answer(
        self,
        query: str,
        table_hints: list[str] | None = None,
    ) -> ResponseEnvelope:
        """
        Answer a natural language question about the data.

        Returns:
            Envelope with a summary as content and the SQL card, result
            table and (for numeric results) chart as elements
        """
        with tracer.start_as_current_span("data_question.answer") as span:
            schema = await self._schema_source.load_schema()

            try:
                conversion = await self._converter.convert(query, schema, table_hints)
            except ConversionError as e:
                span.record_exception(e)
                logger.error(f"SQL conversion failed: {e}")
                return ResponseEnvelope(
                    content=f"Sorry, I couldn't process that question. {e.message}"
                )

            if not conversion.sql:
                return ResponseEnvelope(content=NO_SQL_MESSAGE)

            span.set_attribute("data_question.confidence", conversion.confidence)

            try:
                sql = check_read_only(conversion.sql)
                rows = await self._executor.fetch(sql)
            except (UnsafeQueryError, QueryExecutionError) as e:
                span.record_exception(e)
                logger.error(f"Data question failed ({e.code}): {e.message}")
                return ResponseEnvelope(
                    content=f"The generated query could not be run. {e.message}\n\n{conversion.sql}"
                )

            span.set_attribute("data_question.row_count", len(rows))
            logger.info(f"Query returned {len(rows)} rows")

            summary = await summarize_results(self._provider, query, rows)
            sql_card = build_sql_card(sql, conversion.explanation, conversion.confidence)
            return ResponseEnvelope(content=summary, agui=self._elements(sql_card, rows))

    @staticmethod
    def _elements(sql_card: UIElement, rows: list[Mapping[str, Any]]) -> tuple[UIElement, ...]:
        elements = [sql_card]
        table = build_table_element(rows)
        if table is not None:
            elements.append(table)
        chart = build_chart_element(rows)
        if chart is not None:
            elements.append(chart)
        return tuple(elements)
