"""Integration tests for the PostgreSQL schema source and query executor."""

import pytest

from aguichat.chat.data import AsyncpgQueryExecutor
from aguichat.exceptions import QueryExecutionError
from aguichat.nl2sql.schema import PostgresSchemaSource, format_schema_for_prompt

pytestmark = pytest.mark.integration


class TestPostgresData:
    """Schema introspection and read-only execution against PostgreSQL."""

    @pytest.mark.asyncio
    async def test_schema_lists_fixture_table(self, db_pool) -> None:
        columns = await PostgresSchemaSource(db_pool).load_schema()

        ours = [c for c in columns if c.table_name == "aguichat_it_products"]
        assert [c.column_name for c in ours] == ["id", "name", "price"]
        assert ours[1].nullable is False
        assert "aguichat_it_products: id (integer) NOT NULL" in format_schema_for_prompt(ours)

    @pytest.mark.asyncio
    async def test_select(self, db_pool) -> None:
        executor = AsyncpgQueryExecutor(db_pool, timeout=10.0)

        rows = await executor.fetch("SELECT name FROM aguichat_it_products ORDER BY id")

        assert rows == [{"name": "Widget"}, {"name": "Gadget"}]

    @pytest.mark.asyncio
    async def test_writes_refused_by_read_only_transaction(self, db_pool) -> None:
        executor = AsyncpgQueryExecutor(db_pool)

        with pytest.raises(QueryExecutionError):
            await executor.fetch("DELETE FROM aguichat_it_products")

        rows = await executor.fetch("SELECT count(*) AS n FROM aguichat_it_products")
        assert rows == [{"n": 2}]
