"""
Shared fixtures for integration tests.

Integration tests run against a real PostgreSQL.
Requires: AGUICHAT_POSTGRES_URL pointing at a disposable database
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def db_pool() -> AsyncGenerator:
    """
    Create a database connection pool with a small fixture table.

    Skips when no database URL is configured.
    """
    import asyncpg

    database_url = os.getenv("AGUICHAT_POSTGRES_URL")
    if not database_url:
        pytest.skip("AGUICHAT_POSTGRES_URL not set")

    pool = await asyncpg.create_pool(database_url, min_size=1, max_size=2)
    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS aguichat_it_products (
                id integer PRIMARY KEY,
                name text NOT NULL,
                price numeric
            )
            """
        )
        await conn.execute("TRUNCATE aguichat_it_products")
        await conn.execute(
            "INSERT INTO aguichat_it_products VALUES (1, 'Widget', 9.5), (2, 'Gadget', 20)"
        )
    yield pool
    async with pool.acquire() as conn:
        await conn.execute("DROP TABLE IF EXISTS aguichat_it_products")
    await pool.close()
