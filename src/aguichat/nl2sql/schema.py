"""
Schema Descriptors

Rows describing the queryable columns of a database, plus the compact
per-table listing that is embedded into the NL-to-SQL prompt.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

VIEW_TABLE_TYPE = "VIEW"

_SCHEMA_QUERY = """
SELECT
    c.table_name,
    c.column_name,
    c.data_type,
    c.is_nullable,
    c.column_default,
    t.table_type
FROM information_schema.columns c
JOIN information_schema.tables t
    ON t.table_schema = c.table_schema AND t.table_name = c.table_name
WHERE c.table_schema = $1
ORDER BY c.table_name, c.ordinal_position
"""


@dataclass(frozen=True)
class SchemaColumn:
    """One column of one table or view."""

    table_name: str
    column_name: str
    data_type: str
    nullable: bool = True
    default_value: str | None = None
    table_type: str | None = None

    @property
    def is_view(self) -> bool:
        return (self.table_type or "").upper() == VIEW_TABLE_TYPE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SchemaColumn:
        """
        Build from an information_schema style row.

        ``nullable`` may arrive as a bool or as the 'YES'/'NO' strings
        PostgreSQL reports in ``is_nullable``.
        """
        nullable = row.get("nullable", row.get("is_nullable", True))
        if isinstance(nullable, str):
            nullable = nullable.strip().upper() == "YES"
        default = row.get("default_value", row.get("column_default"))
        return cls(
            table_name=str(row["table_name"]),
            column_name=str(row["column_name"]),
            data_type=str(row.get("data_type") or "unknown"),
            nullable=bool(nullable),
            default_value=None if default is None else str(default),
            table_type=row.get("table_type"),
        )


def format_schema_for_prompt(schema: Iterable[SchemaColumn]) -> str:
    """
    Render schema rows as a per-table column listing.

    Tables keep their first-seen order, with views listed before base
    tables. Each column is shown as ``name (type) NULL|NOT NULL``.
    """
    tables: dict[str, list[SchemaColumn]] = {}
    views: set[str] = set()
    for column in schema:
        tables.setdefault(column.table_name, []).append(column)
        if column.is_view:
            views.add(column.table_name)

    if not tables:
        return "AVAILABLE TABLES & COLUMNS: none"

    def render(name: str) -> str:
        cols = ", ".join(
            f"{c.column_name} ({c.data_type}) {'NULL' if c.nullable else 'NOT NULL'}"
            for c in tables[name]
        )
        return f"{name}: {cols}"

    lines = ["AVAILABLE TABLES & COLUMNS (use EXACT names):", ""]
    view_names = [name for name in tables if name in views]
    if view_names:
        lines.append("VIEWS:")
        lines.extend(render(name) for name in view_names)
        lines.append("")
        lines.append("TABLES:")
    lines.extend(render(name) for name in tables if name not in views)
    return "\n".join(lines)


@runtime_checkable
class SchemaSource(Protocol):
    """Supplies the schema rows the converter prompts with."""

    async def load_schema(self) -> list[SchemaColumn]:
        ...


class StaticSchemaSource:
    """Schema source over a fixed list of rows (files, tests)."""

    def __init__(self, columns: Iterable[SchemaColumn]):
        self._columns = list(columns)

    async def load_schema(self) -> list[SchemaColumn]:
        return list(self._columns)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> StaticSchemaSource:
        return cls(SchemaColumn.from_row(row) for row in rows)


class PostgresSchemaSource:
    """Reads column metadata from information_schema through an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool, schema_name: str = "public"):
        self._pool = pool
        self._schema_name = schema_name

    async def load_schema(self) -> list[SchemaColumn]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(_SCHEMA_QUERY, self._schema_name)

        columns = [SchemaColumn.from_row(dict(row)) for row in rows]
        table_count = len({c.table_name for c in columns})
        logger.info(
            f"Loaded schema '{self._schema_name}': {table_count} tables, {len(columns)} columns"
        )
        return columns
