"""Tests for the read-only SQL guard."""

from __future__ import annotations

import pytest

from aguichat.exceptions import UnsafeQueryError
from aguichat.nl2sql.guard import check_read_only, find_violations


class TestCheckReadOnly:
    """Tests for check_read_only."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM products LIMIT 10",
            "select name, count(*) from orders group by name",
            "WITH recent AS (SELECT * FROM orders) SELECT * FROM recent",
            "SELECT id FROM a UNION SELECT id FROM b",
            "SELECT * FROM products;",
        ],
    )
    def test_read_only_queries_pass(self, sql: str) -> None:
        assert check_read_only(sql) == sql.rstrip(";")

    @pytest.mark.parametrize(
        "sql",
        [
            "DELETE FROM products",
            "UPDATE products SET price = 0",
            "INSERT INTO products (id) VALUES (1)",
            "DROP TABLE products",
            "TRUNCATE products",
            "ALTER TABLE products ADD COLUMN x int",
            "CREATE TABLE t (id int)",
            "GRANT SELECT ON products TO public",
        ],
    )
    def test_mutations_rejected(self, sql: str) -> None:
        with pytest.raises(UnsafeQueryError) as exc_info:
            check_read_only(sql)
        assert exc_info.value.code == "UNSAFE_SQL"
        assert exc_info.value.violations

    def test_stacked_statements_rejected(self) -> None:
        with pytest.raises(UnsafeQueryError) as exc_info:
            check_read_only("SELECT 1; DROP TABLE products")
        assert "exactly one statement" in exc_info.value.violations[0]

    def test_select_into_rejected(self) -> None:
        with pytest.raises(UnsafeQueryError):
            check_read_only("SELECT * INTO backup FROM products")

    def test_empty_sql_rejected(self) -> None:
        assert find_violations("  ;  ") == ["SQL is empty."]

    def test_unparseable_sql_rejected(self) -> None:
        violations = find_violations("SELECT * FROM products WHERE (price > 1")
        assert violations
        assert violations[0].startswith("Invalid SQL")
