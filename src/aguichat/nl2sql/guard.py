"""
Read-only SQL guard.

Parses generated SQL with sqlglot before it reaches the database and
rejects anything that is not a single query statement.
"""

from __future__ import annotations

import logging

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError

from aguichat.exceptions import UnsafeQueryError

logger = logging.getLogger(__name__)


def _optional_exp(name: str) -> type[exp.Expression] | None:
    candidate = getattr(exp, name, None)
    if isinstance(candidate, type) and issubclass(candidate, exp.Expression):
        return candidate
    return None


_FORBIDDEN_NAMES = (
    "Insert",
    "Update",
    "Delete",
    "Merge",
    "Drop",
    "Alter",
    "Create",
    # Renamed across sqlglot releases
    "Truncate",
    "TruncateTable",
    "Grant",
    "Revoke",
    "Command",
    "Into",
)

FORBIDDEN_NODE_TYPES: tuple[type[exp.Expression], ...] = tuple(
    node_type
    for node_type in (_optional_exp(name) for name in _FORBIDDEN_NAMES)
    if node_type is not None
)

ALLOWED_ROOT_TYPES: tuple[type[exp.Expression], ...] = (
    exp.Query,
    exp.Select,
    exp.Union,
    exp.Intersect,
    exp.Except,
)


def find_violations(sql: str, dialect: str = "postgres") -> list[str]:
    """Return the reasons ``sql`` is unsafe to run; empty when it is safe."""
    normalized = sql.strip().rstrip(";").strip()
    if not normalized:
        return ["SQL is empty."]

    try:
        statements = [s for s in sqlglot.parse(normalized, read=dialect) if s is not None]
    except ParseError as e:
        return [f"Invalid SQL: {e}"]

    if len(statements) != 1:
        return [f"Expected exactly one statement, found {len(statements)}."]

    expression = statements[0]
    violations: list[str] = []
    if not isinstance(expression, ALLOWED_ROOT_TYPES):
        violations.append("Only SELECT query forms are allowed.")

    forbidden = {
        node.key.upper()
        for node_type in FORBIDDEN_NODE_TYPES
        for node in expression.find_all(node_type)
    }
    if forbidden:
        violations.append("Forbidden SQL statement(s) detected: " + ", ".join(sorted(forbidden)))

    if not any(True for _ in expression.find_all(exp.Select)):
        violations.append("SQL must contain a SELECT statement.")
    return violations


def check_read_only(sql: str, dialect: str = "postgres") -> str:
    """
    Ensure ``sql`` is a single read-only query.

    Returns:
        The SQL with surrounding whitespace and a trailing semicolon removed

    Raises:
        UnsafeQueryError: If any violation is found
    """
    violations = find_violations(sql, dialect)
    if violations:
        logger.warning(f"Rejected SQL ({'; '.join(violations)}): {sql}")
        raise UnsafeQueryError(sql, violations)
    return sql.strip().rstrip(";").strip()
