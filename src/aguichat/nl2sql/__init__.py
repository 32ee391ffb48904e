"""
NL-to-SQL Pipeline

Schema rendering, SQL generation with fallback extraction, the read-only
guard applied before execution, and result summaries.
"""

from aguichat.nl2sql.converter import (
    SQLConversionResult,
    SQLConverter,
    extract_select_fallback,
    strip_code_fences,
)
from aguichat.nl2sql.guard import check_read_only, find_violations
from aguichat.nl2sql.schema import (
    PostgresSchemaSource,
    SchemaColumn,
    SchemaSource,
    StaticSchemaSource,
    format_schema_for_prompt,
)
from aguichat.nl2sql.summary import summarize_results

__all__ = [
    "PostgresSchemaSource",
    "SQLConversionResult",
    "SQLConverter",
    "SchemaColumn",
    "SchemaSource",
    "StaticSchemaSource",
    "check_read_only",
    "extract_select_fallback",
    "find_violations",
    "format_schema_for_prompt",
    "strip_code_fences",
    "summarize_results",
]
