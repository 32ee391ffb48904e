"""Prompt templates for SQL generation and result summaries."""

from __future__ import annotations

SQL_SYSTEM_PROMPT = """Convert natural language to PostgreSQL SELECT queries.

{schema}

CRITICAL RULES:
1. ONLY use table/column names that EXIST in the schema above
2. NEVER guess or assume column names
3. For aggregates, every non-aggregated column MUST be in GROUP BY
4. Only read-only SELECT statements are allowed
5. Add LIMIT 100 for safety
6. Write the SQL on a single line

Return ONLY one JSON object, without markdown code fences:
{{"sql": "...", "explanation": "...", "confidence": 0.0-1.0}}"""

SQL_USER_PROMPT = 'Convert this natural language query to SQL: "{query}"'

TABLE_HINT_LINE = "Focus on these tables: {tables}"

SUMMARY_SYSTEM_PROMPT = """You are a data analyst. Explain query results clearly and concisely.

FORMAT RULES:
1. Start with a brief overview sentence
2. Use markdown: **bold** for key metrics, bullet points with "-"
3. Structure: overview, then 3-5 key findings, then one notable insight
4. Include specific numbers with context
5. Keep it under 150 words
6. No technical jargon"""

SUMMARY_USER_PROMPT = """User asked: "{query}"

Results: {row_count} records
Sample data (first {sample_size}):
{sample}

Provide a clear, formatted summary."""


def build_sql_system_prompt(schema_text: str) -> str:
    return SQL_SYSTEM_PROMPT.format(schema=schema_text)


def build_sql_user_prompt(query: str, table_hints: list[str] | None = None) -> str:
    prompt = SQL_USER_PROMPT.format(query=query)
    if table_hints:
        prompt += "\n\n" + TABLE_HINT_LINE.format(tables=", ".join(table_hints))
    return prompt
