"""
Element Builders

Construct UI elements for query results returned by the database
collaborator, so data answers render as tables and charts rather than text.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from aguichat.agui.models import UIElement, UIElementKind, generate_element_id

PAGE_SIZE = 10
CHART_MAX_POINTS = 10
CHART_COLOR = "#36A2EB"


def _cell_value(value: Any) -> Any:
    """Make a database value JSON-renderable."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal | float):
        number = float(value)
        # NaN and Infinity are not valid JSON
        return number if math.isfinite(number) else str(value)
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    if value is None or isinstance(value, str | int | bool):
        return value
    # UUID, timedelta, inet, bytes and other driver types
    return str(value)


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float | Decimal):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def _chart_value(value: Any) -> float:
    """Numeric value for a chart point; non-numeric cells plot as 0."""
    if not _is_numeric(value):
        return 0.0
    number = float(value)
    return number if math.isfinite(number) else 0.0


def build_table_element(rows: Sequence[Mapping[str, Any]]) -> UIElement | None:
    """
    Build a sortable table from result rows.

    Headers come from the first row's keys. Pagination metadata is added
    once the result exceeds one page.
    """
    if not rows:
        return None

    headers = list(rows[0].keys())
    props: dict[str, Any] = {
        "headers": headers,
        "rows": [[_cell_value(row.get(h)) for h in headers] for row in rows],
        "sortable": True,
        "filterable": True,
    }
    if len(rows) > PAGE_SIZE:
        props["pagination"] = {"page": 1, "pageSize": PAGE_SIZE, "total": len(rows)}

    return UIElement(kind=UIElementKind.TABLE, id=generate_element_id(), props=props)


def build_chart_element(rows: Sequence[Mapping[str, Any]]) -> UIElement | None:
    """
    Build a bar chart of the first numeric column against the first column.

    Returns None when the result has a single column or no numeric column.
    """
    if not rows:
        return None

    headers = list(rows[0].keys())
    if len(headers) < 2:
        return None

    label_column = headers[0]
    numeric_columns = [h for h in headers[1:] if _is_numeric(rows[0].get(h))]
    if not numeric_columns:
        return None
    value_column = numeric_columns[0]

    sample = rows[:CHART_MAX_POINTS]
    return UIElement(
        kind=UIElementKind.CHART,
        id=generate_element_id(),
        props={
            "chartType": "bar",
            "data": {
                "labels": [str(row.get(label_column)) for row in sample],
                "datasets": [
                    {
                        "label": value_column,
                        "data": [_chart_value(row.get(value_column)) for row in sample],
                        "backgroundColor": CHART_COLOR,
                    }
                ],
            },
        },
    )


def build_sql_card(sql: str, explanation: str, confidence: float) -> UIElement:
    """Card showing the generated SQL with its explanation and confidence."""
    return UIElement(
        kind=UIElementKind.CARD,
        id=generate_element_id(),
        props={
            "title": "Generated SQL",
            "subtitle": f"Confidence: {confidence:.0%}",
            "content": f"{explanation}\n\n{sql}",
            "variant": "outlined",
        },
    )
