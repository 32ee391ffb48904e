"""Tests for AGUI element models and result element builders."""

from __future__ import annotations

import ipaddress
import json
import re
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from aguichat.agui.elements import (
    CHART_COLOR,
    build_chart_element,
    build_sql_card,
    build_table_element,
)
from aguichat.agui.models import (
    MAX_ELEMENT_DEPTH,
    ErrorEvent,
    ResponseEnvelope,
    TextEvent,
    UIElement,
    UIElementEvent,
    UIElementKind,
    generate_element_id,
)


class TestGenerateElementId:
    """Tests for element id generation."""

    def test_format(self) -> None:
        assert re.fullmatch(r"agui-\d+-[a-z0-9]{9}", generate_element_id())

    def test_ids_do_not_collide(self) -> None:
        ids = {generate_element_id() for _ in range(500)}
        assert len(ids) == 500


class TestUIElement:
    """Tests for UIElement conversion."""

    def test_round_trip_shape(self) -> None:
        element = UIElement.from_dict({"type": "card", "id": "c1", "props": {"title": "T"}})
        assert element is not None
        assert element.to_dict() == {"type": "card", "id": "c1", "props": {"title": "T"}}

    def test_children_serialized_only_when_present(self) -> None:
        element = UIElement.from_dict(
            {"type": "card", "id": "p", "children": [{"type": "text", "id": "c"}]}
        )
        assert element is not None
        data = element.to_dict()
        assert data["children"] == [{"type": "text", "id": "c", "props": {}}]

    def test_children_below_depth_limit_dropped(self) -> None:
        data: dict = {"type": "text", "id": "leaf"}
        for level in range(MAX_ELEMENT_DEPTH + 10):
            data = {"type": "card", "id": f"n{level}", "children": [data]}

        element = UIElement.from_dict(data)

        depth = 0
        while element is not None and element.children:
            element = element.children[0]
            depth += 1
        assert depth == MAX_ELEMENT_DEPTH

    def test_unknown_kind_parses_to_none(self) -> None:
        assert UIElementKind.parse("carousel") is None
        assert UIElementKind.parse(None) is None


class TestEnvelopeAndEvents:
    """Tests for envelope and event wire shapes."""

    def test_envelope_to_dict_always_has_agui_list(self) -> None:
        assert ResponseEnvelope(content="x").to_dict() == {"content": "x", "agui": []}
        assert not ResponseEnvelope(content="x").has_elements

    def test_event_shapes(self) -> None:
        element = UIElement(kind=UIElementKind.BUTTON, id="b1", props={"text": "Go"})

        assert TextEvent(content="hi").to_dict() == {"type": "text", "content": "hi"}
        assert UIElementEvent(agui=element).to_dict() == {
            "type": "agui",
            "agui": {"type": "button", "id": "b1", "props": {"text": "Go"}},
        }
        assert ErrorEvent(error="bad").to_dict() == {"type": "error", "error": "bad"}

    def test_only_error_and_done_are_terminal(self) -> None:
        element = UIElement(kind=UIElementKind.TEXT, id="t")
        assert not TextEvent(content="a").terminal
        assert not UIElementEvent(agui=element).terminal
        assert ErrorEvent(error="e").terminal


class TestBuildTableElement:
    """Tests for build_table_element."""

    def test_headers_and_rows(self) -> None:
        rows = [{"name": "Ann", "age": 31}, {"name": "Bo", "age": 27}]
        table = build_table_element(rows)

        assert table is not None
        assert table.kind is UIElementKind.TABLE
        assert table.props["headers"] == ["name", "age"]
        assert table.props["rows"] == [["Ann", 31], ["Bo", 27]]
        assert table.props["sortable"] is True
        assert table.props["filterable"] is True
        assert "pagination" not in table.props

    def test_pagination_over_one_page(self) -> None:
        table = build_table_element([{"n": i} for i in range(11)])
        assert table is not None
        assert table.props["pagination"] == {"page": 1, "pageSize": 10, "total": 11}

    def test_database_values_are_json_friendly(self) -> None:
        rows = [
            {
                "at": datetime(2024, 1, 2, 3, 4, 5),
                "day": date(2024, 1, 2),
                "amount": Decimal("12.50"),
                "tags": ["a", "b"],
            }
        ]
        table = build_table_element(rows)
        assert table is not None
        assert table.props["rows"] == [
            ["2024-01-02T03:04:05", "2024-01-02", 12.5, '["a", "b"]']
        ]

    def test_driver_types_rendered_as_text(self) -> None:
        row_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
        rows = [
            {
                "id": row_id,
                "elapsed": timedelta(minutes=5),
                "opens": time(9, 30),
                "ip": ipaddress.ip_address("10.0.0.1"),
                "blob": b"ab",
                "ratio": Decimal("NaN"),
                "score": float("inf"),
            }
        ]
        table = build_table_element(rows)

        assert table is not None
        assert table.props["rows"] == [
            [str(row_id), "0:05:00", "09:30:00", "10.0.0.1", "b'ab'", "NaN", "inf"]
        ]
        json.dumps(table.to_dict(), allow_nan=False)

    def test_empty_rows(self) -> None:
        assert build_table_element([]) is None


class TestBuildChartElement:
    """Tests for build_chart_element."""

    def test_bar_chart_from_first_numeric_column(self) -> None:
        rows = [
            {"department": "Ops", "city": "Leeds", "headcount": 12},
            {"department": "IT", "city": "York", "headcount": 7},
        ]
        chart = build_chart_element(rows)

        assert chart is not None
        assert chart.props["chartType"] == "bar"
        data = chart.props["data"]
        assert data["labels"] == ["Ops", "IT"]
        assert data["datasets"][0]["label"] == "headcount"
        assert data["datasets"][0]["data"] == [12.0, 7.0]
        assert data["datasets"][0]["backgroundColor"] == CHART_COLOR

    def test_limited_to_ten_points(self) -> None:
        chart = build_chart_element([{"k": str(i), "v": i} for i in range(25)])
        assert chart is not None
        assert len(chart.props["data"]["labels"]) == 10

    def test_numeric_strings_count_as_numeric(self) -> None:
        chart = build_chart_element([{"k": "a", "v": "3.5"}])
        assert chart is not None
        assert chart.props["data"]["datasets"][0]["data"] == [3.5]

    def test_no_chart_without_numeric_column(self) -> None:
        assert build_chart_element([{"a": "x", "b": "y"}]) is None

    def test_no_chart_for_single_column(self) -> None:
        assert build_chart_element([{"count": 3}]) is None

    def test_mixed_column_plots_non_numeric_as_zero(self) -> None:
        rows = [
            {"name": "a", "zip": "12345"},
            {"name": "b", "zip": "K1A 0B6"},
            {"name": "c", "zip": None},
            {"name": "d", "zip": "nan"},
        ]
        chart = build_chart_element(rows)

        assert chart is not None
        assert chart.props["data"]["datasets"][0]["data"] == [12345.0, 0.0, 0.0, 0.0]
        json.dumps(chart.to_dict(), allow_nan=False)

    def test_booleans_are_not_numeric(self) -> None:
        assert build_chart_element([{"a": "x", "active": True}]) is None


class TestBuildSqlCard:
    """Tests for build_sql_card."""

    def test_card_props(self) -> None:
        card = build_sql_card("SELECT 1", "One row", 0.85)

        assert card.kind is UIElementKind.CARD
        assert card.props["title"] == "Generated SQL"
        assert card.props["subtitle"] == "Confidence: 85%"
        assert "SELECT 1" in card.props["content"]
        assert "One row" in card.props["content"]
