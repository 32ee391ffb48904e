"""
AGUI (Agentic UI) response layer.

Normalizes raw model output into typed envelopes and event streams:
- models: UIElement, ResponseEnvelope and the StreamEvent union
- parser: tolerant envelope extraction from raw text
- stream: buffer-then-emit aggregation of provider token streams
- elements: builders for tables, charts and cards from query results
"""

from aguichat.agui.models import (
    DoneEvent,
    ErrorEvent,
    ResponseEnvelope,
    StreamEvent,
    TextEvent,
    UIElement,
    UIElementEvent,
    UIElementKind,
    generate_element_id,
)
from aguichat.agui.parser import parse_envelope
from aguichat.agui.stream import EventStream, StreamFragment, aggregate_stream

__all__ = [
    "DoneEvent",
    "ErrorEvent",
    "EventStream",
    "ResponseEnvelope",
    "StreamEvent",
    "StreamFragment",
    "TextEvent",
    "UIElement",
    "UIElementEvent",
    "UIElementKind",
    "aggregate_stream",
    "generate_element_id",
    "parse_envelope",
]
