"""
Response Envelope Parser

Recovers the ``{"content": ..., "agui": [...]}`` envelope from raw model
text. Models wrap the JSON in markdown fences, prefix it with prose or
return something that is not JSON at all; parse_envelope() handles all of
these and always returns a usable envelope.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from aguichat.agui.models import ResponseEnvelope, UIElement
from aguichat.common.logging import truncate_for_log

logger = logging.getLogger(__name__)


def extract_json_candidate(raw_text: str) -> str:
    """
    Return the span from the first ``{`` to the last ``}`` inclusive.

    Falls back to the whole text when there is no such span. Nested braces
    inside string values are preserved because the whole span is decoded
    at once rather than brace-counted.
    """
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end < start:
        return raw_text
    return raw_text[start : end + 1]


def parse_ui_elements(raw_elements: Any) -> tuple[UIElement, ...]:
    """Convert a decoded ``agui`` value into elements with unique ids."""
    if not isinstance(raw_elements, list):
        return ()

    seen_ids: set[str] = set()
    elements = []
    for raw in raw_elements:
        element = UIElement.from_dict(raw, seen_ids)
        if element is not None:
            elements.append(element)
    return tuple(elements)


def parse_envelope(raw_text: str) -> ResponseEnvelope:
    """
    Parse raw model output into a ResponseEnvelope. Never raises.

    Args:
        raw_text: Complete text returned by the provider

    Returns:
        Envelope whose content is the decoded ``content`` field, or the raw
        text itself when the field is missing/empty or decoding fails.
    """
    if raw_text is None:
        raw_text = ""

    candidate = extract_json_candidate(raw_text)
    try:
        decoded = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        logger.warning(
            f"Failed to parse AGUI response as JSON ({e}); "
            f"falling back to plain text: {truncate_for_log(raw_text)}"
        )
        return ResponseEnvelope(content=raw_text)

    if not isinstance(decoded, dict):
        logger.warning(
            f"AGUI response decoded to {type(decoded).__name__}, not an object; "
            "using raw text"
        )
        return ResponseEnvelope(content=raw_text)

    content = decoded.get("content")
    if not isinstance(content, str) or not content.strip():
        # Never drop the answer because the model skipped the content key
        content = raw_text

    return ResponseEnvelope(content=content, agui=parse_ui_elements(decoded.get("agui")))
