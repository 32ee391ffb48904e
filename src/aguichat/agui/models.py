"""
AGUI Models

Typed response envelope, UI element and stream event records. These are
the only shapes that leave the core: raw provider output is always
normalized into them first.
"""

from __future__ import annotations

import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Children nested below this level are dropped
MAX_ELEMENT_DEPTH = 32


class UIElementKind(str, Enum):
    """Closed set of renderable element kinds."""

    BUTTON = "button"
    TABLE = "table"
    FORM = "form"
    CARD = "card"
    LIST = "list"
    CHART = "chart"
    TEXT = "text"

    @classmethod
    def parse(cls, value: Any) -> UIElementKind | None:
        """Return the kind for a raw tag, or None if it is not in the set."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


def generate_element_id() -> str:
    """Return ``agui-<epoch ms>-<9 random base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"agui-{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class UIElement:
    """
    A renderer-agnostic description of one interactive widget.

    ``props`` is kind-specific (e.g. ``headers``/``rows`` for tables,
    ``chartType``/``data`` for charts) and passed through untouched.
    """

    kind: UIElementKind
    id: str
    props: dict[str, Any] = field(default_factory=dict)
    children: tuple[UIElement, ...] = ()

    @classmethod
    def from_dict(
        cls,
        data: Any,
        seen_ids: set[str] | None = None,
        depth: int = 0,
    ) -> UIElement | None:
        """
        Build an element from decoded JSON.

        Returns None when the value is not an object or carries an unknown
        ``type``. Missing or duplicate ids (tracked in ``seen_ids``) are
        replaced with generated ones. Children nested deeper than
        MAX_ELEMENT_DEPTH are dropped.
        """
        if not isinstance(data, dict):
            logger.warning(f"Dropping non-object UI element: {type(data).__name__}")
            return None

        kind = UIElementKind.parse(data.get("type"))
        if kind is None:
            logger.warning(f"Dropping UI element with unknown type: {data.get('type')!r}")
            return None

        seen = seen_ids if seen_ids is not None else set()
        element_id = data.get("id")
        if not isinstance(element_id, str) or not element_id or element_id in seen:
            element_id = generate_element_id()
            while element_id in seen:
                element_id = generate_element_id()
        seen.add(element_id)

        props = data.get("props")
        if not isinstance(props, dict):
            props = {}

        children: list[UIElement] = []
        raw_children = data.get("children")
        if isinstance(raw_children, list) and raw_children and depth >= MAX_ELEMENT_DEPTH:
            logger.warning(f"Dropping UI element children nested deeper than {MAX_ELEMENT_DEPTH}")
        elif isinstance(raw_children, list):
            for raw_child in raw_children:
                child = cls.from_dict(raw_child, seen, depth + 1)
                if child is not None:
                    children.append(child)

        return cls(kind=kind, id=element_id, props=props, children=tuple(children))

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: ``{type, id, props, children?}``."""
        result: dict[str, Any] = {
            "type": self.kind.value,
            "id": self.id,
            "props": self.props,
        }
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    Structured model answer: narrative text plus optional UI elements.

    ``content`` is never empty when produced by the parser; ``agui`` is
    an empty tuple rather than None when there are no elements.
    """

    content: str
    agui: tuple[UIElement, ...] = ()

    @property
    def has_elements(self) -> bool:
        return len(self.agui) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "agui": [element.to_dict() for element in self.agui],
        }


# =============================================================================
# Stream Events
# =============================================================================


class StreamEvent:
    """
    Base for the normalized outbound event union.

    Exactly one payload field is populated per concrete subclass, matching
    its ``type`` tag.
    """

    type: ClassVar[str]
    terminal: ClassVar[bool] = False

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def to_sse(self) -> str:
        """Render as a single Server-Sent Events ``data:`` frame."""
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"


@dataclass(frozen=True)
class TextEvent(StreamEvent):
    content: str

    type: ClassVar[str] = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.content}


@dataclass(frozen=True)
class UIElementEvent(StreamEvent):
    agui: UIElement

    type: ClassVar[str] = "agui"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "agui": self.agui.to_dict()}


@dataclass(frozen=True)
class ErrorEvent(StreamEvent):
    error: str

    type: ClassVar[str] = "error"
    terminal: ClassVar[bool] = True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "error": self.error}


@dataclass(frozen=True)
class DoneEvent(StreamEvent):
    total_tokens: int = 0

    type: ClassVar[str] = "done"
    terminal: ClassVar[bool] = True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "metadata": {"totalTokens": self.total_tokens}}
