"""
Log Sanitization

Redacts provider credentials from log records. Provider SDK errors
frequently echo request headers, so every provider key format we
configure is matched here.
"""

from __future__ import annotations

import logging
import re
from re import Pattern
from typing import Any

# Order matters: the more specific key formats must run before the generic sk- rule
SENSITIVE_PATTERNS: list[tuple[str, Pattern[str]]] = [
    ("ANTHROPIC_KEY", re.compile(r"sk-ant-[a-zA-Z0-9\-_]{20,}")),
    ("OPENROUTER_KEY", re.compile(r"sk-or-[a-zA-Z0-9\-_]{20,}")),
    ("GROQ_KEY", re.compile(r"gsk_[a-zA-Z0-9]{20,}")),
    ("OPENAI_KEY", re.compile(r"sk-[a-zA-Z0-9\-_]{20,}")),
    ("BEARER", re.compile(r"Bearer\s+[a-zA-Z0-9\-_\.]+", re.IGNORECASE)),
    (
        "API_KEY",
        re.compile(r"(api[_-]?key|x-api-key)['\"]?\s*[=:]\s*['\"]?[\w\-]{16,}['\"]?", re.IGNORECASE),
    ),
    ("PG_CONN", re.compile(r"postgres(?:ql)?://[^:/\s]+:[^@\s]+@", re.IGNORECASE)),
]

REDACTION_PLACEHOLDER = "[REDACTED]"

DEFAULT_LOG_TRUNCATE = 500


def truncate_for_log(text: str | None, limit: int = DEFAULT_LOG_TRUNCATE) -> str:
    """Shorten model output for diagnostics, marking how much was cut."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [{len(text) - limit} more chars]"


class SanitizingFilter(logging.Filter):
    """
    A logging filter that redacts provider credentials from log messages.

    Usage:
        logger = logging.getLogger(__name__)
        logger.addFilter(SanitizingFilter())
    """

    def __init__(
        self,
        name: str = "",
        additional_patterns: list[tuple[str, Pattern[str]]] | None = None,
        redaction_placeholder: str = REDACTION_PLACEHOLDER,
    ):
        super().__init__(name)
        self._patterns = list(SENSITIVE_PATTERNS)
        if additional_patterns:
            self._patterns.extend(additional_patterns)
        self._placeholder = redaction_placeholder

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the record in place; never drops it."""
        if record.msg:
            record.msg = self.sanitize(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._sanitize_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._sanitize_value(arg) for arg in record.args)

        return True

    def sanitize(self, text: str) -> str:
        """Return text with every sensitive pattern replaced."""
        result = text
        for pattern_name, pattern in self._patterns:
            result = pattern.sub(f"{pattern_name}={self._placeholder}", result)
        return result

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.sanitize(value)
        return value


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    """
    Configure the root logger with credential redaction.

    Args:
        level: Logging level (name or number)
        format_string: Log format string (uses default if not specified)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(level=level, format=format_string)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    sanitizing_filter = SanitizingFilter()
    if not any(isinstance(f, SanitizingFilter) for f in root_logger.filters):
        root_logger.addFilter(sanitizing_filter)

    for handler in root_logger.handlers:
        if not any(isinstance(f, SanitizingFilter) for f in handler.filters):
            handler.addFilter(sanitizing_filter)

    # The SDK clients log full request options at DEBUG
    for noisy in ("httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
