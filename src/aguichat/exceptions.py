"""
AguiChat Exception Hierarchy

Structured exception types for the provider, streaming and NL-to-SQL layers.
All aguichat-specific exceptions inherit from AguiChatError.

Parse degradation is deliberately absent: a low-trust parse is reported
through data (empty UI elements, degraded confidence), never raised.

Usage:
    from aguichat.exceptions import ProviderError

    try:
        result = await provider.chat(messages)
    except ProviderError as e:
        logger.error(f"Provider call failed: {e}")
"""

from __future__ import annotations


class AguiChatError(Exception):
    """
    Base exception for all AguiChat errors.

    Attributes:
        message: Human-readable error description
        code: Optional machine-readable error code for programmatic handling
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AguiChatError):
    """Required credential or model identifier is missing or invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="CONFIG_INVALID")
        self.field = field


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(AguiChatError):
    """
    An outbound call to the model backend failed.

    Covers network, auth, rate limit and deadline expiry. The original
    exception is kept on ``cause`` and chained via ``raise ... from``.
    """

    def __init__(self, provider: str, reason: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{provider} request failed: {reason}", code="PROVIDER_ERROR")
        self.provider = provider
        self.reason = reason
        self.cause = cause


class StreamTransportError(ProviderError):
    """The open streaming connection failed mid-consumption."""

    def __init__(self, provider: str, reason: str, cause: BaseException | None = None) -> None:
        super().__init__(provider, reason, cause)
        self.code = "STREAM_TRANSPORT"


class ResourceExhaustedError(AguiChatError):
    """A single-consumption stream was iterated a second time."""

    def __init__(self, resource: str = "event stream") -> None:
        super().__init__(f"The {resource} has already been consumed", code="RESOURCE_EXHAUSTED")
        self.resource = resource


# =============================================================================
# NL-to-SQL Errors
# =============================================================================


class ConversionError(AguiChatError):
    """Natural language to SQL conversion failed at the transport level."""

    def __init__(self, query: str, cause: BaseException | None = None) -> None:
        reason = str(cause) if cause else "unknown error"
        super().__init__(
            f"Failed to convert natural language to SQL: {reason}",
            code="CONVERSION_FAILED",
        )
        self.query = query
        self.cause = cause


class UnsafeQueryError(AguiChatError):
    """Generated SQL failed the read-only check before execution."""

    def __init__(self, sql: str, violations: list[str]) -> None:
        super().__init__(
            "Refusing to execute SQL: " + "; ".join(violations),
            code="UNSAFE_SQL",
        )
        self.sql = sql
        self.violations = violations


class QueryExecutionError(AguiChatError):
    """The database rejected or failed to run a checked query."""

    def __init__(self, sql: str, reason: str) -> None:
        super().__init__(f"Query execution failed: {reason}", code="QUERY_FAILED")
        self.sql = sql
        self.reason = reason
