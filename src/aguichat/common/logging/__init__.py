"""
Logging Utilities

Credential redaction for provider keys and truncation of model output
before it reaches the logs.
"""

from aguichat.common.logging.sanitizer import (
    SanitizingFilter,
    configure_logging,
    truncate_for_log,
)

__all__ = [
    "SanitizingFilter",
    "configure_logging",
    "truncate_for_log",
]
