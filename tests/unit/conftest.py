"""
Pytest configuration for unit tests.

Keeps telemetry exporters off so spans and counters stay on the no-op API.
"""

import os


def pytest_configure(config):
    """Disable telemetry for unit tests."""
    os.environ["AGUICHAT_TELEMETRY_ENABLED"] = "false"
