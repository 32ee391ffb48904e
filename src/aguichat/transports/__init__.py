"""Outer surfaces: HTTP API and command line."""
