"""FastAPI transport."""

from aguichat.transports.http.app import create_app, run_http_server

__all__ = ["create_app", "run_http_server"]
