"""
HTTP and WebSocket bridge for the GUI shell.

Exposes the diagnostics operations as JSON endpoints.
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
