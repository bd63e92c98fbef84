"""
FastAPI server module for the agent runtime.

Exposes message processing and tool server utilities over HTTP.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
