"""HTTP control API and WebSocket listener channel."""

from .app import create_app

__all__ = ["create_app"]
