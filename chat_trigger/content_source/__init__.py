"""Chat content sources."""

from .base import ChatMessage, ContentSource
from .playwright_source import PlaywrightChatSource

__all__ = ["ChatMessage", "ContentSource", "PlaywrightChatSource"]
