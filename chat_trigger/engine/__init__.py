"""Monitoring engine: dedup window, trigger matching and the session state machine."""

from typing import Optional

from ..config import ChatTriggerConfig, get_config
from ..content_source.playwright_source import PlaywrightChatSource
from .dedup import SeenWindow
from .monitor import MonitorEngine, Session, SessionState
from .triggers import Trigger, TriggerStore, match_trigger, parse_triggers


def build_engine(config: Optional[ChatTriggerConfig] = None) -> MonitorEngine:
    """Wire the engine to the Playwright content source."""
    config = config or get_config()
    return MonitorEngine(source=PlaywrightChatSource(config), config=config)


__all__ = [
    "MonitorEngine",
    "SeenWindow",
    "Session",
    "SessionState",
    "Trigger",
    "TriggerStore",
    "build_engine",
    "match_trigger",
    "parse_triggers",
]
