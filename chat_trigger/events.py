"""Events published to listeners."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class LogEvent:
    message: str
    severity: str = "info"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "log", "message": self.message, "logType": self.severity}


@dataclass(frozen=True)
class TriggerEvent:
    word: str
    message: str  # "username: text"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "trigger", "trigger": self.word, "message": self.message}


@dataclass(frozen=True)
class TriggersUpdated:
    count: int

    def to_dict(self) -> dict[str, Any]:
        # Listeners receive the acknowledgment as an ordinary log line.
        return {"type": "log", "message": f"Updated {self.count} trigger words", "logType": "info"}


Event = Union[LogEvent, TriggerEvent, TriggersUpdated]


def encode_event(event: Event) -> str:
    return json.dumps(event.to_dict(), ensure_ascii=False)
