"""Trigger words: parsing, the shared list, and matching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

import structlog

from ..errors import ControlInputError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Trigger:
    word: str


def parse_triggers(raw: Any) -> tuple[Trigger, ...]:
    """Build a trigger list from ``[{"word": ...}, ...]``.

    Blank words are dropped; an empty string would match every message.
    """
    if not isinstance(raw, (list, tuple)):
        raise ControlInputError("triggers must be a list")
    out: list[Trigger] = []
    for item in raw:
        if isinstance(item, Trigger):
            word = item.word
        elif isinstance(item, dict):
            word = item.get("word")
        else:
            raise ControlInputError("each trigger must be an object with a 'word'")
        if not isinstance(word, str):
            raise ControlInputError("trigger 'word' must be a string")
        if word.strip():
            out.append(Trigger(word=word))
    return tuple(out)


def match_trigger(text: str, triggers: Sequence[Trigger]) -> Optional[str]:
    """Return the first trigger word contained in ``text``, ignoring case."""
    if not text:
        return None
    haystack = text.lower()
    for trigger in triggers:
        if trigger.word.lower() in haystack:
            return trigger.word
    return None


class TriggerStore:
    """Holds the active trigger list as an immutable snapshot.

    Writers swap the whole tuple, so a tick that took a snapshot keeps a
    consistent list even if it is replaced mid-tick.
    """

    def __init__(self, triggers: Iterable[Trigger] = ()):
        self._triggers: tuple[Trigger, ...] = tuple(triggers)

    def __len__(self) -> int:
        return len(self._triggers)

    def snapshot(self) -> tuple[Trigger, ...]:
        return self._triggers

    def replace(self, raw: Any) -> int:
        triggers = parse_triggers(raw)
        self._triggers = triggers
        logger.info("Trigger list replaced", count=len(triggers))
        return len(triggers)
