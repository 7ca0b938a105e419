"""Bounded memory of chat message identities already processed."""

from typing import Iterable, List

from ..content_source.base import ChatMessage


class SeenWindow:
    """Ordered identity window.

    Before each tick's additions the window is trimmed to the ``retain`` most
    recent identities, so its size never exceeds ``retain`` plus the number of
    new messages introduced by the latest tick. Oldest entries go first.
    """

    def __init__(self, retain: int = 50):
        self.retain = retain
        self._order: List[str] = []
        self._members: set[str] = set()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, identity: object) -> bool:
        return identity in self._members

    def identities(self) -> List[str]:
        return list(self._order)

    def unseen(self, messages: Iterable[ChatMessage]) -> List[ChatMessage]:
        """Messages whose identity is not in the window, first occurrence only."""
        fresh: List[ChatMessage] = []
        batch: set[str] = set()
        for msg in messages:
            key = msg.identity
            if key in self._members or key in batch:
                continue
            batch.add(key)
            fresh.append(msg)
        return fresh

    def advance(self, new_messages: Iterable[ChatMessage]) -> None:
        """Trim to the retained tail, then append the new identities."""
        kept = self._order[-self.retain:] if self.retain else []
        added = [m.identity for m in new_messages]
        self._order = kept + added
        self._members = set(self._order)

    def admit(self, messages: Iterable[ChatMessage]) -> List[ChatMessage]:
        """Filter one sample and record the survivors."""
        fresh = self.unseen(messages)
        self.advance(fresh)
        return fresh

    def clear(self) -> None:
        self._order = []
        self._members = set()
