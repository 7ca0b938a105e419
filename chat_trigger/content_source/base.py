"""Content source interface: how the engine reads visible chat entries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChatMessage:
    """One visible chat entry for a single sampling tick."""
    username: str
    text: str

    @property
    def identity(self) -> str:
        """Dedup key. Identical username+text pairs are indistinguishable."""
        return f"{self.username}:{self.text}"

    @property
    def rendered(self) -> str:
        return f"{self.username}: {self.text}"


class ContentSource(ABC):
    """Acquires a page for a URL and samples its chat entries."""

    @abstractmethod
    async def open(self, url: str) -> Any:
        """Return a session handle for ``url`` or raise ``LaunchError``."""

    @abstractmethod
    async def sample(self, handle: Any) -> list[ChatMessage]:
        """Return current entries; raise ``ChatNotReady`` or ``SampleError``."""

    @abstractmethod
    async def close(self, handle: Any) -> None:
        """Release everything ``open`` acquired."""
