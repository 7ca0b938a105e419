from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from chat_trigger.config import ChatTriggerConfig
from chat_trigger.content_source.base import ChatMessage, ContentSource
from chat_trigger.errors import LaunchError


class FakeChatSource(ContentSource):
    """Scripted content source.

    ``samples`` is consumed one item per tick (a list of messages or an
    exception to raise); once empty, ``default`` is returned. Setting ``gate``
    holds every sample until the event is set; ``open_gate`` does the same
    for ``open``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.samples: list[Any] = []
        self.default: list[ChatMessage] = []
        self.fail_open: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.sampling = asyncio.Event()
        self.open_gate: asyncio.Event | None = None
        self.opening = asyncio.Event()

    async def open(self, url: str) -> str:
        self.calls.append(("open", url))
        self.opening.set()
        if self.open_gate is not None:
            await self.open_gate.wait()
        if url in self.fail_open:
            raise LaunchError(f"cannot open {url}")
        return f"handle:{url}"

    async def sample(self, handle: Any) -> list[ChatMessage]:
        self.calls.append(("sample", handle))
        self.sampling.set()
        if self.gate is not None:
            await self.gate.wait()
        item = self.samples.pop(0) if self.samples else self.default
        if isinstance(item, BaseException):
            raise item
        return list(item)

    async def close(self, handle: Any) -> None:
        self.calls.append(("close", handle))

    def count(self, kind: str) -> int:
        return sum(1 for k, _ in self.calls if k == kind)


class _ClosableSocket:
    closed_with: int | None = None

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code


class FakeSocket(_ClosableSocket):
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    def logs(self) -> list[str]:
        return [m["message"] for m in self.sent if m["type"] == "log"]

    def triggers(self) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == "trigger"]


class StallingSocket(_ClosableSocket):
    async def send_text(self, data: str) -> None:
        await asyncio.Event().wait()


class BrokenSocket(_ClosableSocket):
    async def send_text(self, data: str) -> None:
        raise ConnectionResetError("socket closed")


def msg(username: str, text: str) -> ChatMessage:
    return ChatMessage(username=username, text=text)


@pytest.fixture()
def fake_source() -> FakeChatSource:
    return FakeChatSource()


@pytest.fixture()
def engine_config() -> ChatTriggerConfig:
    # Long interval: tests drive ticks by hand.
    return ChatTriggerConfig(poll_interval_seconds=3600)

