"""Fan-out of monitor events to connected listeners."""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import TYPE_CHECKING, Any, Optional, Protocol

import structlog

from ..errors import ControlInputError
from ..events import Event, LogEvent, TriggersUpdated, encode_event

if TYPE_CHECKING:
    from ..engine.triggers import TriggerStore

logger = structlog.get_logger(__name__)


class TextSocket(Protocol):
    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class Listener:
    """One subscriber connection with its own bounded outbound queue.

    A sender task drains the queue; publishers only ever ``put_nowait`` so a
    slow socket can never stall them.
    """

    def __init__(self, socket: TextSocket, queue_size: int = 100, send_timeout: float = 5.0):
        self.id = uuid.uuid4().hex[:8]
        self.socket = socket
        self.send_timeout = send_timeout
        self.closed = False
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._pump(), name=f"listener-{self.id}")

    def offer(self, payload: str) -> bool:
        """Queue ``payload`` without waiting. False means the listener is unusable."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Listener queue full", listener=self.id)
            self.closed = True
            return False
        return True

    async def _pump(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                if not self.closed:
                    await asyncio.wait_for(self.socket.send_text(payload), timeout=self.send_timeout)
            except asyncio.TimeoutError:
                logger.warning("Listener send timed out", listener=self.id)
                self.closed = True
            except Exception as e:
                logger.warning("Listener send failed", listener=self.id, error=str(e))
                self.closed = True
            finally:
                self._queue.task_done()

    async def flush(self) -> None:
        """Wait until every queued payload was sent or discarded."""
        await self._queue.join()

    async def close(self, disconnect: bool = False) -> None:
        """Stop the sender; with ``disconnect`` also close the socket itself."""
        self.closed = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if disconnect:
            try:
                await self.socket.close()
            except Exception as e:
                logger.debug("Listener socket already closed", listener=self.id, error=str(e))


class BroadcastHub:
    """Owns the listener set. Delivery is best-effort and at-most-once."""

    def __init__(self, queue_size: int = 100, send_timeout: float = 5.0):
        self.queue_size = queue_size
        self.send_timeout = send_timeout
        self._listeners: set[Listener] = set()
        self._closing: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener: object) -> bool:
        return listener in self._listeners

    def subscribe(self, socket: TextSocket) -> Listener:
        """Register a connection and greet it."""
        listener = Listener(socket, queue_size=self.queue_size, send_timeout=self.send_timeout)
        listener.start()
        self._listeners.add(listener)
        logger.info("Client connected", listener=listener.id, listeners=len(self._listeners))
        listener.offer(encode_event(LogEvent("Connected to chat monitor server")))
        return listener

    async def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.discard(listener)
            logger.info("Client disconnected", listener=listener.id, listeners=len(self._listeners))
        await listener.close()

    def publish(self, event: Event) -> int:
        """Queue ``event`` for every open listener; prune the ones that cannot take it."""
        payload = encode_event(event)
        delivered = 0
        for listener in list(self._listeners):
            if listener.offer(payload):
                delivered += 1
            else:
                self._prune(listener)
        return delivered

    def send_to(self, listener: Listener, event: Event) -> bool:
        if listener.offer(encode_event(event)):
            return True
        self._prune(listener)
        return False

    def _prune(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.discard(listener)
            logger.info("Dropped listener", listener=listener.id, listeners=len(self._listeners))
            task = asyncio.create_task(listener.close(disconnect=True))
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)

    async def handle_message(self, listener: Listener, raw: str, triggers: TriggerStore) -> None:
        """Apply one listener-originated control message."""
        try:
            data: Any = json.loads(raw)
        except ValueError as e:
            logger.error("Error processing message", listener=listener.id, error=str(e))
            return
        if not isinstance(data, dict):
            logger.error("Error processing message", listener=listener.id, error="expected an object")
            return

        if data.get("type") == "setTriggers":
            try:
                count = triggers.replace(data.get("triggers"))
            except ControlInputError as e:
                logger.error("Rejected trigger update", listener=listener.id, error=str(e))
                return
            self.send_to(listener, TriggersUpdated(count))
        else:
            logger.debug("Ignoring listener message", listener=listener.id, type=data.get("type"))

    async def flush(self) -> None:
        await asyncio.gather(*(listener.flush() for listener in list(self._listeners)))

    async def close(self) -> None:
        listeners, self._listeners = list(self._listeners), set()
        for listener in listeners:
            await listener.close()
        if self._closing:
            await asyncio.gather(*list(self._closing))
