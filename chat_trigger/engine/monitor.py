"""Monitoring state machine: session lifecycle and the polling tick."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ..broadcast.hub import BroadcastHub
from ..config import ChatTriggerConfig, get_config
from ..content_source.base import ContentSource
from ..errors import ChatNotReady
from ..events import LogEvent, TriggerEvent
from ..scheduler.polling import PollingScheduler
from .dedup import SeenWindow
from .triggers import TriggerStore, match_trigger


logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"


@dataclass
class Session:
    url: str = ""
    state: SessionState = SessionState.IDLE
    started_at: Optional[datetime] = None


class MonitorEngine:
    """Owns the watch session, the seen window and the tick schedule.

    Control commands and ticks share one lock, so they never interleave.
    ``_generation`` is bumped whenever a stop is requested; a tick that was
    already waiting or sampling under an older generation drops its result.
    """

    TICK_JOB_ID = "chat_tick"

    def __init__(
        self,
        source: ContentSource,
        hub: Optional[BroadcastHub] = None,
        config: Optional[ChatTriggerConfig] = None,
        scheduler: Optional[PollingScheduler] = None,
        triggers: Optional[TriggerStore] = None
    ):
        self.config = config or get_config()
        self.source = source
        self.hub = hub or BroadcastHub(
            queue_size=self.config.listener_queue_size,
            send_timeout=self.config.listener_send_timeout_seconds
        )
        self.scheduler = scheduler or PollingScheduler()
        self.triggers = triggers or TriggerStore()
        self.seen = SeenWindow(retain=self.config.seen_retain)
        self.session = Session()

        self._handle: Any = None
        self._lock = asyncio.Lock()
        self._generation = 0
        self._tick_in_progress = False
        self.tick_count = 0

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def running(self) -> bool:
        return self.session.state is SessionState.ACTIVE

    def status(self) -> Dict[str, Any]:
        return {"running": self.running, "url": self.session.url}

    # -- logging -----------------------------------------------------------

    def _log(self, message: str, severity: str = "info", **fields: Any) -> None:
        """Write to the process log and push the line to listeners."""
        if severity == "error":
            logger.error(message, **fields)
        else:
            logger.info(message, **fields)
        self.hub.publish(LogEvent(message, severity))

    # -- control commands --------------------------------------------------

    async def start(self, url: str) -> None:
        """Begin watching ``url``. An active session is fully stopped first."""
        self._cancel_ticks()
        async with self._lock:
            if self.session.state is not SessionState.IDLE:
                await self._stop_locked()
            await self._start_locked(url)

    async def stop(self) -> None:
        """Stop watching. Safe to call in any state."""
        self._cancel_ticks()
        async with self._lock:
            await self._stop_locked()

    async def set_url(self, url: str) -> None:
        """Restart on ``url`` when active, otherwise remember it for later.

        A start already in progress is allowed to finish first; the session
        is then restarted on ``url``.
        """
        if self.session.state is not SessionState.IDLE:
            self._cancel_ticks()
        async with self._lock:
            if self.session.state is SessionState.IDLE:
                self.session.url = url
                logger.info("Recorded stream URL", url=url)
                return
            await self._stop_locked()
            await self._start_locked(url)

    async def shutdown(self) -> None:
        """Stop the session and release the scheduler and listeners."""
        await self.stop()
        await self.scheduler.stop()
        await self.hub.close()

    def _cancel_ticks(self) -> None:
        self._generation += 1
        self.scheduler.remove_job(self.TICK_JOB_ID)

    async def _start_locked(self, url: str) -> None:
        self.session = Session(url=url, state=SessionState.STARTING)
        self._log(f"Starting browser for: {url}", url=url)

        try:
            handle = await self.source.open(url)
        except Exception as e:
            self.session.state = SessionState.IDLE
            self._log(f"Error starting monitoring: {e}", "error", url=url)
            raise

        self._handle = handle
        self.seen.clear()
        self.session.state = SessionState.ACTIVE
        self.session.started_at = datetime.now(timezone.utc)
        self._log("Connected to chat stream", url=url)

        await self.scheduler.start()
        self.scheduler.add_interval_job(
            job_id=self.TICK_JOB_ID,
            func=self._scheduled_tick,
            seconds=self.config.poll_interval_seconds,
            description=f"Poll chat at {url}"
        )

    async def _stop_locked(self) -> None:
        if self.session.state is not SessionState.IDLE:
            self.session.state = SessionState.STOPPING
        self.scheduler.remove_job(self.TICK_JOB_ID)

        handle, self._handle = self._handle, None
        try:
            if handle is not None:
                await self.source.close(handle)
        finally:
            self.seen.clear()
            self.session.state = SessionState.IDLE
            self.session.started_at = None
            self._log("Monitoring stopped")

    # -- polling -----------------------------------------------------------

    async def _scheduled_tick(self) -> None:
        if not await self.tick():
            logger.debug("Tick skipped")

    async def tick(self) -> bool:
        """Run one sampling pass. Returns False when skipped or discarded."""
        if self._tick_in_progress:
            return False
        self._tick_in_progress = True
        generation = self._generation
        try:
            async with self._lock:
                if self.session.state is not SessionState.ACTIVE or generation != self._generation:
                    return False
                return await self._run_tick(generation)
        finally:
            self._tick_in_progress = False

    async def _run_tick(self, generation: int) -> bool:
        triggers = self.triggers.snapshot()
        self.tick_count += 1

        try:
            entries = await self.source.sample(self._handle)
        except ChatNotReady:
            if generation == self._generation:
                self._log("Waiting for chat to load...")
            return generation == self._generation
        except Exception as e:
            # SampleError, or anything else the source let through; never fatal.
            if generation == self._generation:
                self._log(f"Error checking for triggers: {e}", "error")
            return generation == self._generation

        if generation != self._generation:
            logger.debug("Discarding sample from cancelled session")
            return False

        new_messages = self.seen.admit(entries)

        for message in new_messages:
            if not message.text:
                continue
            word = match_trigger(message.text, triggers)
            if word is None:
                continue
            self._log(f'Trigger "{word}" detected in message from {message.username}', word=word)
            self.hub.publish(TriggerEvent(word=word, message=message.rendered))

        return True
