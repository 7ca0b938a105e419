"""Fixed-interval scheduling for the chat polling tick."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = structlog.get_logger(__name__)


class PollingScheduler:
    """Runs interval jobs using APScheduler.

    Jobs are registered with ``max_instances=1`` and ``coalesce=True``: a
    firing that would overlap a still-running instance is skipped, never
    queued.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()
        self.jobs: Dict[str, Any] = {}
        self.running = False

    async def start(self):
        """Start the scheduler on the running event loop."""
        if self.running:
            return

        self.scheduler.start()
        self.running = True
        logger.info("Polling scheduler started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.jobs.clear()
        self.running = False
        logger.info("Polling scheduler stopped")

    def add_interval_job(
        self,
        job_id: str,
        func: Callable,
        seconds: float,
        description: Optional[str] = None
    ):
        """Add an interval-based job, replacing any job with the same id."""
        if job_id in self.jobs:
            logger.warning("Job already exists, replacing", job_id=job_id)
            self.remove_job(job_id)

        job = self.scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            name=description or job_id,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self.jobs[job_id] = {
            "job": job,
            "seconds": seconds,
            "description": description,
            "added_at": datetime.now(timezone.utc)
        }

        logger.info("Added interval job",
                    job_id=job_id,
                    interval_seconds=seconds)

    def has_job(self, job_id: str) -> bool:
        return job_id in self.jobs

    def remove_job(self, job_id: str) -> bool:
        """Remove a scheduled job. Missing jobs are not an error."""
        if job_id not in self.jobs:
            return False

        del self.jobs[job_id]
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)
        logger.info("Removed job", job_id=job_id)
        return True

    def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get status information for a job."""
        if job_id not in self.jobs:
            return None

        job_info = self.jobs[job_id]
        scheduler_job = self.scheduler.get_job(job_id)
        if scheduler_job is None:
            return None

        return {
            "job_id": job_id,
            "interval_seconds": job_info["seconds"],
            "next_run": scheduler_job.next_run_time.isoformat() if scheduler_job.next_run_time else None,
            "added_at": job_info["added_at"].isoformat(),
            "description": job_info.get("description"),
        }
