"""Job progress tracking.

A job moves through::

    pending ──► running ──► completed
       │           │
       └───────────┴──────► failed

``completed`` and ``failed`` are terminal.  A finished job is never resumed;
retrying means creating a new job (see :func:`tutorial_ingest.pipeline.runner.retry_job`).

The tracker keeps the authoritative counters in memory and mirrors every
change to the ``scraping_jobs`` row straight away so progress can be polled
mid-run.  Those writes are best-effort: a failed write is logged and the run
carries on.
"""

from __future__ import annotations

import logging
import sqlite3
from enum import Enum
from time import time
from typing import Any, Optional

from tutorial_ingest.db import jobs as jobs_db
from tutorial_ingest.db.models import CrawlJob
from tutorial_ingest.pipeline.reconcile import INSERTED, UNCHANGED, UPDATED

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.FAILED},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class JobStateError(RuntimeError):
    """Raised on a transition the job state machine does not allow."""


class JobTracker:
    """Owns the lifecycle and counters of one :class:`CrawlJob`."""

    def __init__(self, conn: sqlite3.Connection, job: CrawlJob) -> None:
        self.conn = conn
        self.job = job

    @classmethod
    def load(cls, conn: sqlite3.Connection, job_id: str) -> "JobTracker":
        """Return a tracker for the stored job *job_id*.

        Raises:
            LookupError: If no such job exists.
        """
        job = jobs_db.get_job(conn, job_id)
        if job is None:
            raise LookupError(f"Job not found: {job_id!r}")
        return cls(conn, job)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def status(self) -> JobStatus:
        return JobStatus(self.job.status)

    @property
    def percentage(self) -> float:
        if self.job.total_urls == 0:
            return 0.0
        return 100 * self.job.urls_processed / self.job.total_urls

    def _transition(self, new: JobStatus) -> None:
        if new not in _TRANSITIONS[self.status]:
            raise JobStateError(
                f"Job {self.job.id} cannot move from {self.status.value} to {new.value}"
            )
        self.job.status = new.value

    def _persist(self, **fields: Any) -> None:
        try:
            jobs_db.update_job(self.conn, self.job.id, **fields)
        except (sqlite3.Error, ValueError) as exc:
            logger.error("[JOB] ✗ Could not update job %s: %s", self.job.id, exc)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, total_urls: int) -> None:
        """Move to ``running`` and record the number of URLs to process."""
        self._transition(JobStatus.RUNNING)
        self.job.total_urls = total_urls
        self.job.started_at = int(time())
        self._persist(
            status=self.job.status,
            total_urls=total_urls,
            started_at=self.job.started_at,
        )
        logger.info("[JOB] %s running: %d URL(s)", self.job.id, total_urls)

    def record(self, succeeded: bool, action: Optional[str] = None) -> float:
        """Count one finished item and persist the new progress.

        Args:
            succeeded: Whether the item was fetched and normalized.
            action: The store outcome for a successful item
                (``inserted`` / ``updated`` / ``unchanged`` / ``error``).

        Returns:
            The updated progress percentage.
        """
        if self.status is not JobStatus.RUNNING:
            raise JobStateError(f"Job {self.job.id} is {self.status.value}, not running")

        job = self.job
        job.urls_processed += 1
        if succeeded:
            job.items_scraped += 1
            if action == INSERTED:
                job.items_new += 1
            elif action == UPDATED:
                job.items_updated += 1
            elif action == UNCHANGED:
                job.items_unchanged += 1
        else:
            job.urls_failed += 1
        job.progress_percentage = self.percentage

        self._persist(
            urls_processed=job.urls_processed,
            urls_failed=job.urls_failed,
            items_scraped=job.items_scraped,
            items_new=job.items_new,
            items_updated=job.items_updated,
            items_unchanged=job.items_unchanged,
            progress_percentage=job.progress_percentage,
        )
        return job.progress_percentage

    def complete(self) -> None:
        """Move to ``completed``; individual item failures do not matter."""
        self._transition(JobStatus.COMPLETED)
        self.job.completed_at = int(time())
        self._persist(status=self.job.status, completed_at=self.job.completed_at)
        logger.info(
            "[JOB] %s completed: %d processed, %d failed",
            self.job.id,
            self.job.urls_processed,
            self.job.urls_failed,
        )

    def fail(self, message: str) -> None:
        """Move to ``failed`` with *message* as the recorded error."""
        self._transition(JobStatus.FAILED)
        self.job.error_message = message
        self.job.completed_at = int(time())
        self._persist(
            status=self.job.status,
            error_message=message,
            completed_at=self.job.completed_at,
        )
        logger.error("[JOB] %s failed: %s", self.job.id, message)
