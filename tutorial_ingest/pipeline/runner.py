"""High-level entry points for crawl jobs.

These are the functions the CLI and the HTTP API call:

``create_crawl_job``  — validate targets, register the source, insert a
                        ``pending`` job.  Raises on failure.
``run_job``           — execute a ``pending`` job and return its
                        :class:`JobSummary`.  Never raises.
``retry_job``         — re-create a failed job as a new ``pending`` one.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from typing import Callable, Optional, Sequence

import httpx

from tutorial_ingest.config import CrawlConfig, settings
from tutorial_ingest.db import jobs as jobs_db
from tutorial_ingest.db.models import CrawlJob
from tutorial_ingest.db.sources import ensure_source, touch_source
from tutorial_ingest.pipeline.scheduler import (
    JobSummary,
    ProgressCallback,
    RunContext,
    run_crawl,
)
from tutorial_ingest.pipeline.targets import get_target
from tutorial_ingest.pipeline.tracker import JobStateError, JobStatus, JobTracker

logger = logging.getLogger(__name__)


def create_crawl_job(
    conn: sqlite3.Connection,
    slugs: Sequence[str],
    config: Optional[CrawlConfig] = None,
    retry_count: int = 0,
) -> CrawlJob:
    """Create a ``pending`` job that will crawl the targets named by *slugs*.

    Raises:
        ValueError: If *slugs* is empty.
        UnknownTargetError: If a slug is not in the catalogue.
        sqlite3.Error: If the source or job row cannot be written.
    """
    if not slugs:
        raise ValueError("At least one target is required")
    config = config or CrawlConfig.from_settings()
    for slug in slugs:
        get_target(slug, config.base_url)

    source = ensure_source(conn, config.base_url)
    job = jobs_db.create_job(
        conn,
        targets=list(slugs),
        source_id=source.id,
        max_retries=settings.job_max_retries,
        retry_count=retry_count,
    )
    logger.info("[JOB] Created %s for %s", job.id, ", ".join(slugs))
    return job


def run_job(
    conn: sqlite3.Connection,
    job_id: str,
    config: Optional[CrawlConfig] = None,
    client: Optional[httpx.Client] = None,
    sleep: Callable[[float], None] = time.sleep,
    on_progress: Optional[ProgressCallback] = None,
) -> JobSummary:
    """Run the ``pending`` job *job_id* to completion.

    The caller always gets a :class:`JobSummary`: success counts, or
    ``status="failed"`` with ``error`` set.
    """
    config = config or CrawlConfig.from_settings()

    try:
        tracker = JobTracker.load(conn, job_id)
    except (LookupError, sqlite3.Error) as exc:
        return JobSummary(job_id=job_id, status=JobStatus.FAILED.value, error=str(exc))

    if tracker.status is not JobStatus.PENDING:
        return JobSummary(
            job_id=job_id,
            status=tracker.status.value,
            error=f"Job {job_id} is {tracker.status.value}; create a new job to run again",
        )

    job = tracker.job
    try:
        targets = [get_target(slug, config.base_url) for slug in job.targets]
        source_id = job.source_id or ensure_source(conn, config.base_url).id
    except Exception as exc:  # noqa: BLE001
        tracker.fail(str(exc))
        return JobSummary(job_id=job_id, status=JobStatus.FAILED.value, error=str(exc))

    ctx = RunContext(job_id=job_id, source_id=source_id, config=config)
    summary = run_crawl(conn, targets, ctx, tracker, client, sleep, on_progress)

    if summary.status == JobStatus.COMPLETED.value:
        touch_source(conn, source_id)
    return summary


def retry_job(
    conn: sqlite3.Connection,
    job_id: str,
    config: Optional[CrawlConfig] = None,
) -> CrawlJob:
    """Create a fresh ``pending`` job repeating the failed job *job_id*.

    Raises:
        LookupError: If the job does not exist.
        JobStateError: If the job has not failed, or has used up its retries.
    """
    job = jobs_db.get_job(conn, job_id)
    if job is None:
        raise LookupError(f"Job not found: {job_id!r}")
    if job.status != JobStatus.FAILED.value:
        raise JobStateError(f"Only failed jobs can be retried; {job_id} is {job.status}")
    if job.retry_count >= job.max_retries:
        raise JobStateError(
            f"Job {job_id} already retried {job.retry_count} of {job.max_retries} times"
        )
    return create_crawl_job(conn, job.targets, config, retry_count=job.retry_count + 1)
