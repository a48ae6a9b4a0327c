"""CRUD operations for the ``scraping_jobs`` table.

State-machine rules live in :mod:`tutorial_ingest.pipeline.tracker`; this
module only reads and writes rows.
"""

from __future__ import annotations

import sqlite3
import uuid
from time import time
from typing import Any, Optional

from tutorial_ingest.db import records
from tutorial_ingest.db.models import CrawlJob

_TABLE = "scraping_jobs"


def create_job(
    conn: sqlite3.Connection,
    targets: list[str],
    source_id: Optional[str] = None,
    max_retries: int = 3,
    retry_count: int = 0,
    job_type: str = "full_scrape",
) -> CrawlJob:
    """Insert a new ``pending`` job and return it.

    Raises:
        sqlite3.Error: If the row cannot be written.
    """
    job_id = str(uuid.uuid4())
    records.insert(
        conn,
        _TABLE,
        {
            "id": job_id,
            "source_id": source_id,
            "job_type": job_type,
            "targets": list(targets),
            "status": "pending",
            "retry_count": retry_count,
            "max_retries": max_retries,
            "scheduled_at": int(time()),
        },
    )
    return get_job(conn, job_id)  # type: ignore[return-value]


def get_job(conn: sqlite3.Connection, job_id: str) -> Optional[CrawlJob]:
    """Fetch a single job by id.  Returns ``None`` if not found."""
    record = records.find_one(conn, _TABLE, {"id": job_id})
    return CrawlJob.from_record(record) if record else None


def list_jobs(
    conn: sqlite3.Connection, status: Optional[str] = None
) -> list[CrawlJob]:
    """Return all jobs, most recently scheduled first."""
    filters = {"status": status} if status else {}
    rows = records.find_all(conn, _TABLE, filters, order_by="-scheduled_at")
    return [CrawlJob.from_record(r) for r in rows]


def update_job(conn: sqlite3.Connection, job_id: str, **fields: Any) -> None:
    """Write *fields* onto the job row.

    Raises:
        ValueError: If ``job_id`` does not exist.
    """
    if records.update(conn, _TABLE, {"id": job_id}, fields) == 0:
        raise ValueError(f"Job not found: {job_id!r}")
