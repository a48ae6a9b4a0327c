"""Crawl endpoints — target catalogue and job submission.

Routes
------
GET  /crawl/targets    Catalogue of crawlable targets (+ whether already scraped)
POST /crawl            Body: {"targets": ["responsive-web-design", ...]}

``POST /crawl`` creates the job on the request's connection, then runs it on
a background thread with its own connection.  Poll ``GET /jobs/{id}`` for
progress.
"""

from __future__ import annotations

import logging
import sqlite3
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from tutorial_ingest.db import open_db
from tutorial_ingest.db.jobs import list_jobs
from tutorial_ingest.pipeline.runner import create_crawl_job, run_job
from tutorial_ingest.pipeline.targets import UnknownTargetError, list_targets

logger = logging.getLogger(__name__)

router = APIRouter()

# Crawls are network bound; two at a time keeps the site load predictable.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="crawl-job")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CrawlRequest(BaseModel):
    targets: list[str] = Field(..., min_length=1)


class CrawlAccepted(BaseModel):
    job_id: str
    status: str
    targets: list[str]


# ---------------------------------------------------------------------------
# Background runner
# ---------------------------------------------------------------------------

def _run_in_background(job_id: str) -> dict[str, Any]:
    """Run *job_id* on a dedicated connection and return its summary payload."""
    with open_db() as conn:
        return run_job(conn, job_id).to_dict()


def _submit(job_id: str) -> Future:
    return _executor.submit(_run_in_background, job_id)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/targets")
def list_targets_endpoint(request: Request) -> dict[str, Any]:
    """Return every crawl target, flagged ``scraped`` once a job completed it."""
    conn = request.app.state.db
    scraped = {slug for job in list_jobs(conn, status="completed") for slug in job.targets}
    targets = [
        {**target.to_dict(), "scraped": target.slug in scraped}
        for target in list_targets()
    ]
    return {"count": len(targets), "targets": targets}


@router.post("", response_model=CrawlAccepted, status_code=202)
def start_crawl(body: CrawlRequest, request: Request) -> dict[str, Any]:
    """Create a crawl job for the requested targets and start it."""
    conn = request.app.state.db
    try:
        job = create_crawl_job(conn, body.targets)
    except UnknownTargetError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except sqlite3.Error as exc:
        raise HTTPException(
            status_code=500, detail=f"Could not create crawl job: {exc}"
        ) from exc

    _submit(job.id)
    logger.info("[API] Submitted job %s", job.id)
    return {"job_id": job.id, "status": job.status, "targets": job.targets}
