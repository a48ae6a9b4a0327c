"""Job endpoints — progress polling and retries.

Routes
------
GET  /jobs                 All jobs, newest first (optional ?status=)
GET  /jobs/{id}            One job's counters and state
POST /jobs/{id}/retry      Re-create a failed job and start it
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

from tutorial_ingest.api.routers import crawl as crawl_router
from tutorial_ingest.db.jobs import get_job, list_jobs
from tutorial_ingest.pipeline.runner import retry_job
from tutorial_ingest.pipeline.tracker import JobStateError

router = APIRouter()


@router.get("")
def list_jobs_endpoint(request: Request, status: Optional[str] = None) -> list[dict[str, Any]]:
    """Return all jobs, optionally filtered by status."""
    conn = request.app.state.db
    return [job.to_dict() for job in list_jobs(conn, status=status)]


@router.get("/{job_id}")
def get_job_endpoint(job_id: str, request: Request) -> dict[str, Any]:
    """Return the job record for *job_id*."""
    job = get_job(request.app.state.db, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return job.to_dict()


@router.post("/{job_id}/retry", status_code=202)
def retry_job_endpoint(job_id: str, request: Request) -> dict[str, Any]:
    """Create a new job repeating a failed one, then start it."""
    conn = request.app.state.db
    try:
        job = retry_job(conn, job_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except JobStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    crawl_router._submit(job.id)
    return {"job_id": job.id, "status": job.status, "retry_count": job.retry_count}
