"""Ingestion pipeline — discovery, windowed crawl, change detection, job tracking."""

from tutorial_ingest.pipeline.reconcile import ReconcileResult, fingerprint, reconcile
from tutorial_ingest.pipeline.runner import create_crawl_job, retry_job, run_job
from tutorial_ingest.pipeline.scheduler import JobSummary, RunContext, TargetSummary
from tutorial_ingest.pipeline.targets import UnknownTargetError, get_target, list_targets
from tutorial_ingest.pipeline.tracker import JobStateError, JobStatus, JobTracker

__all__ = [
    "create_crawl_job",
    "run_job",
    "retry_job",
    "list_targets",
    "get_target",
    "fingerprint",
    "reconcile",
    "ReconcileResult",
    "JobSummary",
    "TargetSummary",
    "RunContext",
    "JobStatus",
    "JobTracker",
    "JobStateError",
    "UnknownTargetError",
]
