"""Job commands for inspecting and retrying crawl runs."""

from __future__ import annotations

from typing import Optional

import typer

from tutorial_ingest.db import open_db
from tutorial_ingest.db.jobs import get_job, list_jobs
from tutorial_ingest.pipeline.runner import retry_job, run_job
from tutorial_ingest.pipeline.tracker import JobStateError

jobs_app = typer.Typer(help="Inspect and retry crawl jobs.", no_args_is_help=True)


@jobs_app.command("list")
def jobs_list(
    status: Optional[str] = typer.Option(None, "--status", help="Filter by status."),
) -> None:
    """List crawl jobs, newest first."""
    with open_db() as conn:
        jobs = list_jobs(conn, status=status)

    if not jobs:
        typer.echo("No jobs found.")
        return
    for job in jobs:
        typer.echo(
            f" - {job.id}  [{job.status}]  {job.progress_percentage:5.1f}%  "
            f"{', '.join(job.targets)}"
        )


@jobs_app.command("show")
def jobs_show(job_id: str = typer.Argument(..., help="Job id.")) -> None:
    """Show one job's counters."""
    with open_db() as conn:
        job = get_job(conn, job_id)

    if job is None:
        typer.echo(f"❌ Job not found: {job_id}")
        raise typer.Exit(code=1)

    typer.echo(f"Job {job.id}  [{job.status}]")
    typer.echo(f"  targets   : {', '.join(job.targets)}")
    typer.echo(f"  progress  : {job.urls_processed}/{job.total_urls} ({job.progress_percentage:.1f}%)")
    typer.echo(f"  failed    : {job.urls_failed}")
    typer.echo(
        f"  stored    : {job.items_new} new, {job.items_updated} updated, "
        f"{job.items_unchanged} unchanged"
    )
    typer.echo(f"  retries   : {job.retry_count}/{job.max_retries}")
    if job.error_message:
        typer.echo(f"  error     : {job.error_message}")


@jobs_app.command("retry")
def jobs_retry(
    job_id: str = typer.Argument(..., help="Id of a failed job."),
    run: bool = typer.Option(True, "--run/--no-run", help="Run the new job immediately."),
) -> None:
    """Re-create a failed job as a new pending job."""
    with open_db() as conn:
        try:
            job = retry_job(conn, job_id)
        except (LookupError, JobStateError) as e:
            typer.echo(f"❌ Error: {e}")
            raise typer.Exit(code=1)

        typer.echo(f"✅ Created job {job.id} (retry {job.retry_count}/{job.max_retries})")
        if run:
            summary = run_job(conn, job.id)
            typer.echo(
                f"[{summary.status}] {summary.succeeded} succeeded, "
                f"{summary.failed} failed, {summary.total} total"
            )
