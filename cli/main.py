"""Tutorial ingest CLI — entry-point for all pipeline operations.

Usage:
    python cli/main.py --help

Command groups:
    db         → database setup
    targets    → list the crawl catalogue
    crawl      → create and run a crawl job
    normalize  → fetch one page and print what would be stored
    jobs       → inspect and retry crawl jobs
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from tutorial_ingest.xxx
# import ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
import sqlite3
from typing import List, Optional

import typer

from cli.commands.jobs import jobs_app
from tutorial_ingest.config import CrawlConfig, settings
from tutorial_ingest.db import open_db
from tutorial_ingest.db.migrations import current_version
from tutorial_ingest.pipeline.runner import create_crawl_job, run_job
from tutorial_ingest.pipeline.targets import UnknownTargetError, list_targets

app = typer.Typer(
    name="tutorial-ingest",
    help="Tutorial ingest CLI.",
    no_args_is_help=True,
)
app.add_typer(jobs_app, name="jobs")


def setup_logging(level: str) -> None:
    """Send pipeline log records to stderr at *level*."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S")
    )
    root = logging.getLogger("tutorial_ingest")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level."),
) -> None:
    setup_logging(log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    with open_db() as conn:
        version = current_version(conn)
    typer.echo(f"[db init] Database ready at {settings.db_path} (schema v{version})")


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@app.command("targets")
def targets() -> None:
    """List every crawlable target."""
    for target in list_targets():
        typer.echo(f"  {target.slug:<36} [{target.kind}]  {target.title}")


# ---------------------------------------------------------------------------
# Crawl
# ---------------------------------------------------------------------------
@app.command("crawl")
def crawl(
    slugs: List[str] = typer.Argument(..., help="Target slugs (see `targets`)."),
    concurrency: Optional[int] = typer.Option(None, help="URLs fetched per window."),
    delay: Optional[float] = typer.Option(None, help="Seconds to pause between windows."),
) -> None:
    """Create a crawl job for SLUGS and run it in the foreground."""
    try:
        config = CrawlConfig.from_settings().with_overrides(
            concurrency=concurrency, delay=delay
        )
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    def _progress(processed: int, total: int) -> None:
        typer.echo(f"[crawl] {processed}/{total}")

    with open_db() as conn:
        try:
            job = create_crawl_job(conn, slugs, config)
        except (UnknownTargetError, sqlite3.Error) as e:
            typer.echo(f"❌ Could not create job: {e}")
            raise typer.Exit(code=1)

        typer.echo(f"[crawl] Job {job.id} created for {', '.join(slugs)}")
        summary = run_job(conn, job.id, config, on_progress=_progress)

    for item in summary.targets:
        typer.echo(
            f"  {item.slug:<36} {item.succeeded} succeeded, {item.failed} failed, {item.total} total"
        )
    if summary.error:
        typer.echo(f"❌ Job {summary.job_id} {summary.status}: {summary.error}")
        raise typer.Exit(code=1)
    typer.echo(
        f"✅ Job {summary.job_id} {summary.status}: "
        f"{summary.succeeded}/{summary.total} succeeded"
    )


@app.command("normalize")
def normalize_cmd(
    url: str = typer.Argument(..., help="Page to fetch and normalize."),
) -> None:
    """Fetch a single page and print the normalized article."""
    from tutorial_ingest.scraper import fetch_page, normalize

    config = CrawlConfig.from_settings()
    typer.echo(f"[normalize] Fetching {url!r} …")
    article = normalize(fetch_page(url, config), config)
    if not article.ok:
        typer.echo(f"❌ {article.error}")
        raise typer.Exit(code=1)

    typer.echo(f"[normalize] Title    : {article.title or '(none)'}")
    typer.echo(f"[normalize] Words    : {article.word_count}")
    typer.echo(f"[normalize] Snippets : {len(article.code_snippets)}")
    typer.echo(f"[normalize] Keywords : {', '.join(article.keywords)}")
    typer.echo(f"[normalize] Topics   : {' / '.join(article.topics)}")
    typer.echo("")
    typer.echo(article.markdown)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
