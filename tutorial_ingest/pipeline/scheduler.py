"""Batch scheduler: drives a crawl job through its targets in windows.

For each target the discovered URL list is cut into consecutive windows of
``config.concurrency`` URLs.  A window is one fan-out/fan-in:

1. every URL in the window is fetched and normalized on its own worker
   thread (so at most ``concurrency`` requests are ever in flight);
2. results are consumed with ``as_completed`` on the scheduler's thread,
   where each one is reconciled against the store and counted on the job
   tracker, one item at a time;
3. the window's executor is closed (waiting for every worker) before the
   next window starts, with ``config.delay`` seconds of pause in between.

Only the scheduler thread touches the DB connection, so store writes and
progress updates are serialized without locking.

Item failures are values (:class:`ItemOutcome`) and never stop the run.  An
exception that escapes the run as a whole marks the job ``failed``.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Sequence

import httpx

from tutorial_ingest.config import CrawlConfig
from tutorial_ingest.pipeline.reconcile import reconcile
from tutorial_ingest.pipeline.tracker import JobStateError, JobTracker
from tutorial_ingest.scraper.discovery import discover_urls
from tutorial_ingest.scraper.fetcher import fetch_page, open_client
from tutorial_ingest.scraper.models import CrawlTarget, NormalizedArticle
from tutorial_ingest.scraper.normalizer import normalize

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunContext:
    """Everything a run resolved before its first fetch."""

    job_id: str
    source_id: str
    config: CrawlConfig


class FailureKind(str, Enum):
    FETCH = "fetch"
    PARSE = "parse"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ItemOutcome:
    """Either a normalized article or the reason the URL failed."""

    url: str
    article: Optional[NormalizedArticle] = None
    failure: Optional[FailureKind] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.article is not None

    @classmethod
    def success(cls, article: NormalizedArticle) -> "ItemOutcome":
        return cls(url=article.url, article=article)

    @classmethod
    def failed(cls, url: str, kind: FailureKind, message: str) -> "ItemOutcome":
        return cls(url=url, failure=kind, message=message)


@dataclass
class TargetSummary:
    slug: str
    total: int
    succeeded: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.slug,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


@dataclass
class JobSummary:
    """The structured payload handed back to whoever started the run."""

    job_id: str
    status: str
    targets: list[TargetSummary] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(t.total for t in self.targets)

    @property
    def succeeded(self) -> int:
        return sum(t.succeeded for t in self.targets)

    @property
    def failed(self) -> int:
        return sum(t.failed for t in self.targets)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "job_id": self.job_id,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "targets": [t.to_dict() for t in self.targets],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


# ---------------------------------------------------------------------------
# Per-item work
# ---------------------------------------------------------------------------

def windows(urls: Sequence[str], width: int) -> Iterator[list[str]]:
    """Yield consecutive slices of *urls*, each at most *width* long."""
    if width < 1:
        raise ValueError(f"window width must be >= 1, got {width}")
    for start in range(0, len(urls), width):
        yield list(urls[start : start + width])


def process_url(
    url: str, config: CrawlConfig, client: Optional[httpx.Client] = None
) -> ItemOutcome:
    """Fetch and normalize *url*.  Runs on a worker thread; never raises."""
    page = fetch_page(url, config, client)
    if not page.ok:
        return ItemOutcome.failed(url, FailureKind.FETCH, page.error or "fetch failed")

    article = normalize(page, config)
    if not article.ok:
        return ItemOutcome.failed(url, FailureKind.PARSE, article.error or "parse failed")
    return ItemOutcome.success(article)


def _resolve(future: Any, url: str) -> ItemOutcome:
    try:
        return future.result()
    except Exception as exc:  # noqa: BLE001
        logger.exception("[CRAWL] Worker for %s crashed", url)
        return ItemOutcome.failed(url, FailureKind.UNEXPECTED, str(exc) or type(exc).__name__)


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

def crawl_target(
    conn: sqlite3.Connection,
    target: CrawlTarget,
    urls: Sequence[str],
    ctx: RunContext,
    tracker: JobTracker,
    client: Optional[httpx.Client] = None,
    sleep: Callable[[float], None] = time.sleep,
    on_progress: Optional[ProgressCallback] = None,
) -> TargetSummary:
    """Process every URL of *target* in windows of ``ctx.config.concurrency``."""
    config = ctx.config
    summary = TargetSummary(slug=target.slug, total=len(urls))
    batches = list(windows(urls, config.concurrency))

    logger.info("[CRAWL] %s: %d URL(s) in %d window(s)", target.slug, len(urls), len(batches))

    for index, batch in enumerate(batches):
        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="crawl") as pool:
            future_to_url = {
                pool.submit(process_url, url, config, client): url for url in batch
            }
            for future in as_completed(future_to_url):
                url = future_to_url[future]
                outcome = _resolve(future, url)

                if outcome.ok:
                    result = reconcile(conn, outcome.article, target.category, ctx.source_id)
                    summary.succeeded += 1
                    tracker.record(True, result.action)
                    logger.info("[CRAWL] ✓ %s (%s)", url, result.action)
                else:
                    summary.failed += 1
                    tracker.record(False)
                    logger.info("[CRAWL] ✗ %s [%s] %s", url, outcome.failure.value, outcome.message)

                if on_progress is not None:
                    on_progress(tracker.job.urls_processed, tracker.job.total_urls)

        if index < len(batches) - 1:
            sleep(config.delay)

    return summary


def run_crawl(
    conn: sqlite3.Connection,
    targets: Sequence[CrawlTarget],
    ctx: RunContext,
    tracker: JobTracker,
    client: Optional[httpx.Client] = None,
    sleep: Callable[[float], None] = time.sleep,
    on_progress: Optional[ProgressCallback] = None,
) -> JobSummary:
    """Run one job over *targets* and return its summary.

    Every target is discovered up front so the job's total is known before
    the first item is counted; progress therefore only ever goes up and ends
    at exactly 100 when every item was processed.

    Never raises: a run-level error fails the job and is reported in the
    returned summary.
    """
    summary = JobSummary(job_id=ctx.job_id, status=tracker.status.value)
    own_client = client is None
    http = client if client is not None else open_client(ctx.config)

    try:
        plan = [(target, discover_urls(target, ctx.config, http)) for target in targets]
        tracker.start(sum(len(urls) for _target, urls in plan))

        for target, urls in plan:
            summary.targets.append(
                crawl_target(conn, target, urls, ctx, tracker, http, sleep, on_progress)
            )

        tracker.complete()
    except Exception as exc:  # noqa: BLE001
        message = str(exc) or type(exc).__name__
        logger.exception("[CRAWL] Job %s aborted", ctx.job_id)
        try:
            tracker.fail(message)
        except JobStateError as state_exc:
            logger.error("[CRAWL] %s", state_exc)
        summary.error = message
    finally:
        if own_client:
            http.close()

    summary.status = tracker.status.value
    return summary
