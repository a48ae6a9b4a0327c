"""HTTP fetcher: one URL in, one :class:`FetchedPage` out.

Failures never escape as exceptions.  Timeouts, transport errors, malformed
URLs and non-2xx responses all come back as ``FetchedPage(ok=False)`` with a
human-readable ``error``.  Retrying is the caller's business.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from tutorial_ingest.config import CrawlConfig
from tutorial_ingest.scraper.models import FetchedPage

logger = logging.getLogger(__name__)


def open_client(config: CrawlConfig) -> httpx.Client:
    """Return an ``httpx.Client`` carrying the crawler's identity and timeout.

    The client is thread-safe and is shared by every fetch in a crawl run.
    """
    return httpx.Client(
        headers={"User-Agent": config.user_agent},
        timeout=config.timeout,
        follow_redirects=True,
    )


def _get(client: httpx.Client, url: str) -> FetchedPage:
    try:
        response = client.get(url)
    except httpx.TimeoutException:
        return FetchedPage(url=url, ok=False, error=f"Timeout after {client.timeout.read}s")
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        return FetchedPage(url=url, ok=False, error=f"{type(exc).__name__}: {exc}")

    if not response.is_success:
        reason = response.reason_phrase or "error"
        return FetchedPage(
            url=url,
            ok=False,
            status_code=response.status_code,
            error=f"HTTP {response.status_code} {reason}".strip(),
        )

    return FetchedPage(
        url=url, ok=True, status_code=response.status_code, html=response.text
    )


def fetch_page(
    url: str,
    config: CrawlConfig,
    client: Optional[httpx.Client] = None,
) -> FetchedPage:
    """Fetch *url* and classify the outcome.

    Args:
        url: Absolute URL to retrieve.
        config: Supplies the timeout and ``User-Agent`` when *client* is
            not given.
        client: Shared client to reuse.  A short-lived one is opened (and
            closed) when omitted.

    Returns:
        A :class:`FetchedPage`; ``ok`` tells success from failure.
    """
    if client is not None:
        page = _get(client, url)
    else:
        with open_client(config) as own_client:
            page = _get(own_client, url)

    if not page.ok:
        logger.warning("[FETCH] ✗ %s: %s", url, page.error)
    else:
        logger.debug("[FETCH] ✓ %s (HTTP %s)", url, page.status_code)
    return page
