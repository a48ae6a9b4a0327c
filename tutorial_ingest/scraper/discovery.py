"""URL discovery: expand a listing page into the content pages it links to."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit

import httpx
from bs4 import BeautifulSoup

from tutorial_ingest.config import CrawlConfig
from tutorial_ingest.scraper.fetcher import fetch_page
from tutorial_ingest.scraper.models import CrawlTarget

logger = logging.getLogger(__name__)


def _extract_content_links(
    html: str,
    base_url: str,
    link_prefix: str,
    exclude_prefixes: tuple[str, ...] = (),
) -> list[str]:
    """Return absolute, fragment-free links on the site under *link_prefix*."""
    site_host = urlsplit(base_url).hostname
    soup = BeautifulSoup(html, "html.parser")

    links: list[str] = []
    for anchor in soup.select("a[href]"):
        href = (anchor.get("href") or "").strip()
        if not href:
            continue
        absolute, _fragment = urldefrag(urljoin(base_url + "/", href))
        parts = urlsplit(absolute)
        if parts.scheme not in ("http", "https") or parts.hostname != site_host:
            continue
        if not parts.path.startswith(link_prefix) or parts.path == link_prefix:
            continue
        if any(parts.path.startswith(p) for p in exclude_prefixes):
            continue
        links.append(absolute)
    return links


def discover_urls(
    target: CrawlTarget,
    config: CrawlConfig,
    client: Optional[httpx.Client] = None,
) -> list[str]:
    """Enumerate the content pages reachable from *target*'s listing page.

    The root URL is always the first element, links are deduplicated in
    first-seen order, and the result never exceeds ``config.max_urls``.
    Any fetch or parse failure shrinks the result to ``[target.url]``
    instead of raising.
    """
    root = target.url
    page = fetch_page(root, config, client)
    if not page.ok or page.html is None:
        logger.warning("[DISCOVER] %s unavailable (%s); crawling root only", root, page.error)
        return [root]

    try:
        found = _extract_content_links(
            page.html, config.base_url, target.link_prefix, target.exclude_prefixes
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("[DISCOVER] Could not parse %s: %s; crawling root only", root, exc)
        return [root]

    seen: set[str] = {root}
    urls: list[str] = [root]
    for url in found:
        if url not in seen:
            seen.add(url)
            urls.append(url)

    urls = urls[: config.max_urls]
    logger.info("[DISCOVER] %s → %d URL(s)", target.slug, len(urls))
    return urls
