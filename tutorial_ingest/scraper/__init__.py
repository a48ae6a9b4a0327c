"""Scraper package — fetch, discovery & content normalization."""

from tutorial_ingest.scraper.discovery import discover_urls
from tutorial_ingest.scraper.fetcher import fetch_page, open_client
from tutorial_ingest.scraper.models import (
    CodeSnippet,
    CrawlTarget,
    FetchedPage,
    NormalizedArticle,
)
from tutorial_ingest.scraper.normalizer import normalize

__all__ = [
    "discover_urls",
    "fetch_page",
    "open_client",
    "normalize",
    "CodeSnippet",
    "CrawlTarget",
    "FetchedPage",
    "NormalizedArticle",
]
