"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Optional


def _from_record(cls: Any, record: dict[str, Any]) -> Any:
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in record.items() if k in names})


@dataclass
class Source:
    id: str
    name: str
    url: str
    source_type: str = "tutorial"
    base_domain: Optional[str] = None
    status: str = "active"
    scrape_frequency: str = "weekly"
    tags: list[str] = field(default_factory=list)
    last_scraped_at: Optional[int] = None
    created_at: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Source":
        return _from_record(cls, record)


@dataclass
class ContentRecord:
    id: str
    source_id: str
    url: str
    title: str
    content_hash: str
    content_type: str = "tutorial"
    category: Optional[str] = None
    content: str = ""
    markdown: str = ""
    code_snippets: list[dict[str, str]] = field(default_factory=list)
    word_count: int = 0
    character_count: int = 0
    keywords: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    processed: bool = False
    created_at: int = 0
    updated_at: int = 0

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ContentRecord":
        item = _from_record(cls, record)
        item.processed = bool(item.processed)
        return item


@dataclass
class CrawlJob:
    """One crawl run's progress/state record."""

    id: str
    status: str
    scheduled_at: int
    source_id: Optional[str] = None
    job_type: str = "full_scrape"
    targets: list[str] = field(default_factory=list)
    total_urls: int = 0
    urls_processed: int = 0
    urls_failed: int = 0
    progress_percentage: float = 0.0
    items_scraped: int = 0
    items_new: int = 0
    items_updated: int = 0
    items_unchanged: int = 0
    retry_count: int = 0
    max_retries: int = 3
    error_message: Optional[str] = None
    started_at: Optional[int] = None
    completed_at: Optional[int] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "CrawlJob":
        return _from_record(cls, record)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
