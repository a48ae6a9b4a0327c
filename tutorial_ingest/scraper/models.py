"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class CrawlTarget:
    """A root listing page plus the label its articles are filed under."""

    slug: str
    title: str
    url: str
    category: str
    kind: str = "certification"
    # Only links whose path starts with this prefix are content pages.
    link_prefix: str = "/learn/"
    # Navigation pages living under ``link_prefix`` (tag indexes, authors).
    exclude_prefixes: tuple[str, ...] = ()
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FetchedPage:
    """The outcome of retrieving a single URL.

    ``ok`` is ``False`` for every transport error and non-2xx response; in
    that case ``html`` is ``None`` and ``error`` says what went wrong.
    """

    url: str
    ok: bool
    status_code: Optional[int] = None
    html: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class CodeSnippet:
    language: str
    code: str


@dataclass(frozen=True)
class NormalizedArticle:
    """Structured content extracted from a :class:`FetchedPage`.

    ``content`` and ``markdown`` come from the same markup; the word and
    character counts are computed from ``content``.
    """

    url: str
    title: str = ""
    content: str = ""
    markdown: str = ""
    code_snippets: tuple[CodeSnippet, ...] = field(default_factory=tuple)
    keywords: tuple[str, ...] = field(default_factory=tuple)
    topics: tuple[str, ...] = field(default_factory=tuple)
    word_count: int = 0
    character_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, url: str, message: str) -> "NormalizedArticle":
        """Return the well-formed, zeroed value for a failed extraction."""
        return cls(url=url, error=message or "Unknown error")
