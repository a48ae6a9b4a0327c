"""The static catalogue of crawl targets.

Two kinds of listing page are crawled:

* **certifications** under ``/learn/``: the challenge pages of a curriculum;
* **topic tags** under ``/news/tag/<topic>/``: tutorial articles filed under
  a tag.

The catalogue is fixed configuration and does not depend on crawl state.
"""

from __future__ import annotations

from tutorial_ingest.config import settings
from tutorial_ingest.scraper.models import CrawlTarget

_CERTIFICATIONS: list[tuple[str, str, str, str, str]] = [
    # (slug, title, path, category, description)
    (
        "responsive-web-design",
        "Responsive Web Design",
        "/learn/2022/responsive-web-design/",
        "web-design",
        "Learn HTML and CSS fundamentals",
    ),
    (
        "javascript-algorithms",
        "JavaScript Algorithms and Data Structures",
        "/learn/javascript-algorithms-and-data-structures-v8/",
        "javascript",
        "Learn JavaScript programming fundamentals",
    ),
    (
        "front-end-libraries",
        "Front End Development Libraries",
        "/learn/front-end-development-libraries/",
        "frontend",
        "Learn React, Redux, Bootstrap, and jQuery",
    ),
    (
        "data-visualization",
        "Data Visualization",
        "/learn/data-visualization/",
        "data-viz",
        "Learn D3.js for data visualization",
    ),
    (
        "back-end-development-and-apis",
        "APIs and Microservices",
        "/learn/back-end-development-and-apis/",
        "apis",
        "Learn Node.js and Express",
    ),
    (
        "scientific-computing-with-python",
        "Scientific Computing with Python",
        "/learn/scientific-computing-with-python-v7/",
        "python",
        "Learn Python fundamentals",
    ),
    (
        "data-analysis-with-python",
        "Data Analysis with Python",
        "/learn/data-analysis-with-python-v7/",
        "data-analysis",
        "Learn data analysis using Python",
    ),
    (
        "machine-learning-with-python",
        "Machine Learning with Python",
        "/learn/machine-learning-with-python-v7/",
        "ml",
        "Learn machine learning fundamentals",
    ),
]

_TOPIC_TAGS: list[str] = [
    "javascript",
    "react",
    "python",
    "web-development",
    "programming",
    "data-science",
    "machine-learning",
    "nodejs",
    "typescript",
    "css",
]


class UnknownTargetError(LookupError):
    """Raised when a slug does not name a catalogue target."""


def list_targets(base_url: str | None = None) -> list[CrawlTarget]:
    """Return every crawl target, certifications first."""
    base = (base_url or settings.site_base_url).rstrip("/")
    targets = [
        CrawlTarget(
            slug=slug,
            title=title,
            url=f"{base}{path}",
            category=slug,
            kind="certification",
            link_prefix="/learn/",
            description=f"{description} ({category})",
        )
        for slug, title, path, category, description in _CERTIFICATIONS
    ]
    targets.extend(
        CrawlTarget(
            slug=f"tag-{topic}",
            title=f"Tutorials tagged {topic}",
            url=f"{base}/news/tag/{topic}/",
            category=topic,
            kind="topic",
            link_prefix="/news/",
            exclude_prefixes=("/news/tag/", "/news/author/"),
            description=f"freeCodeCamp news articles tagged {topic}",
        )
        for topic in _TOPIC_TAGS
    )
    return targets


def get_target(slug: str, base_url: str | None = None) -> CrawlTarget:
    """Return the target called *slug*.

    Raises:
        UnknownTargetError: If no target has that slug.
    """
    for target in list_targets(base_url):
        if target.slug == slug:
            return target
    raise UnknownTargetError(f"Unknown crawl target: {slug!r}")
