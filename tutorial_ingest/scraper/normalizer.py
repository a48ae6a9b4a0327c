"""Content normalization: turns a :class:`FetchedPage` into a
:class:`NormalizedArticle`.

Extraction rules, each with a fixed fallback:

* **title**: first ``<h1>``, else ``<title>``.
* **content**: text of the first element matching ``CONTENT_SELECTORS``,
  tried in order (page-specific containers first, ``article``/``main`` last).
* **code snippets**: every ``pre code`` / ``.code-editor`` element.
* **markdown**: headings, then paragraphs, then code blocks.  The three
  groups are rendered one after another rather than in a single document
  walk; downstream consumers rely on this layout staying stable.
* **keywords**, **topics** and counts: derived from ``content`` and the URL.

``normalize`` never raises; extraction errors become a failure article.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from tutorial_ingest.config import CrawlConfig
from tutorial_ingest.scraper.models import CodeSnippet, FetchedPage, NormalizedArticle

logger = logging.getLogger(__name__)

CONTENT_SELECTORS: tuple[str, ...] = (
    ".challenge-instructions",
    ".post-content",
    ".certification-desc",
    "article",
    "main",
)

MIN_SNIPPET_LENGTH = 10
MIN_KEYWORD_LENGTH = 4
NAVIGATION_SEGMENT = "learn"

_LANGUAGE_CLASS = re.compile(r"language-(\w+)")
_NON_WORD = re.compile(r"\W+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_title(soup: BeautifulSoup) -> str:
    heading = soup.find("h1")
    if heading is not None:
        text = heading.get_text().strip()
        if text:
            return text
    title = soup.find("title")
    return title.get_text().strip() if title is not None else ""


def _extract_body(soup: BeautifulSoup) -> str:
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            return container.get_text().strip()
    return ""


def _language_of(element: Tag, default: str) -> str:
    for cls in element.get("class") or []:
        match = _LANGUAGE_CLASS.search(cls)
        if match:
            return match.group(1)
    return default


def _extract_code(soup: BeautifulSoup, default_language: str) -> tuple[CodeSnippet, ...]:
    snippets: list[CodeSnippet] = []
    for element in soup.select("pre code, .code-editor"):
        code = element.get_text().strip()
        if len(code) < MIN_SNIPPET_LENGTH:
            continue
        snippets.append(CodeSnippet(language=_language_of(element, default_language), code=code))
    return tuple(snippets)


def render_markdown(soup: BeautifulSoup, default_language: str = "javascript") -> str:
    """Render a simplified Markdown view of *soup*.

    Headings (h1–h4) come first, then paragraphs, then fenced code blocks.
    """
    blocks: list[str] = []

    for heading in soup.select("h1, h2, h3, h4"):
        level = int(heading.name[1])
        blocks.append("#" * level + " " + heading.get_text().strip())

    for paragraph in soup.select("p"):
        blocks.append(paragraph.get_text().strip())

    for code in soup.select("pre code"):
        language = _language_of(code, default_language)
        blocks.append(f"```{language}\n{code.get_text().strip()}\n```")

    return "".join(block + "\n\n" for block in blocks).strip()


def extract_keywords(content: str, limit: int = 10) -> tuple[str, ...]:
    """Return the *limit* most frequent words of at least four letters.

    Ties keep the order in which the words first appeared.
    """
    words = [w for w in _NON_WORD.split(content.lower()) if len(w) >= MIN_KEYWORD_LENGTH]
    return tuple(word for word, _count in Counter(words).most_common(limit))


def extract_topics(url: str) -> tuple[str, ...]:
    """Return the URL's path segments, minus the ``learn`` navigation segment."""
    path = urlsplit(url).path
    return tuple(seg for seg in path.split("/") if seg and seg != NAVIGATION_SEGMENT)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(page: FetchedPage, config: CrawlConfig) -> NormalizedArticle:
    """Extract a :class:`NormalizedArticle` from *page*.

    A failed fetch, an empty document, or any error raised while parsing
    produces ``NormalizedArticle.failure`` carrying the URL and message.
    """
    if not page.ok or page.html is None:
        return NormalizedArticle.failure(page.url, page.error or "No markup to normalize")
    if not page.html.strip():
        return NormalizedArticle.failure(page.url, "Empty document")

    try:
        soup = BeautifulSoup(page.html, "html.parser")
        content = _extract_body(soup)
        return NormalizedArticle(
            url=page.url,
            title=_extract_title(soup),
            content=content,
            markdown=render_markdown(soup, config.default_language),
            code_snippets=_extract_code(soup, config.default_language),
            keywords=extract_keywords(content, config.keyword_limit),
            topics=extract_topics(page.url),
            word_count=len(content.split()),
            character_count=len(content),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("[NORMALIZE] ✗ %s: %s", page.url, exc)
        return NormalizedArticle.failure(page.url, str(exc) or type(exc).__name__)
