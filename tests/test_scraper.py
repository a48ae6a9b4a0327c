"""Tests for the scraper layer — fetch, discovery and normalization.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made by ``fetch_page`` or ``discover_urls``.
- Normalizer tests build :class:`FetchedPage` values directly; no HTTP.
"""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
import respx

from tutorial_ingest.config import CrawlConfig
from tutorial_ingest.scraper.discovery import discover_urls
from tutorial_ingest.scraper.fetcher import fetch_page, open_client
from tutorial_ingest.scraper.models import CodeSnippet, CrawlTarget, FetchedPage, NormalizedArticle
from tutorial_ingest.scraper.normalizer import (
    extract_keywords,
    extract_topics,
    normalize,
)

BASE = "https://www.freecodecamp.org"
CONFIG = CrawlConfig(base_url=BASE, timeout=5.0, user_agent="Test-Agent/1.0")


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_CHALLENGE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Learn Basic HTML | freeCodeCamp</title></head>
<body>
  <main>
    <h1>Say Hello to HTML Elements</h1>
    <div class="challenge-instructions">
      <p>Welcome to the HTML coding challenges. HTML elements build every page.</p>
      <p>Change the heading element so that the element says Hello World.</p>
    </div>
    <pre><code class="language-html">&lt;h1&gt;Hello World&lt;/h1&gt;</code></pre>
    <pre><code>const answer = 42;</code></pre>
    <pre><code>x = 1</code></pre>
  </main>
</body>
</html>
"""


def _page(html: str, url: str = f"{BASE}/learn/responsive-web-design/basic-html") -> FetchedPage:
    return FetchedPage(url=url, ok=True, status_code=200, html=html)


def _listing(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{h}">link</a>' for h in hrefs)
    return f"<html><body><main>{anchors}</main></body></html>"


_CERT = CrawlTarget(
    slug="responsive-web-design",
    title="Responsive Web Design",
    url=f"{BASE}/learn/2022/responsive-web-design/",
    category="responsive-web-design",
)


# ---------------------------------------------------------------------------
# fetch_page
# ---------------------------------------------------------------------------

class TestFetchPage:
    def test_successful_fetch_returns_markup(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/learn/a").mock(
                return_value=httpx.Response(200, text=_CHALLENGE_HTML)
            )
            page = fetch_page(f"{BASE}/learn/a", CONFIG)

        assert page.ok is True
        assert page.status_code == 200
        assert "<h1>Say Hello" in page.html
        assert page.error is None

    def test_sends_identifying_user_agent(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE}/learn/a").mock(
                return_value=httpx.Response(200, text="<html></html>")
            )
            fetch_page(f"{BASE}/learn/a", CONFIG)

        assert route.calls.last.request.headers["User-Agent"] == "Test-Agent/1.0"

    def test_non_2xx_is_a_failure_value(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/missing").mock(return_value=httpx.Response(404, text="nope"))
            page = fetch_page(f"{BASE}/missing", CONFIG)

        assert page.ok is False
        assert page.status_code == 404
        assert page.html is None
        assert page.error.startswith("HTTP 404")

    def test_timeout_is_a_failure_value(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/slow").mock(side_effect=httpx.ReadTimeout)
            page = fetch_page(f"{BASE}/slow", CONFIG)

        assert page.ok is False
        assert page.error.startswith("Timeout")

    def test_transport_error_is_a_failure_value(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/down").mock(side_effect=httpx.ConnectError)
            page = fetch_page(f"{BASE}/down", CONFIG)

        assert page.ok is False
        assert "ConnectError" in page.error

    def test_invalid_url_does_not_raise(self) -> None:
        page = fetch_page("not a url", CONFIG)
        assert page.ok is False
        assert page.error

    def test_reuses_shared_client(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/learn/a").mock(return_value=httpx.Response(200, text="ok"))
            with open_client(CONFIG) as client:
                page = fetch_page(f"{BASE}/learn/a", CONFIG, client)
                assert not client.is_closed

        assert page.ok is True


# ---------------------------------------------------------------------------
# discover_urls
# ---------------------------------------------------------------------------

class TestDiscoverUrls:
    def test_root_first_then_links_in_order(self) -> None:
        html = _listing("/learn/b", "/learn/a-lesson", f"{BASE}/learn/c")
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(200, text=html))
            urls = discover_urls(_CERT, CONFIG)

        assert urls == [
            _CERT.url,
            f"{BASE}/learn/b",
            f"{BASE}/learn/a-lesson",
            f"{BASE}/learn/c",
        ]

    def test_deduplicates_and_skips_root_repeat(self) -> None:
        html = _listing(
            "/learn/b", "/learn/b", "/learn/b#step-2", "/learn/2022/responsive-web-design/"
        )
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(200, text=html))
            urls = discover_urls(_CERT, CONFIG)

        assert urls == [_CERT.url, f"{BASE}/learn/b"]

    def test_ignores_links_outside_prefix_and_site(self) -> None:
        html = _listing(
            "/news/some-article",
            "https://example.com/learn/x",
            "mailto:team@example.com",
            "/learn/",
            "/learn/kept",
        )
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(200, text=html))
            urls = discover_urls(_CERT, CONFIG)

        assert urls == [_CERT.url, f"{BASE}/learn/kept"]

    def test_excluded_prefixes_are_dropped(self) -> None:
        tag = CrawlTarget(
            slug="tag-python",
            title="python",
            url=f"{BASE}/news/tag/python/",
            category="python",
            kind="topic",
            link_prefix="/news/",
            exclude_prefixes=("/news/tag/", "/news/author/"),
        )
        html = _listing("/news/tag/django/", "/news/author/quincy/", "/news/how-to-learn-python/")
        with respx.mock:
            respx.get(tag.url).mock(return_value=httpx.Response(200, text=html))
            urls = discover_urls(tag, CONFIG)

        assert urls == [tag.url, f"{BASE}/news/how-to-learn-python/"]

    def test_capped_at_max_urls(self) -> None:
        html = _listing(*(f"/learn/step-{i}" for i in range(120)))
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(200, text=html))
            urls = discover_urls(_CERT, CONFIG)

        assert len(urls) == 50
        assert urls[0] == _CERT.url
        assert urls[-1] == f"{BASE}/learn/step-48"

    def test_fetch_failure_degrades_to_root(self) -> None:
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(503))
            urls = discover_urls(_CERT, CONFIG)

        assert urls == [_CERT.url]

    def test_parse_failure_degrades_to_root(self) -> None:
        with respx.mock:
            respx.get(_CERT.url).mock(return_value=httpx.Response(200, text=_listing("/learn/b")))
            with patch(
                "tutorial_ingest.scraper.discovery._extract_content_links",
                side_effect=RuntimeError("bad markup"),
            ):
                urls = discover_urls(_CERT, CONFIG)

        assert urls == [_CERT.url]


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------

class TestNormalize:
    def test_extracts_structured_fields(self) -> None:
        article = normalize(_page(_CHALLENGE_HTML), CONFIG)

        assert article.ok
        assert article.title == "Say Hello to HTML Elements"
        assert article.content.startswith("Welcome to the HTML coding challenges.")
        assert article.content.endswith("says Hello World.")
        assert article.word_count == len(article.content.split())
        assert article.character_count == len(article.content)
        assert article.topics == ("responsive-web-design", "basic-html")

    def test_title_falls_back_to_title_tag(self) -> None:
        html = "<html><head><title> Only Title </title></head><body><main>x</main></body></html>"
        assert normalize(_page(html), CONFIG).title == "Only Title"

    def test_content_prefers_specific_container(self) -> None:
        html = (
            "<html><body><main>generic main text</main>"
            "<article>article text</article>"
            '<div class="challenge-instructions">  the instructions  </div></body></html>'
        )
        assert normalize(_page(html), CONFIG).content == "the instructions"

    def test_content_falls_back_to_article_then_main(self) -> None:
        html = "<html><body><main>main text</main><article>article text</article></body></html>"
        assert normalize(_page(html), CONFIG).content == "article text"

    def test_no_container_gives_empty_content(self) -> None:
        article = normalize(_page("<html><body><div>loose</div></body></html>"), CONFIG)
        assert article.ok
        assert article.content == ""
        assert article.word_count == 0
        assert article.keywords == ()

    def test_code_snippets(self) -> None:
        article = normalize(_page(_CHALLENGE_HTML), CONFIG)

        assert article.code_snippets == (
            CodeSnippet(language="html", code="<h1>Hello World</h1>"),
            CodeSnippet(language="javascript", code="const answer = 42;"),
        )

    def test_code_editor_elements_are_snippets(self) -> None:
        html = '<html><body><div class="code-editor language-css">body { color: red; }</div></body></html>'
        article = normalize(_page(html), CONFIG)
        assert article.code_snippets == (CodeSnippet("css", "body { color: red; }"),)

    def test_markdown_renders_headings_then_paragraphs_then_code(self) -> None:
        html = (
            "<html><body>"
            "<p>Intro text</p>"
            "<h2>Setup</h2>"
            '<pre><code class="language-python">print("hello world")</code></pre>'
            "<h1>Title</h1>"
            "<p>Outro</p>"
            "</body></html>"
        )
        article = normalize(_page(html), CONFIG)

        assert article.markdown == (
            "## Setup\n\n"
            "# Title\n\n"
            "Intro text\n\n"
            "Outro\n\n"
            '```python\nprint("hello world")\n```'
        )

    def test_failed_fetch_yields_failure(self) -> None:
        page = FetchedPage(url=f"{BASE}/x", ok=False, status_code=500, error="HTTP 500")
        article = normalize(page, CONFIG)

        assert article == NormalizedArticle.failure(f"{BASE}/x", "HTTP 500")
        assert article.ok is False

    def test_empty_markup_yields_failure(self) -> None:
        article = normalize(_page("   "), CONFIG)
        assert article.ok is False
        assert article.word_count == 0
        assert article.code_snippets == ()

    def test_malformed_markup_does_not_raise(self) -> None:
        article = normalize(_page("<html><main><p>unclosed <b>tags<main></p"), CONFIG)
        assert isinstance(article, NormalizedArticle)

    def test_extraction_error_yields_failure(self) -> None:
        with patch(
            "tutorial_ingest.scraper.normalizer._extract_body",
            side_effect=RuntimeError("boom"),
        ):
            article = normalize(_page(_CHALLENGE_HTML), CONFIG)

        assert article.ok is False
        assert article.error == "boom"
        assert article.url.endswith("basic-html")
        assert (article.word_count, article.character_count) == (0, 0)
        assert article.keywords == () and article.topics == ()
        assert article.markdown == "" and article.content == ""


class TestKeywords:
    def test_short_words_are_ignored(self) -> None:
        assert extract_keywords("the cat sat on the mat and the cat ran") == ()

    def test_orders_by_frequency_then_first_occurrence(self) -> None:
        text = "Python code, python DATA; code python data loop"
        assert extract_keywords(text) == ("python", "code", "data", "loop")

    def test_limit(self) -> None:
        text = " ".join(f"word{i:02d}" for i in range(30))
        keywords = extract_keywords(text, limit=10)
        assert keywords == tuple(f"word{i:02d}" for i in range(10))


class TestTopics:
    def test_drops_learn_segment(self) -> None:
        url = f"{BASE}/learn/2022/responsive-web-design/learn-html-by-building-a-cat-photo-app/"
        assert extract_topics(url) == (
            "2022",
            "responsive-web-design",
            "learn-html-by-building-a-cat-photo-app",
        )

    def test_news_url(self) -> None:
        assert extract_topics(f"{BASE}/news/how-to-use-react/") == ("news", "how-to-use-react")
