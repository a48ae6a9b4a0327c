"""Change detection and the content writer.

``reconcile`` decides whether a freshly normalized article needs to be
written at all.  The decision hinges on :func:`fingerprint`, a digest of the
article body only: retitling a page or changing its metadata does not cause a
rewrite, editing its text does.

Re-crawling an unchanged site is therefore a no-op at the storage layer.
"""

from __future__ import annotations

import hashlib
import logging
import sqlite3
import uuid
from dataclasses import asdict, dataclass
from time import time

from tutorial_ingest.db import records
from tutorial_ingest.scraper.models import NormalizedArticle

logger = logging.getLogger(__name__)

_TABLE = "knowledge_content"

INSERTED = "inserted"
UPDATED = "updated"
UNCHANGED = "unchanged"
ERROR = "error"


@dataclass(frozen=True)
class ReconcileResult:
    written: bool
    action: str


def fingerprint(content: str) -> str:
    """Return the SHA-256 hex digest of *content*."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _content_record(
    article: NormalizedArticle, category: str, source_id: str, content_hash: str
) -> dict:
    now = int(time())
    return {
        "id": str(uuid.uuid4()),
        "source_id": source_id,
        "url": article.url,
        "title": article.title,
        "content_type": "tutorial",
        "category": category,
        "content": article.content,
        "markdown": article.markdown,
        "code_snippets": [asdict(s) for s in article.code_snippets],
        "word_count": article.word_count,
        "character_count": article.character_count,
        "keywords": list(article.keywords),
        "topics": list(article.topics),
        "content_hash": content_hash,
        "processed": False,
        "created_at": now,
        "updated_at": now,
    }


def reconcile(
    conn: sqlite3.Connection,
    article: NormalizedArticle,
    category: str,
    source_id: str,
) -> ReconcileResult:
    """Write *article* unless the stored copy already has the same body.

    The store is keyed by URL: at most one current record per page.  Storage
    errors are logged and reported as ``action="error"``; they never raise.

    Args:
        conn: Open, initialised DB connection.
        article: A successful :class:`NormalizedArticle`.
        category: Label of the target the article was found under.
        source_id: Id of the ``knowledge_sources`` row for the site.

    Returns:
        A :class:`ReconcileResult`; ``written`` is ``True`` only when a row
        was inserted or updated.
    """
    content_hash = fingerprint(article.content)
    try:
        existing = records.find_one(conn, _TABLE, {"url": article.url})
        if existing is not None and existing["content_hash"] == content_hash:
            logger.debug("[STORE] = %s unchanged", article.url)
            return ReconcileResult(written=False, action=UNCHANGED)

        records.upsert(
            conn,
            _TABLE,
            _content_record(article, category, source_id, content_hash),
            conflict_key="url",
        )
    except sqlite3.Error as exc:
        logger.error("[STORE] ✗ Could not save %s: %s", article.url, exc)
        return ReconcileResult(written=False, action=ERROR)

    action = UPDATED if existing is not None else INSERTED
    logger.debug("[STORE] + %s %s", article.url, action)
    return ReconcileResult(written=True, action=action)
