"""CRUD operations for the ``knowledge_sources`` table."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from time import time
from urllib.parse import urlsplit

from tutorial_ingest.db import records
from tutorial_ingest.db.models import Source

logger = logging.getLogger(__name__)

_TABLE = "knowledge_sources"


def get_source(conn: sqlite3.Connection, url: str) -> Source | None:
    """Return the source registered for *url*, or ``None``."""
    record = records.find_one(conn, _TABLE, {"url": url})
    return Source.from_record(record) if record else None


def ensure_source(
    conn: sqlite3.Connection, base_url: str, name: str = "freeCodeCamp"
) -> Source:
    """Return the source row for *base_url*, creating it on first use.

    Raises:
        sqlite3.Error: If the row cannot be read or created.  A crawl cannot
            start without a source, so this is fatal to the caller.
    """
    existing = get_source(conn, base_url)
    if existing is not None:
        return existing

    host = urlsplit(base_url).hostname or base_url
    records.insert(
        conn,
        _TABLE,
        {
            "id": str(uuid.uuid4()),
            "name": name,
            "source_type": "tutorial",
            "url": base_url,
            "base_domain": host.removeprefix("www."),
            "tags": ["tutorials", "beginner-friendly", "certification"],
            "created_at": int(time()),
        },
    )
    logger.info("[STORE] Registered source %s", base_url)
    return get_source(conn, base_url)  # type: ignore[return-value]


def touch_source(conn: sqlite3.Connection, source_id: str) -> None:
    """Record that *source_id* was just scraped.  Best-effort."""
    try:
        records.update(
            conn, _TABLE, {"id": source_id}, {"last_scraped_at": int(time())}
        )
    except sqlite3.Error as exc:
        logger.warning("[STORE] Could not update source %s: %s", source_id, exc)
