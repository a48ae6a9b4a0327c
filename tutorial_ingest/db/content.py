"""Read helpers for the ``knowledge_content`` table.

Writes go through :mod:`tutorial_ingest.pipeline.reconcile`, which owns the
change-detection rules.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from tutorial_ingest.db import records
from tutorial_ingest.db.models import ContentRecord

_TABLE = "knowledge_content"


def get_content(conn: sqlite3.Connection, url: str) -> Optional[ContentRecord]:
    """Return the stored article for *url*, or ``None``."""
    record = records.find_one(conn, _TABLE, {"url": url})
    return ContentRecord.from_record(record) if record else None


def list_content(
    conn: sqlite3.Connection, category: Optional[str] = None
) -> list[ContentRecord]:
    """Return stored articles, newest first, optionally for one category."""
    filters = {"category": category} if category else {}
    rows = records.find_all(conn, _TABLE, filters, order_by="-updated_at")
    return [ContentRecord.from_record(r) for r in rows]
