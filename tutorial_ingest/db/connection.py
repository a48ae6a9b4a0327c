"""SQLite connection factory.

Usage::

    from tutorial_ingest.db.connection import get_connection, open_db

    conn = get_connection()          # caller closes it

    with open_db() as conn:          # schema ensured, closed on exit
        jobs.list_jobs(conn)
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from tutorial_ingest.config import settings
from tutorial_ingest.db.migrations import init_db

# Milliseconds a writer waits on a lock held by another connection (the API
# polls job rows while a background crawl is writing them).
BUSY_TIMEOUT_MS = 5000


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    The connection has foreign keys enforced, WAL journaling, a busy
    timeout of ``BUSY_TIMEOUT_MS`` and ``row_factory`` set to
    :class:`sqlite3.Row`.  It may be handed to another thread, but must
    only be used by one thread at a time.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.
    """
    path = db_path or settings.db_path

    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")

    return conn


@contextmanager
def open_db(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Yield an initialised connection and close it afterwards."""
    conn = get_connection(db_path)
    try:
        init_db(conn)
        yield conn
    finally:
        conn.close()
