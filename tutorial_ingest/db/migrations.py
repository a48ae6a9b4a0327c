"""Schema setup and versioned migrations.

``init_db`` applies ``schema.sql`` (every statement is ``IF NOT EXISTS``) and
then any entries of ``MIGRATIONS`` newer than the recorded version.
"""

from __future__ import annotations

import sqlite3

from tutorial_ingest.config import settings

# ``(version, sql)`` pairs applied in order.  Append only.
MIGRATIONS: list[tuple[int, str]] = []


def init_db(conn: sqlite3.Connection) -> None:
    """Create the content, source and job tables, then migrate.  Idempotent."""
    conn.executescript(settings.schema_path.read_text(encoding="utf-8"))
    with conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            " version INTEGER PRIMARY KEY,"
            " applied_at INTEGER NOT NULL)"
        )
    migrate(conn)


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version, or 0."""
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def migrate(conn: sqlite3.Connection, migrations: list[tuple[int, str]] | None = None) -> int:
    """Apply pending *migrations* (default ``MIGRATIONS``); return how many ran."""
    applied = current_version(conn)
    pending = [
        (version, sql)
        for version, sql in sorted(migrations if migrations is not None else MIGRATIONS)
        if version > applied
    ]
    for version, sql in pending:
        with conn:
            conn.execute(sql)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, strftime('%s', 'now'))",
                (version,),
            )
    return len(pending)
