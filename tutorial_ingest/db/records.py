"""Generic record operations over the whitelisted tables.

This is the narrow store interface the pipeline talks to::

    find_one(conn, table, filters)
    insert(conn, table, record)
    update(conn, table, filters, patch)
    upsert(conn, table, record, conflict_key)

Records are plain dicts.  List and dict values are stored as JSON text and
decoded again on the way out for the columns listed in ``_JSON_COLUMNS``.
Every function may raise :class:`sqlite3.Error`; the caller decides whether a
failure is fatal or best-effort.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

_TABLES = {"knowledge_sources", "knowledge_content", "scraping_jobs"}

_JSON_COLUMNS = {
    "knowledge_sources": {"tags"},
    "knowledge_content": {"code_snippets", "keywords", "topics"},
    "scraping_jobs": {"targets"},
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _check_table(table: str) -> None:
    if table not in _TABLES:
        raise ValueError(f"Unknown table {table!r}")


def _check_columns(columns: Any) -> None:
    for col in columns:
        if not col.isidentifier():
            raise ValueError(f"Invalid column name {col!r}")


def _encode(record: dict[str, Any]) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    for key, value in record.items():
        if isinstance(value, (list, tuple, dict)):
            encoded[key] = json.dumps(value)
        elif isinstance(value, bool):
            encoded[key] = int(value)
        else:
            encoded[key] = value
    return encoded


def _decode(table: str, row: sqlite3.Row) -> dict[str, Any]:
    record = dict(row)
    for col in _JSON_COLUMNS.get(table, ()):
        if col in record and isinstance(record[col], str):
            record[col] = json.loads(record[col] or "null")
    return record


def _where(filters: dict[str, Any]) -> tuple[str, list[Any]]:
    if not filters:
        return "", []
    _check_columns(filters)
    clause = " AND ".join(f"{col} = ?" for col in filters)
    return f" WHERE {clause}", list(_encode(filters).values())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_one(
    conn: sqlite3.Connection, table: str, filters: dict[str, Any]
) -> Optional[dict[str, Any]]:
    """Return the first row matching every ``column = value`` in *filters*."""
    _check_table(table)
    where, params = _where(filters)
    row = conn.execute(
        f"SELECT * FROM {table}{where} LIMIT 1", params  # noqa: S608
    ).fetchone()
    return _decode(table, row) if row else None


def find_all(
    conn: sqlite3.Connection,
    table: str,
    filters: Optional[dict[str, Any]] = None,
    order_by: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Return every row matching *filters*, optionally ordered.

    *order_by* is a column name, optionally prefixed with ``-`` for
    descending order.
    """
    _check_table(table)
    where, params = _where(filters or {})
    order = ""
    if order_by:
        column = order_by.lstrip("-")
        _check_columns([column])
        order = f" ORDER BY {column} {'DESC' if order_by.startswith('-') else 'ASC'}"
    rows = conn.execute(
        f"SELECT * FROM {table}{where}{order}", params  # noqa: S608
    ).fetchall()
    return [_decode(table, r) for r in rows]


def insert(conn: sqlite3.Connection, table: str, record: dict[str, Any]) -> None:
    """Insert *record* as a new row."""
    _check_table(table)
    _check_columns(record)
    encoded = _encode(record)
    columns = ", ".join(encoded)
    placeholders = ", ".join("?" for _ in encoded)
    with conn:
        conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",  # noqa: S608
            list(encoded.values()),
        )


def update(
    conn: sqlite3.Connection,
    table: str,
    filters: dict[str, Any],
    patch: dict[str, Any],
) -> int:
    """Apply *patch* to every row matching *filters*; return the row count.

    Raises:
        ValueError: If *filters* or *patch* is empty.
    """
    _check_table(table)
    if not filters:
        raise ValueError("update() requires at least one filter")
    if not patch:
        raise ValueError("update() requires at least one field to set")
    _check_columns(patch)
    encoded = _encode(patch)
    set_clause = ", ".join(f"{col} = ?" for col in encoded)
    where, params = _where(filters)
    with conn:
        cursor = conn.execute(
            f"UPDATE {table} SET {set_clause}{where}",  # noqa: S608
            list(encoded.values()) + params,
        )
    return cursor.rowcount


def upsert(
    conn: sqlite3.Connection,
    table: str,
    record: dict[str, Any],
    conflict_key: str,
) -> None:
    """Insert *record*, or update the existing row sharing *conflict_key*.

    On conflict every column in *record* except ``id`` and ``created_at`` is
    overwritten, so the row keeps its original identity.
    """
    _check_table(table)
    _check_columns(record)
    if conflict_key not in record:
        raise ValueError(f"record is missing conflict key {conflict_key!r}")
    encoded = _encode(record)
    columns = ", ".join(encoded)
    placeholders = ", ".join("?" for _ in encoded)
    keep = {conflict_key, "id", "created_at"}
    assignments = ", ".join(
        f"{col} = excluded.{col}" for col in encoded if col not in keep
    )
    action = f"DO UPDATE SET {assignments}" if assignments else "DO NOTHING"
    with conn:
        conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders}) "  # noqa: S608
            f"ON CONFLICT({conflict_key}) {action}",
            list(encoded.values()),
        )
