"""Database layer tests.

All tests use an in-memory SQLite database so they are:
- Fast (no disk I/O)
- Isolated (each fixture gets a fresh DB)
- Side-effect free (nothing written to ~/.tutorial_ingest)
"""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from tutorial_ingest.db import records
from tutorial_ingest.db.connection import get_connection, open_db
from tutorial_ingest.db.content import get_content, list_content
from tutorial_ingest.db.jobs import create_job, get_job, list_jobs, update_job
from tutorial_ingest.db.migrations import current_version, init_db, migrate
from tutorial_ingest.db.models import CrawlJob
from tutorial_ingest.db.sources import ensure_source, get_source, touch_source

BASE = "https://www.freecodecamp.org"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


def _content_row(url: str, source_id: str, **overrides) -> dict:
    row = {
        "id": f"id-{url}",
        "source_id": source_id,
        "url": url,
        "title": "Title",
        "category": "javascript",
        "content": "body",
        "keywords": ["alpha", "beta"],
        "topics": ["learn-js"],
        "code_snippets": [{"language": "javascript", "code": "let x = 10;"}],
        "content_hash": "abc",
        "processed": False,
        "created_at": 1,
        "updated_at": 1,
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_wal_mode(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA journal_mode").fetchone()
        # In-memory DBs always return 'memory', on-disk returns 'wal'
        assert row[0] in ("wal", "memory")


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert {"knowledge_sources", "knowledge_content", "scraping_jobs"} <= tables

    def test_current_version_zero_on_fresh_db(self, conn: sqlite3.Connection) -> None:
        assert current_version(conn) == 0

    def test_init_db_is_idempotent(self, conn: sqlite3.Connection) -> None:
        init_db(conn)

    def test_migrate_applies_pending_once(self, conn: sqlite3.Connection) -> None:
        steps = [(1, "ALTER TABLE knowledge_content ADD COLUMN language TEXT")]
        assert migrate(conn, steps) == 1
        assert current_version(conn) == 1
        assert migrate(conn, steps) == 0
        columns = {r["name"] for r in conn.execute("PRAGMA table_info(knowledge_content)")}
        assert "language" in columns

    def test_open_db_initialises_and_closes(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("tutorial_ingest.config.settings.workspace_dir", tmp_path)
        with open_db() as db:
            assert db.execute("SELECT COUNT(*) FROM scraping_jobs").fetchone()[0] == 0
        assert (tmp_path / "content.db").exists()
        with pytest.raises(sqlite3.ProgrammingError):
            db.execute("SELECT 1")


# ---------------------------------------------------------------------------
# Generic records
# ---------------------------------------------------------------------------

class TestRecords:
    def test_insert_and_find_one_decodes_json(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        records.insert(conn, "knowledge_content", _content_row(f"{BASE}/a", source.id))

        found = records.find_one(conn, "knowledge_content", {"url": f"{BASE}/a"})
        assert found is not None
        assert found["keywords"] == ["alpha", "beta"]
        assert found["code_snippets"][0]["language"] == "javascript"
        assert found["processed"] == 0

    def test_find_one_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert records.find_one(conn, "knowledge_content", {"url": "nope"}) is None

    def test_update_returns_rowcount(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        records.insert(conn, "knowledge_content", _content_row(f"{BASE}/a", source.id))

        count = records.update(
            conn, "knowledge_content", {"url": f"{BASE}/a"}, {"processed": True}
        )
        assert count == 1
        assert records.find_one(conn, "knowledge_content", {"url": f"{BASE}/a"})["processed"] == 1
        assert records.update(conn, "knowledge_content", {"url": "nope"}, {"title": "x"}) == 0

    def test_upsert_inserts_then_updates_in_place(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        url = f"{BASE}/a"
        records.upsert(conn, "knowledge_content", _content_row(url, source.id), "url")
        records.upsert(
            conn,
            "knowledge_content",
            _content_row(url, source.id, id="other-id", title="New", content_hash="def",
                         created_at=99, updated_at=99),
            "url",
        )

        rows = records.find_all(conn, "knowledge_content")
        assert len(rows) == 1
        assert rows[0]["id"] == f"id-{url}"
        assert rows[0]["created_at"] == 1
        assert rows[0]["title"] == "New"
        assert rows[0]["content_hash"] == "def"
        assert rows[0]["updated_at"] == 99

    def test_find_all_orders(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        for i, url in enumerate(("a", "b", "c")):
            records.insert(
                conn, "knowledge_content", _content_row(url, source.id, updated_at=i)
            )
        urls = [r["url"] for r in records.find_all(conn, "knowledge_content", order_by="-updated_at")]
        assert urls == ["c", "b", "a"]

    def test_unknown_table_rejected(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError):
            records.find_one(conn, "sqlite_master", {"name": "x"})

    def test_bad_column_rejected(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError):
            records.update(conn, "scraping_jobs", {"id": "x"}, {"status; DROP": "x"})

    def test_update_requires_filter_and_patch(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError):
            records.update(conn, "scraping_jobs", {}, {"status": "x"})
        with pytest.raises(ValueError):
            records.update(conn, "scraping_jobs", {"id": "x"}, {})

    def test_constraint_violation_raises_sqlite_error(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(sqlite3.Error):
            records.insert(conn, "knowledge_content", _content_row("u", "missing-source"))


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class TestSources:
    def test_ensure_source_creates_once(self, conn: sqlite3.Connection) -> None:
        first = ensure_source(conn, BASE)
        second = ensure_source(conn, BASE)

        assert first.id == second.id
        assert first.base_domain == "freecodecamp.org"
        assert "tutorials" in first.tags
        assert len(records.find_all(conn, "knowledge_sources")) == 1

    def test_touch_source_sets_last_scraped(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        assert source.last_scraped_at is None
        touch_source(conn, source.id)
        assert get_source(conn, BASE).last_scraped_at is not None


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

class TestContent:
    def test_get_and_list_content(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        records.insert(conn, "knowledge_content", _content_row("a", source.id))
        records.insert(
            conn, "knowledge_content", _content_row("b", source.id, category="python")
        )

        item = get_content(conn, "a")
        assert item is not None
        assert item.processed is False
        assert item.keywords == ["alpha", "beta"]
        assert get_content(conn, "zzz") is None
        assert [c.url for c in list_content(conn, "python")] == ["b"]
        assert len(list_content(conn)) == 2


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------

class TestJobs:
    def test_create_job_defaults(self, conn: sqlite3.Connection) -> None:
        source = ensure_source(conn, BASE)
        job = create_job(conn, ["responsive-web-design"], source_id=source.id)

        assert isinstance(job, CrawlJob)
        assert job.status == "pending"
        assert job.targets == ["responsive-web-design"]
        assert job.total_urls == job.urls_processed == job.urls_failed == 0
        assert job.progress_percentage == 0
        assert job.scheduled_at > 0
        assert job.started_at is None and job.completed_at is None

    def test_update_and_get(self, conn: sqlite3.Connection) -> None:
        job = create_job(conn, ["a"])
        update_job(conn, job.id, status="running", total_urls=4)

        fetched = get_job(conn, job.id)
        assert fetched.status == "running"
        assert fetched.total_urls == 4

    def test_update_missing_job_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(ValueError):
            update_job(conn, "missing", status="running")

    def test_list_jobs_filters_by_status(self, conn: sqlite3.Connection) -> None:
        a = create_job(conn, ["a"])
        create_job(conn, ["b"])
        update_job(conn, a.id, status="completed")

        assert [j.id for j in list_jobs(conn, status="completed")] == [a.id]
        assert len(list_jobs(conn)) == 2

    def test_get_job_missing(self, conn: sqlite3.Connection) -> None:
        assert get_job(conn, "missing") is None
