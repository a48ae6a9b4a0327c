"""Database layer package.

Public re-exports so callers can write::

    from tutorial_ingest.db import get_connection, init_db, open_db
    from tutorial_ingest.db import jobs
"""

from tutorial_ingest.db.connection import get_connection, open_db
from tutorial_ingest.db.migrations import init_db
from tutorial_ingest.db import content, jobs, records, sources

__all__ = ["get_connection", "init_db", "open_db", "content", "jobs", "records", "sources"]
