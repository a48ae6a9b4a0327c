"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from tutorial_ingest.api import app

    uvicorn tutorial_ingest.api:app --reload
"""

from tutorial_ingest.api.app import app

__all__ = ["app"]
