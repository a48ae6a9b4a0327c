"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  On
shutdown it closes the connection cleanly.

Routers
-------
    /crawl    — target catalogue and job submission
    /jobs     — job progress polling and retries
    /content  — stored articles
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from tutorial_ingest.db import open_db

from tutorial_ingest.api.routers import content as content_router
from tutorial_ingest.api.routers import crawl as crawl_router
from tutorial_ingest.api.routers import jobs as jobs_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    with open_db() as conn:
        app.state.db = conn
        yield


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Tutorial Ingest API",
        description=(
            "Starts tutorial crawl jobs, reports their progress, and lists the "
            "articles they stored."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(crawl_router.router, prefix="/crawl", tags=["crawl"])
    app.include_router(jobs_router.router, prefix="/jobs", tags=["jobs"])
    app.include_router(content_router.router, prefix="/content", tags=["content"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn tutorial_ingest.api.app:app --reload
app = create_app()
