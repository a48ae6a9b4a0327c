"""Content endpoints.

Routes
------
GET /content              Stored articles (optional ?category=), without bodies
GET /content/article      ?url=... — one stored article in full
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

from tutorial_ingest.db.content import get_content, list_content
from tutorial_ingest.db.models import ContentRecord

router = APIRouter()


def _summary(item: ContentRecord) -> dict[str, Any]:
    return {
        "id": item.id,
        "url": item.url,
        "title": item.title,
        "category": item.category,
        "word_count": item.word_count,
        "keywords": item.keywords,
        "topics": item.topics,
        "content_hash": item.content_hash,
        "processed": item.processed,
        "updated_at": item.updated_at,
    }


@router.get("")
def list_content_endpoint(
    request: Request, category: Optional[str] = None
) -> list[dict[str, Any]]:
    """Return a summary of every stored article."""
    return [_summary(item) for item in list_content(request.app.state.db, category)]


@router.get("/article")
def get_article_endpoint(url: str, request: Request) -> dict[str, Any]:
    """Return the full stored record for *url*."""
    item = get_content(request.app.state.db, url)
    if item is None:
        raise HTTPException(status_code=404, detail=f"No content stored for {url}")
    return {
        **_summary(item),
        "content": item.content,
        "markdown": item.markdown,
        "code_snippets": item.code_snippets,
    }
