"""
api/routes/logs.py

GET /api/logs?limit=N — most recent stored batches, newest first.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from ...storage import IngestStore
from ..serializers import LogEntryResponse, LogsResponse

router = APIRouter(tags=["logs"])


def _get_store(request: Request) -> IngestStore:
    return request.app.state.store


def _default_limit(request: Request) -> int:
    return request.app.state.logs_default_limit


@router.get("/logs", response_model=LogsResponse)
async def list_logs(
    limit: Annotated[int | None, Query(description="Max entries to return")] = None,
    store: IngestStore = Depends(_get_store),
    default_limit: int = Depends(_default_limit),
) -> LogsResponse:
    """Return at most *limit* entries (default from settings; negatives mean 0)."""
    effective = default_limit if limit is None else max(0, limit)
    entries = store.list(effective)
    return LogsResponse(
        total=len(store),
        logs=[LogEntryResponse.from_entry(e) for e in entries],
    )
