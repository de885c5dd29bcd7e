"""
api/routes/stats.py

GET /api/stats — aggregate statistics over every stored batch.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...aggregation import Aggregator
from ..serializers import StatsResponse

router = APIRouter(tags=["stats"])


def _get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    aggregator: Aggregator = Depends(_get_aggregator),
) -> StatsResponse:
    """Totals, unique destinations and the top-destination ranking."""
    return StatsResponse.from_snapshot(aggregator.summarize())
