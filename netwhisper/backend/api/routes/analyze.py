"""
api/routes/analyze.py

POST /api/analyze — accept one batch of packets from a device.

Responses:
  200  {success: true, summary: {totalPackets, totalBytes, uniqueDestinations, receivedAt}}
  400  {error}  packets missing / not a list (see the validation handler in
                api/main.py), empty, or containing invalid records
  500  {error}  anything unexpected — logged, never propagated
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...aggregation import Aggregator
from ...errors import BatchRejected
from ...metrics import METRICS
from ...storage import IngestStore
from ..serializers import AnalyzeRequest, AnalyzeResponse, BatchSummaryResponse, ErrorResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ingest"])


def _get_store(request: Request) -> IngestStore:
    """FastAPI dependency — the store handle lives on app.state."""
    return request.app.state.store


def _get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze(
    payload: AnalyzeRequest,
    store: IngestStore = Depends(_get_store),
    aggregator: Aggregator = Depends(_get_aggregator),
):
    """Store a batch and return its per-batch summary."""
    try:
        batch = payload.to_batch(fallback_timestamp=int(time.time() * 1000))
        entry_id = store.append(batch)
        summary = aggregator.summarize_batch(store.get(entry_id))
    except BatchRejected as exc:
        METRICS.batches_rejected.inc()
        logger.info("Rejected batch of %d packets: %s", len(payload.packets), exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception:
        logger.exception("Error processing packets")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    METRICS.batches_accepted.inc()
    logger.info(
        "Received %d packets — %d bytes, %d unique destinations",
        summary.total_packets, summary.total_bytes, summary.unique_destinations,
    )
    return AnalyzeResponse(summary=BatchSummaryResponse.from_summary(summary))
