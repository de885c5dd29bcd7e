"""
client/sync.py

Async HTTP client that uploads buffered TrafficRecords to the ingest server.

Responsibilities:
  - Reject empty input locally (EmptyBatch) — nothing goes over the wire
  - Serialise records + client timestamp and POST them to {base_url}/analyze
  - Enforce a hard timeout per call (default 10 s)
  - Translate every failure into SyncError(kind=status|timeout|transport)

It never retries and never touches the caller's buffer; deciding whether to
retry or clear is up to the caller. It also never aggregates — the summary
in the AcceptanceReport is whatever the server computed.

Usage:
    client = SyncClient(base_url="http://localhost:8080/api")
    report = await client.sync(buffer.snapshot())
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx

from ..errors import EmptyBatch, SyncError
from ..metrics import METRICS
from ..models import TrafficRecord

logger = logging.getLogger(__name__)

_SYNC_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class AcceptanceReport:
    """Server acknowledgement for one uploaded batch."""

    summary: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def total_packets(self) -> int:
        return int(self.summary.get("totalPackets", 0))

    @property
    def total_bytes(self) -> int:
        return int(self.summary.get("totalBytes", 0))


class SyncClient:
    """
    Args:
        base_url:  API root, e.g. "http://localhost:8080/api"
        timeout:   Seconds to wait for the server before failing with "timeout"
        transport: Optional httpx transport (MockTransport / ASGITransport in tests)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080/api",
        timeout: float = _SYNC_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def sync(self, records: Sequence[TrafficRecord]) -> AcceptanceReport:
        """
        Upload *records* as one batch.

        Raises:
            EmptyBatch — records is empty (nothing was sent)
            SyncError  — non-2xx status, timeout, or transport failure
        """
        if not records:
            raise EmptyBatch("no records to sync")

        payload = {
            "packets":   [r.to_wire() for r in records],
            "timestamp": int(time.time() * 1000),
        }

        try:
            body = await self._post("/analyze", payload)
        except SyncError as exc:
            METRICS.syncs_failed.inc()
            logger.warning("Sync of %d records failed: %s", len(records), exc)
            raise

        METRICS.syncs_ok.inc()
        summary = body.get("summary") or {}
        logger.info(
            "Synced %d records — server summary: %s", len(records), summary,
        )
        return AcceptanceReport(summary=summary, raw=body)

    async def health_check(self) -> bool:
        """Return True if the server's /health endpoint answers "ok". Never raises."""
        url = httpx.URL(self.base_url).join("/health")
        try:
            async with self._client(timeout=3.0) as client:
                resp = await client.get(url)
                return resp.status_code == 200 and resp.json().get("status") == "ok"
        except Exception as exc:
            logger.info("Ingest server not reachable at %s: %s", url, exc)
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with asyncio.timeout(self.timeout):
                async with self._client(timeout=self.timeout + 1) as client:
                    resp = await client.post(url, json=payload)
                    resp.raise_for_status()
                    body = resp.json()
        except TimeoutError as exc:
            raise SyncError("timeout", detail=f"no response after {self.timeout:.1f}s") from exc
        except httpx.TimeoutException as exc:
            raise SyncError("timeout", detail=str(exc)) from exc
        except httpx.HTTPStatusError as exc:
            raise SyncError(
                "status",
                status_code=exc.response.status_code,
                detail=exc.response.text[:200],
            ) from exc
        except httpx.HTTPError as exc:
            raise SyncError("transport", detail=str(exc)) from exc
        except ValueError as exc:
            raise SyncError("transport", detail=f"malformed response: {exc}") from exc

        if not isinstance(body, dict):
            raise SyncError("transport", detail="malformed response: expected a JSON object")
        return body
