"""
client/monitor.py

TrafficMonitor — one device-side monitoring session.

Wires a CaptureSource into a RecordBuffer and uploads the buffer through a
SyncClient on demand. It keeps enough state for a UI to tell apart the
situations an operator cares about:

    state        IDLE | MONITORING | SETUP_REQUIRED
    sync_status  NEVER | OK | FAILED | NO_DATA

A failed sync leaves the buffer untouched and is reported as FAILED, which is
distinct from NO_DATA (nothing captured yet).
"""

from __future__ import annotations

import logging
from enum import Enum

from ..capture import CaptureSource
from ..errors import CapabilityUnavailable, SyncError
from .buffer import RecordBuffer
from .sync import AcceptanceReport, SyncClient

logger = logging.getLogger(__name__)


class MonitorState(str, Enum):
    IDLE = "IDLE"
    MONITORING = "MONITORING"
    SETUP_REQUIRED = "SETUP_REQUIRED"


class SyncStatus(str, Enum):
    NEVER = "NEVER"
    OK = "OK"
    FAILED = "FAILED"
    NO_DATA = "NO_DATA"


class TrafficMonitor:
    def __init__(
        self,
        source: CaptureSource,
        client: SyncClient,
        buffer: RecordBuffer | None = None,
    ) -> None:
        self.source = source
        self.client = client
        self.buffer = buffer if buffer is not None else RecordBuffer()
        self.state = MonitorState.IDLE
        self.sync_status = SyncStatus.NEVER
        self.last_report: AcceptanceReport | None = None
        self.last_error: SyncError | None = None
        self._token: int | None = None

    def start(self) -> None:
        """
        Begin a new session: clear the buffer, subscribe it, start capture.

        Raises CapabilityUnavailable (after switching to SETUP_REQUIRED) when
        the source cannot capture on this platform.
        """
        if self.state is MonitorState.MONITORING:
            return
        self.buffer.clear()
        self._token = self.source.subscribe(self.buffer.push)
        try:
            self.source.start()
        except CapabilityUnavailable:
            self._unsubscribe()
            self.state = MonitorState.SETUP_REQUIRED
            logger.warning("Capture unavailable — monitor needs platform setup")
            raise
        self.state = MonitorState.MONITORING

    def stop(self) -> None:
        """Stop capturing. Buffered records are kept for display and sync."""
        self.source.stop()
        self._unsubscribe()
        if self.state is MonitorState.MONITORING:
            self.state = MonitorState.IDLE

    async def sync(self, clear_on_success: bool = False) -> AcceptanceReport | None:
        """
        Upload the buffer in capture order.

        Returns the server's report, or None when there was nothing to send.
        Raises SyncError after recording it in sync_status/last_error.
        """
        records = self.buffer.snapshot()
        if not records:
            self.sync_status = SyncStatus.NO_DATA
            return None

        try:
            report = await self.client.sync(records)
        except SyncError as exc:
            self.sync_status = SyncStatus.FAILED
            self.last_error = exc
            raise

        self.sync_status = SyncStatus.OK
        self.last_report = report
        self.last_error = None
        if clear_on_success:
            self.buffer.clear()
        return report

    def _unsubscribe(self) -> None:
        if self._token is not None:
            self.source.unsubscribe(self._token)
            self._token = None
