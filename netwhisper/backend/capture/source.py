"""
capture/source.py

CaptureSource — the subscriber contract between an event producer of
TrafficRecords and whoever consumes them (the client buffer, a UI, tests).

Key design decisions:
  - Subscriptions live in a dict keyed by an opaque token. Unsubscribing is a
    dict pop with a default, so removing twice, removing an unknown token, or
    removing after stop() are all no-ops.
  - Records are broadcast to subscribers in registration order (dicts keep
    insertion order). A failing subscriber is logged and skipped; the rest
    still receive the record.
  - emit() may be called from a producer thread. The subscriber list is
    copied under the lock and callbacks run outside it.
  - start()/stop() are idempotent: last write wins on the active flag.

Variants:
    LiveCaptureSource    platform VPN interception — unavailable in this core,
                         start() raises CapabilityUnavailable
    NullCaptureSource    starts and stops, produces nothing
    ReplayCaptureSource  replays a fixed list of records when started

Lifecycle:
    source = ReplayCaptureSource(records)
    token = source.subscribe(buffer.push)
    source.start()
    ...
    source.stop()
    source.unsubscribe(token)
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Iterable

from ..errors import CapabilityUnavailable
from ..metrics import METRICS
from ..models import TrafficRecord

logger = logging.getLogger(__name__)

RecordCallback = Callable[[TrafficRecord], None]


class CaptureSource:
    """Base class: subscriber bookkeeping plus the start/stop flag."""

    name = "base"

    def __init__(self) -> None:
        self._subscribers: dict[int, RecordCallback] = {}
        self._tokens = itertools.count(1)
        self._running = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: RecordCallback) -> int:
        """Register *callback*; return the token needed to unsubscribe."""
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = callback
        logger.debug("%s: subscriber %d registered", self.name, token)
        return token

    def unsubscribe(self, token: int) -> None:
        """Remove a subscription. Unknown or already-removed tokens are ignored."""
        with self._lock:
            removed = self._subscribers.pop(token, None)
        if removed is not None:
            logger.debug("%s: subscriber %d removed", self.name, token)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._running:
                logger.debug("%s.start() called but already running", self.name)
                return
            self._running = True
        logger.info("%s capture started", self.name)
        self._on_start()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        logger.info("%s capture stopped", self.name)

    @property
    def is_running(self) -> bool:
        return self._running

    def _on_start(self) -> None:
        """Hook run after the source becomes active."""

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def emit(self, record: TrafficRecord) -> int:
        """
        Broadcast *record* to every active subscriber.

        Records emitted while the source is stopped are dropped.
        Returns the number of subscribers that handled the record cleanly.
        """
        with self._lock:
            if not self._running:
                return 0
            callbacks = list(self._subscribers.items())

        delivered = 0
        for token, callback in callbacks:
            try:
                callback(record)
                delivered += 1
            except Exception:
                METRICS.subscriber_errors.inc()
                logger.exception("%s: subscriber %d failed", self.name, token)
        return delivered

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{type(self).__name__}(running={self._running}, "
            f"subscribers={len(self._subscribers)})"
        )


class LiveCaptureSource(CaptureSource):
    """
    On-device VPN interception.

    The platform-specific capture module is supplied by the host application;
    this core has none, so start() fails loudly and the caller can show a
    setup-required state instead of an empty capture.
    """

    name = "live"

    def start(self) -> None:
        logger.warning("Live capture requested but no platform capture module is installed")
        raise CapabilityUnavailable(
            "traffic capture requires the platform VPN module, which is not installed"
        )


class NullCaptureSource(CaptureSource):
    name = "null"


class ReplayCaptureSource(CaptureSource):
    """Replays a fixed sequence of records to subscribers on every start()."""

    name = "replay"

    def __init__(self, records: Iterable[TrafficRecord] = ()) -> None:
        super().__init__()
        self._records = tuple(records)

    def _on_start(self) -> None:
        replayed = 0
        for record in self._records:
            if not self._running:
                break
            self.emit(record)
            replayed += 1
        logger.info("replay delivered %d/%d records", replayed, len(self._records))
