"""
client/buffer.py

RecordBuffer — bounded, thread-safe, ring-buffer store of the most recent
TrafficRecords seen on the device.

Semantics:
  - push() never fails. When the buffer is at capacity the *oldest* record is
    discarded to make room. This loss is bounded by capacity and expected, so
    it is counted (METRICS.records_evicted) but not raised or warned about.
  - snapshot() returns capture order (oldest first), the order the sync
    client transmits. recent() returns most-recent-first, the order a
    display shows.
  - Both readers return immutable tuples taken under the lock, so a reader
    concurrent with push() sees the state before or after it, never between.
"""

from __future__ import annotations

import logging
import threading
from collections import deque

from ..metrics import METRICS
from ..models import TrafficRecord

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class RecordBuffer:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._records: deque[TrafficRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.evicted = 0

    @property
    def capacity(self) -> int:
        return self._records.maxlen  # type: ignore[return-value]

    def push(self, record: TrafficRecord) -> None:
        """Append *record*, evicting the oldest one if the buffer is full."""
        with self._lock:
            full = len(self._records) == self._records.maxlen
            self._records.append(record)  # deque(maxlen) drops from the left
            if full:
                self.evicted += 1
        METRICS.records_captured.inc()
        if full:
            METRICS.records_evicted.inc()
            logger.debug("Buffer at capacity (%d) — oldest record evicted", self.capacity)

    def snapshot(self) -> tuple[TrafficRecord, ...]:
        """Current contents, oldest first."""
        with self._lock:
            return tuple(self._records)

    def recent(self) -> tuple[TrafficRecord, ...]:
        """Current contents, most recent first."""
        with self._lock:
            return tuple(reversed(self._records))

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __repr__(self) -> str:  # pragma: no cover
        return f"RecordBuffer({len(self._records)}/{self.capacity}, evicted={self.evicted})"
