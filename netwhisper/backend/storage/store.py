"""
storage/store.py

IngestStore — append-only, in-memory collection of accepted batches.

Design decisions:
  - Process-scoped: created empty at startup, discarded at exit. There is no
    durability and no retention/compaction; entries are never mutated.
  - All-or-nothing append: the whole batch is validated before anything is
    stored, so a rejected batch is never partially visible.
  - One lock guards "assign id + timestamp + append". Readers take a tuple
    copy under the same lock, so they never see a half-written entry.
  - No module-level singleton: the API and the Aggregator receive the store
    handle explicitly.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid

from ..errors import EmptyBatch, InvalidBatch
from ..models import Batch, LogEntry

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 10


class IngestStore:
    def __init__(self) -> None:
        self._entries: list[LogEntry] = []
        self._by_id: dict[str, LogEntry] = {}
        self._lock = threading.Lock()

    # ==================================================================
    # Write methods
    # ==================================================================

    def append(self, batch: Batch) -> str:
        """
        Validate and store *batch*; return the new entry id.

        Raises:
            EmptyBatch   — batch has no records
            InvalidBatch — at least one record breaks an invariant
        """
        if not batch.records:
            raise EmptyBatch()

        problems = [
            f"record {i}: {problem}"
            for i, record in enumerate(batch.records)
            for problem in record.problems()
        ]
        if problems:
            raise InvalidBatch(problems)

        with self._lock:
            entry = LogEntry(
                entry_id=uuid.uuid4().hex,
                batch=batch,
                received_at=time.time(),
            )
            self._entries.append(entry)
            self._by_id[entry.entry_id] = entry
            total = len(self._entries)

        logger.debug(
            "Stored entry %s — %d records (store size=%d)",
            entry.entry_id, len(batch.records), total,
        )
        return entry.entry_id

    # ==================================================================
    # Read methods
    # ==================================================================

    def get(self, entry_id: str) -> LogEntry | None:
        with self._lock:
            return self._by_id.get(entry_id)

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> list[LogEntry]:
        """Most recently appended entries first, at most *limit* (clamped to >= 0)."""
        limit = max(0, limit)
        with self._lock:
            if limit == 0:
                return []
            return self._entries[-limit:][::-1]

    def all(self) -> tuple[LogEntry, ...]:
        """Every entry in append order."""
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
