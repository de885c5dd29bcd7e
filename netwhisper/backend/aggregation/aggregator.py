"""
aggregation/aggregator.py

Aggregator — computes traffic statistics over everything in the IngestStore.

summarize() is a full rescan of store.all() on every call:
  - total_logs / total_packets / total_bytes
  - unique_destination_count   distinct destination addresses
  - top_destinations           ranked by *occurrence count* (not bytes),
                               descending, ties in first-seen order

Ranking determinism: Counter keeps first-insertion order and sorted() is
stable, so equal counts stay in the order their address first appeared in
the store. Two calls with no append in between return equal snapshots.

Cost is O(total records) per call.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from ..models import AggregateSnapshot, BatchSummary, DestinationCount, LogEntry, TrafficRecord
from ..storage import IngestStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_LIMIT = 10


def top_destinations(
    records: Iterable[TrafficRecord],
    limit: int = DEFAULT_TOP_LIMIT,
) -> tuple[DestinationCount, ...]:
    """Most frequent destination addresses, first-seen order on ties."""
    counts = Counter(r.destination_address for r in records)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(
        DestinationCount(address=address, count=count)
        for address, count in ranked[: max(0, limit)]
    )


class Aggregator:
    """
    Args:
        store:     The IngestStore to scan.
        top_limit: Default length of the top_destinations ranking.
    """

    def __init__(self, store: IngestStore, top_limit: int = DEFAULT_TOP_LIMIT) -> None:
        self._store = store
        self.top_limit = top_limit

    def summarize(self, limit: int | None = None) -> AggregateSnapshot:
        """Aggregate every stored entry. Pure with respect to store contents."""
        entries = self._store.all()
        records = [r for entry in entries for r in entry.batch.records]

        snapshot = AggregateSnapshot(
            total_logs=len(entries),
            total_packets=len(records),
            total_bytes=sum(r.size_bytes for r in records),
            unique_destination_count=len({r.destination_address for r in records}),
            top_destinations=top_destinations(
                records, self.top_limit if limit is None else limit
            ),
        )
        logger.debug(
            "Summarized %d logs / %d packets", snapshot.total_logs, snapshot.total_packets,
        )
        return snapshot

    @staticmethod
    def summarize_batch(entry: LogEntry) -> BatchSummary:
        """Summary of a single accepted batch, returned to its uploader."""
        records = entry.batch.records
        return BatchSummary(
            entry_id=entry.entry_id,
            total_packets=len(records),
            total_bytes=sum(r.size_bytes for r in records),
            unique_destinations=len({r.destination_address for r in records}),
            received_at=entry.received_at,
        )
