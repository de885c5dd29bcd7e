"""
backend/models.py

Shared dataclasses for every stage of the pipeline.
Defining all of them here locks the inter-stage contracts early so the
client (buffer, sync) and the server (store, aggregator, API) agree on one
representation.

Wire format (JSON, camelCase) for a single record:
    {"sourceIp": "10.0.0.1", "destIp": "8.8.8.8", "size": 100, "timestamp": 1000}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Stage 1: Capture output
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TrafficRecord:
    """One observed packet/flow summary. Immutable once constructed."""

    source_address: str
    """Originating address, e.g. '10.0.0.1'."""

    destination_address: str
    """Target address — the primary aggregation key."""

    size_bytes: int
    """Payload size in bytes. 0 is valid (pure control packets)."""

    observed_at: float
    """Capture-side wall clock. Not guaranteed to be monotonic."""

    def problems(self) -> list[str]:
        """Return every invariant this record violates (empty list if valid)."""
        found: list[str] = []
        if not isinstance(self.source_address, str) or not self.source_address:
            found.append("sourceIp must be a non-empty string")
        if not isinstance(self.destination_address, str) or not self.destination_address:
            found.append("destIp must be a non-empty string")
        if (
            not isinstance(self.size_bytes, int)
            or isinstance(self.size_bytes, bool)
            or self.size_bytes < 0
        ):
            found.append(f"size must be a non-negative integer, got {self.size_bytes!r}")
        return found

    @property
    def is_valid(self) -> bool:
        return not self.problems()

    def to_wire(self) -> dict[str, Any]:
        return {
            "sourceIp":  self.source_address,
            "destIp":    self.destination_address,
            "size":      self.size_bytes,
            "timestamp": self.observed_at,
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "TrafficRecord":
        """Build a record from its wire dict. Raises KeyError on missing fields."""
        return cls(
            source_address=data["sourceIp"],
            destination_address=data["destIp"],
            size_bytes=data["size"],
            observed_at=data.get("timestamp", 0.0),
        )


# ---------------------------------------------------------------------------
# Stage 2: Transmission unit
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Batch:
    """Records bundled for upload, in capture order (oldest first)."""

    records: tuple[TrafficRecord, ...]
    client_timestamp: float

    def __len__(self) -> int:
        return len(self.records)

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.records)


# ---------------------------------------------------------------------------
# Stage 3: Server-side storage
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LogEntry:
    """An accepted batch plus its arrival metadata. Never mutated."""

    entry_id: str
    batch: Batch
    received_at: float
    """Server wall clock at acceptance — authoritative for aggregation."""


# ---------------------------------------------------------------------------
# Stage 4: Aggregation output
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DestinationCount:
    address: str
    count: int


@dataclass(frozen=True)
class AggregateSnapshot:
    """Statistics over every stored entry at one point in time."""

    total_logs: int = 0
    total_packets: int = 0
    total_bytes: int = 0
    unique_destination_count: int = 0
    top_destinations: tuple[DestinationCount, ...] = field(default_factory=tuple)
    """Sorted by occurrence count descending; ties keep first-seen order."""


@dataclass(frozen=True)
class BatchSummary:
    """What the uploader gets back for a single accepted batch."""

    entry_id: str
    total_packets: int
    total_bytes: int
    unique_destinations: int
    received_at: float
