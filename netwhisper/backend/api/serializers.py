"""
api/serializers.py

Pydantic request/response models for the ingest API.

Python-side field names are snake_case; the JSON wire names (camelCase, as
the mobile client sends them) are declared as aliases. FastAPI serialises
response models by alias.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from ..explain import RiskExplanation
from ..models import AggregateSnapshot, Batch, BatchSummary, LogEntry, TrafficRecord


def iso_utc(ts: float) -> str:
    """Unix seconds → '2024-01-01T12:00:00.000Z'."""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Packets
# ---------------------------------------------------------------------------

class PacketModel(WireModel):
    # Strict types: a bool or a numeric string is rejected, not coerced.
    source_ip: StrictStr = Field(alias="sourceIp")
    dest_ip: StrictStr = Field(alias="destIp")
    size: StrictInt
    timestamp: int | float = 0
    """Echoed back as sent; an integer stays an integer."""

    def to_record(self) -> TrafficRecord:
        return TrafficRecord(
            source_address=self.source_ip,
            destination_address=self.dest_ip,
            size_bytes=self.size,
            observed_at=self.timestamp,
        )

    @classmethod
    def from_record(cls, record: TrafficRecord) -> "PacketModel":
        return cls(
            source_ip=record.source_address,
            dest_ip=record.destination_address,
            size=record.size_bytes,
            timestamp=record.observed_at,
        )


# ---------------------------------------------------------------------------
# POST /analyze
# ---------------------------------------------------------------------------

class AnalyzeRequest(WireModel):
    packets: list[PacketModel]
    timestamp: int | float | None = None
    """Client clock (ms epoch) at batch assembly."""

    def to_batch(self, fallback_timestamp: int | float) -> Batch:
        return Batch(
            records=tuple(p.to_record() for p in self.packets),
            client_timestamp=(
                self.timestamp if self.timestamp is not None else fallback_timestamp
            ),
        )


class BatchSummaryResponse(WireModel):
    total_packets: int = Field(alias="totalPackets")
    total_bytes: int = Field(alias="totalBytes")
    unique_destinations: int = Field(alias="uniqueDestinations")
    received_at: str = Field(alias="receivedAt")

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "BatchSummaryResponse":
        return cls(
            total_packets=summary.total_packets,
            total_bytes=summary.total_bytes,
            unique_destinations=summary.unique_destinations,
            received_at=iso_utc(summary.received_at),
        )


class AnalyzeResponse(WireModel):
    success: bool = True
    summary: BatchSummaryResponse


class ErrorResponse(BaseModel):
    error: str


# ---------------------------------------------------------------------------
# GET /logs
# ---------------------------------------------------------------------------

class LogEntryResponse(WireModel):
    id: str
    packets: list[PacketModel]
    timestamp: int | float
    received_at: str = Field(alias="receivedAt")

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "LogEntryResponse":
        return cls(
            id=entry.entry_id,
            packets=[PacketModel.from_record(r) for r in entry.batch.records],
            timestamp=entry.batch.client_timestamp,
            received_at=iso_utc(entry.received_at),
        )


class LogsResponse(BaseModel):
    total: int
    logs: list[LogEntryResponse]


# ---------------------------------------------------------------------------
# GET /stats
# ---------------------------------------------------------------------------

class DestinationCountResponse(BaseModel):
    ip: str
    count: int


class StatsResponse(WireModel):
    total_logs: int = Field(alias="totalLogs")
    total_packets: int = Field(alias="totalPackets")
    total_bytes: int = Field(alias="totalBytes")
    unique_ips: int = Field(alias="uniqueIPs")
    top_destinations: list[DestinationCountResponse] = Field(alias="topDestinations")

    @classmethod
    def from_snapshot(cls, snapshot: AggregateSnapshot) -> "StatsResponse":
        return cls(
            total_logs=snapshot.total_logs,
            total_packets=snapshot.total_packets,
            total_bytes=snapshot.total_bytes,
            unique_ips=snapshot.unique_destination_count,
            top_destinations=[
                DestinationCountResponse(ip=d.address, count=d.count)
                for d in snapshot.top_destinations
            ],
        )


# ---------------------------------------------------------------------------
# POST /explain
# ---------------------------------------------------------------------------

class ExplainRequest(WireModel):
    destination_ip: StrictStr = Field(alias="destinationIp", min_length=1)
    packet_size: StrictInt = Field(alias="packetSize", ge=0)
    timestamp: str | int | float | None = None
    """Client capture time; accepted for compatibility, not used."""


class ExplainResponse(WireModel):
    risk_score: str = Field(alias="riskScore")
    explanation: str
    fallback_used: bool = Field(default=False, alias="fallbackUsed")

    @classmethod
    def from_explanation(cls, result: RiskExplanation) -> "ExplainResponse":
        return cls(
            risk_score=result.risk_score,
            explanation=result.explanation,
            fallback_used=result.fallback_used,
        )


class HealthResponse(BaseModel):
    status: str
    uptime: float
