"""
backend/errors.py

Exception taxonomy shared by the client and server halves of the pipeline.

    NetWhisperError
    ├── CapabilityUnavailable   capture source cannot start on this platform
    ├── BatchRejected           batch failed validation (no side effects)
    │   ├── EmptyBatch
    │   └── InvalidBatch
    └── SyncError               upload failed: status | timeout | transport
"""

from __future__ import annotations


class NetWhisperError(Exception):
    """Base class for every error raised by this package."""


class CapabilityUnavailable(NetWhisperError):
    """The platform capture mechanism (VPN interception) is not available."""


class BatchRejected(NetWhisperError, ValueError):
    """A batch was refused before anything was stored or sent."""


class EmptyBatch(BatchRejected):
    def __init__(self, message: str = "batch contains no records") -> None:
        super().__init__(message)


class InvalidBatch(BatchRejected):
    """One or more records violate the TrafficRecord invariants."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("invalid batch: " + "; ".join(self.problems))


class SyncError(NetWhisperError):
    """
    Transmission of a batch to the ingest endpoint failed.

    kind:
        "status"    — server answered with a non-2xx status (see status_code)
        "timeout"   — no answer within the configured timeout
        "transport" — connection refused, DNS failure, malformed response…
    """

    KINDS = ("status", "timeout", "transport")

    def __init__(
        self,
        kind: str,
        status_code: int | None = None,
        detail: str = "",
    ) -> None:
        if kind not in self.KINDS:
            raise ValueError(f"unknown SyncError kind: {kind!r}")
        self.kind = kind
        self.status_code = status_code
        self.detail = detail
        message = f"sync failed ({kind}"
        if status_code is not None:
            message += f" {status_code}"
        message += ")"
        if detail:
            message += f": {detail}"
        super().__init__(message)
