"""
backend/metrics.py

Lightweight thread-safe counters for the client and server pipeline.
No external dependencies — uses Python's threading.Lock.

Usage:
    from backend.metrics import METRICS
    METRICS.records_captured.inc()
    print(METRICS.as_dict())
"""

import threading


class Counter:
    """A thread-safe integer counter."""

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class Metrics:
    """Singleton holding all pipeline counters."""

    def __init__(self) -> None:
        # --- Client side ---
        self.records_captured: Counter = Counter()
        """Records pushed into a client buffer."""

        self.records_evicted: Counter = Counter()
        """Records discarded because the buffer was at capacity."""

        self.subscriber_errors: Counter = Counter()
        """Capture subscribers that raised while handling a record."""

        self.syncs_ok: Counter = Counter()
        self.syncs_failed: Counter = Counter()

        # --- Server side ---
        self.batches_accepted: Counter = Counter()
        self.batches_rejected: Counter = Counter()

    def as_dict(self) -> dict:
        """Return all counters as a plain dict (safe for JSON serialisation)."""
        return {
            name: counter.value
            for name, counter in vars(self).items()
            if isinstance(counter, Counter)
        }

    def reset_all(self) -> None:
        """Reset every counter to zero (useful in tests)."""
        for attr in vars(self).values():
            if isinstance(attr, Counter):
                attr.reset()


# Module-level singleton: import from here everywhere
METRICS = Metrics()
