"""
explain/gatekeeper.py

ExplainGatekeeper decides whether an explanation request may reach the LLM.

Checks (in order):
  1. Rate limit: max N calls per minute (sliding window)
  2. Cooldown:   one call per destination every cooldown_seconds
"""

from __future__ import annotations

import logging
import time
from collections import deque

logger = logging.getLogger(__name__)


class ExplainGatekeeper:
    """Synchronous, I/O-free guard in front of the LLM."""

    def __init__(self, max_calls_per_minute: int = 10, cooldown_seconds: int = 30) -> None:
        self.max_calls_per_minute = max_calls_per_minute
        self.cooldown_seconds = cooldown_seconds

        self._call_times: deque[float] = deque()
        # destination → last approved call
        self._cooldowns: dict[str, float] = {}

    def should_call(self, destination: str) -> tuple[bool, str]:
        """
        Return (should_call, reason).

        Reasons for skipping: RATE_LIMITED, COOLDOWN.
        Reason for calling:   APPROVED.
        """
        now = time.time()

        while self._call_times and now - self._call_times[0] >= 60.0:
            self._call_times.popleft()
        if len(self._call_times) >= self.max_calls_per_minute:
            logger.warning(
                "LLM rate limit reached (%d calls/min)", self.max_calls_per_minute
            )
            return False, "RATE_LIMITED"

        last_called = self._cooldowns.get(destination)
        if last_called is not None and now - last_called < self.cooldown_seconds:
            return False, "COOLDOWN"

        self._call_times.append(now)
        self._cooldowns[destination] = now
        return True, "APPROVED"
