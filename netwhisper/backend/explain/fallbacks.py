"""
explain/fallbacks.py

Rule-based explanations used when the LLM is disabled, unreachable, rate
limited or returns nothing usable.

Each sentence contains one of the risk keywords, so determine_risk_score()
grades it consistently:
  - private / loopback / link-local destination  → "normal"  (Low)
  - transfer of LARGE_TRANSFER_BYTES or more     → "unusual" (Medium)
  - anything else                                → "normal"  (Low)
"""

from __future__ import annotations

import ipaddress

LARGE_TRANSFER_BYTES = 1_000_000


def _is_local(destination: str) -> bool:
    try:
        addr = ipaddress.ip_address(destination)
    except ValueError:
        # Hostnames and malformed addresses are treated as internet hosts
        return False
    return addr.is_private or addr.is_loopback or addr.is_link_local


def fallback_explanation(destination: str, packet_size: int) -> str:
    """Return a one-sentence explanation built from fixed rules."""
    if _is_local(destination):
        return (
            f"This is normal traffic between devices on your home network "
            f"({destination})."
        )
    if packet_size >= LARGE_TRANSFER_BYTES:
        return (
            f"Sending {packet_size} bytes to {destination} is an unusual amount "
            f"of data, so use caution and check which app is doing it."
        )
    return (
        f"Sending {packet_size} bytes to {destination} looks like normal "
        f"internet traffic."
    )
