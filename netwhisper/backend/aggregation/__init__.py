"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .aggregator import Aggregator, top_destinations

__all__ = [
    "Aggregator",
    "top_destinations",
]
