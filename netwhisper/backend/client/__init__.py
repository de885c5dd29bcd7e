"""
client/__init__.py

Public API for the device-side client sub-package.
"""

from .buffer import RecordBuffer
from .monitor import MonitorState, SyncStatus, TrafficMonitor
from .sync import AcceptanceReport, SyncClient

__all__ = [
    "RecordBuffer",
    "SyncClient",
    "AcceptanceReport",
    "TrafficMonitor",
    "MonitorState",
    "SyncStatus",
]
