"""
capture/__init__.py

Public API for the capture sub-package.
"""

from .source import (
    CaptureSource,
    LiveCaptureSource,
    NullCaptureSource,
    ReplayCaptureSource,
)

__all__ = [
    "CaptureSource",
    "LiveCaptureSource",
    "NullCaptureSource",
    "ReplayCaptureSource",
]
