"""storage/__init__.py"""
from .store import IngestStore

__all__ = ["IngestStore"]
