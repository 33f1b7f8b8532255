"""Service layer for the Package History API."""

from .history import HistoryService

__all__ = ["HistoryService"]
