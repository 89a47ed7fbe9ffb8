"""History store module."""

from .store import HistoryStore, IHistoryStore

__all__ = ["HistoryStore", "IHistoryStore"]
