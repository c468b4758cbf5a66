"""Search history — cookie-backed bounded list of past generations."""

from app.history.schemas import HistoryEntry, HistoryEntryCreate, HistoryEntryUpdate
from app.history.store import HistoryEntryNotFound, HistoryError, HistoryStore

__all__ = [
    "HistoryEntry",
    "HistoryEntryCreate",
    "HistoryEntryUpdate",
    "HistoryEntryNotFound",
    "HistoryError",
    "HistoryStore",
]
