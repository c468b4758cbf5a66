"""Consumer side of the history panel: HTTP clients and panel state."""

from app.client.generation import GenerationClient, GenerationError, GenerationResult
from app.client.history_client import HistoryClient, HistoryClientError
from app.client.panel import HistoryPanel, format_timestamp

__all__ = [
    "GenerationClient",
    "GenerationError",
    "GenerationResult",
    "HistoryClient",
    "HistoryClientError",
    "HistoryPanel",
    "format_timestamp",
]
