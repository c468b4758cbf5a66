"""History panel state — what the search-history popover shows and does.

The panel never patches its list locally: every mutation is followed by a
full refetch, so whatever the server returns is what gets rendered.
"""

import logging
import webbrowser
from datetime import datetime

from app.client.history_client import HistoryClient, HistoryClientError
from app.history.schemas import HistoryEntry

logger = logging.getLogger(__name__)


def format_timestamp(timestamp: str) -> str:
    """Render an ISO-8601 timestamp in local time; unparseable values pass through."""
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class HistoryPanel:
    """Entries, selection, and the edit draft for one panel instance."""

    def __init__(self, client: HistoryClient):
        self.client = client
        self.entries: list[HistoryEntry] = []
        self.is_loading = False
        self.error: str | None = None
        self.selected: HistoryEntry | None = None
        self.draft: HistoryEntry | None = None

    async def mount(self):
        await self.refresh()

    async def refresh(self):
        self.is_loading = True
        try:
            self.entries = await self.client.list_history()
            self.error = None
        except HistoryClientError as e:
            self.error = "Failed to load search history"
            logger.error("Error fetching history: %s", str(e)[:200])
        finally:
            self.is_loading = False

    def view(self, entry: HistoryEntry) -> str | None:
        """Select an entry for the viewer dialog; returns its model URL."""
        self.selected = entry
        return entry.modelUrl

    def start_edit(self, entry: HistoryEntry) -> HistoryEntry:
        self.selected = entry
        self.draft = entry.model_copy(deep=True)
        return self.draft

    def edit_draft(self, **changes) -> HistoryEntry:
        if self.draft is None:
            raise RuntimeError("No entry is being edited")
        self.draft = self.draft.model_copy(update=changes)
        return self.draft

    def cancel_edit(self):
        self.draft = None

    async def commit_edit(self) -> HistoryEntry | None:
        """Send the full draft through Update, then refetch the list."""
        if self.draft is None:
            return None
        try:
            updated = await self.client.update_history(self.draft)
        except HistoryClientError as e:
            self.error = "Failed to update history item"
            logger.error("Error updating history item: %s", str(e)[:200])
            return None
        self.draft = None
        await self.refresh()
        return updated

    async def delete(self, entry: HistoryEntry) -> bool:
        try:
            await self.client.delete_history(entry.id)
        except HistoryClientError as e:
            logger.error("Error deleting history item: %s", str(e)[:200])
            return False
        if self.selected is not None and self.selected.id == entry.id:
            self.selected = None
        await self.refresh()
        return True

    def download(self, entry: HistoryEntry) -> bool:
        """Open the entry's download URL in a new browser tab."""
        if not entry.downloadUrl:
            return False
        return webbrowser.open_new_tab(entry.downloadUrl)
