"""History store — bounded, most-recent-first list persisted as one blob.

Every operation is a full read-modify-write cycle against a BlobStorage.
There is no locking: two overlapping requests from the same browser can
lose an update (last writer wins).
"""

import json
import logging
import uuid
from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError

from app.config import settings
from app.history.schemas import HistoryEntry, HistoryEntryCreate, HistoryEntryUpdate
from app.history.storage import BlobStorage

logger = logging.getLogger(__name__)

_entries_adapter = TypeAdapter(list[HistoryEntry])

# Never changed by an update
_IMMUTABLE_FIELDS = {"id", "timestamp"}
# May be cleared by sending null
_CLEARABLE_FIELDS = {"modelUrl", "downloadUrl"}


class HistoryError(Exception):
    """Base error for history operations."""


class HistoryEntryNotFound(HistoryError):
    def __init__(self, entry_id: str):
        super().__init__(f"History entry not found: {entry_id}")
        self.entry_id = entry_id


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_blob(blob: str | None) -> list[HistoryEntry]:
    """Deserialize a stored blob. Corrupt or missing blobs become an empty list."""
    if blob is None:
        return []
    try:
        return _entries_adapter.validate_python(json.loads(blob))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("History blob unreadable — treating as empty: %s", str(e)[:200])
        return []


def dump_blob(entries: list[HistoryEntry]) -> str:
    return json.dumps(
        [e.model_dump(exclude_none=True) for e in entries],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class HistoryStore:
    """CRUD over the single persisted history list."""

    def __init__(
        self,
        storage: BlobStorage,
        max_entries: int | None = None,
        ttl_seconds: int | None = None,
    ):
        self.storage = storage
        self.max_entries = settings.history_max_entries if max_entries is None else max_entries
        self.ttl_seconds = settings.history_ttl_seconds if ttl_seconds is None else ttl_seconds

    async def _load(self) -> tuple[list[HistoryEntry], bool]:
        """Return (entries, exists) where exists is False when nothing is stored."""
        blob = await self.storage.read()
        return parse_blob(blob), blob is not None

    async def _save(self, entries: list[HistoryEntry]):
        await self.storage.write(dump_blob(entries), self.ttl_seconds)

    async def list(self) -> list[HistoryEntry]:
        entries, _ = await self._load()
        return entries

    async def create(self, data: HistoryEntryCreate) -> HistoryEntry:
        entries, _ = await self._load()

        existing_ids = {e.id for e in entries}
        entry_id = str(uuid.uuid4())
        while entry_id in existing_ids:
            entry_id = str(uuid.uuid4())

        fields = data.model_dump(exclude_none=True)
        fields.setdefault("timestamp", _now_iso())
        entry = HistoryEntry(id=entry_id, **fields)

        entries.insert(0, entry)
        dropped = len(entries) - self.max_entries
        if dropped > 0:
            entries = entries[: self.max_entries]
            logger.info("History trimmed | dropped=%d | max=%d", dropped, self.max_entries)

        await self._save(entries)
        logger.info("History entry created | id=%s | total=%d", entry_id, len(entries))
        return entry

    async def update(self, data: HistoryEntryUpdate) -> HistoryEntry:
        entries, exists = await self._load()
        if not exists:
            raise HistoryEntryNotFound(data.id)

        for i, entry in enumerate(entries):
            if entry.id == data.id:
                break
        else:
            raise HistoryEntryNotFound(data.id)

        changes = {
            k: v for k, v in data.model_dump(exclude_unset=True).items()
            if k not in _IMMUTABLE_FIELDS and (v is not None or k in _CLEARABLE_FIELDS)
        }
        merged = entry.model_copy(update=changes)
        entries[i] = merged

        await self._save(entries)
        logger.info("History entry updated | id=%s | fields=%s", data.id, ",".join(sorted(changes)))
        return merged

    async def delete(self, entry_id: str) -> bool:
        entries, _ = await self._load()
        remaining = [e for e in entries if e.id != entry_id]

        await self._save(remaining)
        if len(remaining) == len(entries):
            logger.info("History delete no-op | id=%s", entry_id)
        else:
            logger.info("History entry deleted | id=%s | total=%d", entry_id, len(remaining))
        return True
