"""History endpoints — list / create / update / delete on /api/history.

Each request builds its own store over request-scoped storage; nothing is
kept between requests except what the storage backend persists.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.history.schemas import (
    HistoryDeleteRequest,
    HistoryDeleteResponse,
    HistoryEntryCreate,
    HistoryEntryUpdate,
)
from app.history.storage import BlobStorage, storage_for
from app.history.store import HistoryEntryNotFound, HistoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/history", tags=["history"])


def get_storage(request: Request) -> BlobStorage:
    """FastAPI dependency — storage backend for the current request."""
    return storage_for(request)


def _respond(content: Any, storage: BlobStorage, status_code: int = 200) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    storage.apply(response)
    return response


def _error(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("")
async def list_history(storage: BlobStorage = Depends(get_storage)):
    try:
        entries = await HistoryStore(storage).list()
    except Exception as e:
        logger.error("Error fetching history: %s", str(e)[:200])
        return _error("Failed to fetch history")
    return _respond([e.model_dump(exclude_none=True) for e in entries], storage)


@router.post("")
async def create_history(request: Request, storage: BlobStorage = Depends(get_storage)):
    try:
        body = await request.json()
        payload = HistoryEntryCreate.model_validate(body)
        entry = await HistoryStore(storage).create(payload)
    except Exception as e:
        logger.error("Error saving history: %s", str(e)[:200])
        return _error("Failed to save history")
    return _respond(entry.model_dump(exclude_none=True), storage)


@router.put("")
async def update_history(request: Request, storage: BlobStorage = Depends(get_storage)):
    try:
        body = await request.json()
        payload = HistoryEntryUpdate.model_validate(body)
        entry = await HistoryStore(storage).update(payload)
    except HistoryEntryNotFound as e:
        logger.info("History update miss | id=%s", e.entry_id)
        return _error("History entry not found", status_code=404)
    except Exception as e:
        logger.error("Error updating history: %s", str(e)[:200])
        return _error("Failed to update history item")
    return _respond(entry.model_dump(exclude_none=True), storage)


@router.delete("")
async def delete_history(request: Request, storage: BlobStorage = Depends(get_storage)):
    try:
        body = await request.json()
        payload = HistoryDeleteRequest.model_validate(body)
        await HistoryStore(storage).delete(payload.id)
    except Exception as e:
        logger.error("Error deleting history item: %s", str(e)[:200])
        return _error("Failed to delete history item")
    return _respond(HistoryDeleteResponse().model_dump(), storage)
