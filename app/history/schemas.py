"""Pydantic models for history entries and the /api/history payloads.

Field names are camelCase because they are the wire format the panel sends
and the format stored in the history blob.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HistoryEntry(BaseModel):
    """One recorded prompt/result pair."""
    id: str
    modelType: str = ""
    keywords: list[str] = Field(default_factory=list)
    prompt: str = ""
    modelUrl: str | None = None
    downloadUrl: str | None = None
    timestamp: str = ""


class HistoryEntryCreate(BaseModel):
    """Create payload — everything except the id."""
    modelType: str
    keywords: list[str] = Field(default_factory=list)
    prompt: str
    modelUrl: str | None = None
    downloadUrl: str | None = None
    timestamp: str | None = None


class HistoryEntryUpdate(BaseModel):
    """Update payload — id plus whichever fields the edit dialog sends."""
    id: str
    modelType: str | None = None
    keywords: list[str] | None = None
    prompt: str | None = None
    modelUrl: str | None = None
    downloadUrl: str | None = None
    timestamp: str | None = None


class HistoryDeleteRequest(BaseModel):
    id: str


class HistoryDeleteResponse(BaseModel):
    success: bool = True
