"""Async client for the /api/history endpoints.

Holds one httpx.AsyncClient so the history cookie set by the server is sent
back on every following call, the way a browser would.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from app.history.schemas import HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_PATH = "/api/history"


class HistoryClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class HistoryClient:
    """List / create / update / delete history entries over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def list_history(self) -> list[HistoryEntry]:
        data = await self._request("GET", "Failed to fetch history")
        return [HistoryEntry.model_validate(item) for item in data]

    async def create_history(
        self,
        model_type: str,
        keywords: list[str],
        prompt: str,
        model_url: str | None = None,
        download_url: str | None = None,
    ) -> HistoryEntry:
        payload = {
            "modelType": model_type,
            "keywords": list(keywords),
            "prompt": prompt,
            "modelUrl": model_url,
            "downloadUrl": download_url,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        data = await self._request("POST", "Failed to save search history", json=payload)
        return HistoryEntry.model_validate(data)

    async def save_history(
        self,
        model_type: str,
        keywords: list[str],
        prompt: str,
        model_url: str | None = None,
        download_url: str | None = None,
    ) -> HistoryEntry | None:
        """Fire-and-forget create: failures are logged, never raised."""
        try:
            return await self.create_history(model_type, keywords, prompt, model_url, download_url)
        except HistoryClientError as e:
            logger.warning("Search history not saved | status=%s | %s", e.status_code, str(e)[:200])
            return None
        except ValueError as e:
            logger.warning("Search history not saved | bad response | %s", str(e)[:200])
            return None

    async def update_history(self, entry: HistoryEntry) -> HistoryEntry:
        data = await self._request(
            "PUT", "Failed to update history item", json=entry.model_dump(exclude_none=True),
        )
        return HistoryEntry.model_validate(data)

    async def delete_history(self, entry_id: str) -> bool:
        data = await self._request("DELETE", "Failed to delete history item", json={"id": entry_id})
        return bool(data.get("success"))

    async def _request(self, method: str, failure: str, json: Any = None) -> Any:
        try:
            response = await self._http.request(method, HISTORY_PATH, json=json)
        except httpx.HTTPError as e:
            logger.error("History %s transport error | %s", method, str(e)[:200])
            raise HistoryClientError(failure) from e

        if response.status_code >= 400:
            logger.warning("History %s failed | status=%d", method, response.status_code)
            raise HistoryClientError(failure, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise HistoryClientError(failure, status_code=response.status_code) from e
