"""Hyper3D Rodin REST API integration.

Docs: https://developer.hyper3d.ai/api-specification/overview
Endpoints (relative to settings.rodin_base_url):
  - POST /rodin     submit a generation job (multipart / form-encoded)
  - POST /status    poll jobs by subscription key
  - POST /download  resolve download URLs for a finished task
"""

import logging
import time
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class RodinAPIError(Exception):
    """Upstream call failed (non-2xx or transport error)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RodinClient:
    """Async client for the Rodin generation API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.rodin_api_key
        self.base_url = (base_url or settings.rodin_base_url).rstrip("/")
        self.timeout = timeout or settings.rodin_timeout_seconds

    async def submit(
        self,
        form: dict[str, Any],
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
    ) -> dict[str, Any]:
        """Submit a job. Returns {uuid, jobs: {subscription_key, uuids}}."""
        return await self._post("rodin", data=form, files=files or None)

    async def status(self, subscription_key: str) -> dict[str, Any]:
        """Return {jobs: [{uuid, status}]} for a subscription key."""
        return await self._post("status", json={"subscription_key": subscription_key})

    async def download(self, task_uuid: str) -> dict[str, Any]:
        """Return {list: [{url, name}]} for a finished task."""
        return await self._post("download", json={"task_uuid": task_uuid})

    async def _post(self, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, **kwargs)
        except httpx.TimeoutException:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Rodin timeout | endpoint=%s | %dms", endpoint, elapsed_ms)
            raise RodinAPIError(f"Rodin {endpoint} timed out")
        except httpx.HTTPError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Rodin error | endpoint=%s | %dms | %s", endpoint, elapsed_ms, str(e)[:200])
            raise RodinAPIError(f"Rodin {endpoint} failed: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if response.status_code >= 400:
            logger.warning(
                "Rodin | endpoint=%s | status=%d | %dms | %s",
                endpoint, response.status_code, elapsed_ms, response.text[:200],
            )
            raise RodinAPIError(
                f"Rodin {endpoint} returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Rodin OK | endpoint=%s | %dms", endpoint, elapsed_ms)
        try:
            return response.json()
        except ValueError as e:
            raise RodinAPIError(f"Rodin {endpoint} returned invalid JSON") from e
