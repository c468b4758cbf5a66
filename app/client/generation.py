"""Generation flow against the proxy endpoints, ending in a history save.

submit → poll status until every job is Done → resolve download URL →
record the result in the search history. The save runs as a background task
so it neither delays nor changes the outcome of the generation.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.client.history_client import HistoryClient
from app.history.schemas import HistoryEntry

logger = logging.getLogger(__name__)

DONE = "Done"
FAILED = "Failed"


class GenerationError(Exception):
    """Submission, status check or download resolution failed."""


@dataclass
class GenerationResult:
    task_uuid: str
    model_url: str
    download_url: str
    history_save: "asyncio.Task[HistoryEntry | None] | None" = None


class GenerationClient:
    """Talks to /api/rodin, /api/status and /api/download."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        history: HistoryClient | None = None,
        poll_interval: float = 5.0,
        max_polls: int = 120,
    ):
        self.http = http
        self.history = history
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._pending_saves: set[asyncio.Task] = set()

    async def submit_job(
        self,
        form: dict[str, str],
        files: list[tuple[str, tuple[str, bytes, str]]] | None = None,
    ) -> dict[str, Any]:
        return await self._post("/api/rodin", "API request failed", data=form, files=files or None)

    async def check_job_status(self, subscription_key: str) -> dict[str, Any]:
        return await self._post(
            "/api/status", "Status check failed", json={"subscription_key": subscription_key},
        )

    async def download_model(self, task_uuid: str) -> dict[str, Any]:
        return await self._post("/api/download", "Download failed", json={"task_uuid": task_uuid})

    async def wait_for_jobs(self, subscription_key: str):
        for _ in range(self.max_polls):
            status = await self.check_job_status(subscription_key)
            states = [job.get("status") for job in status.get("jobs", [])]
            if FAILED in states:
                raise GenerationError("Generation failed")
            if states and all(s == DONE for s in states):
                return
            await asyncio.sleep(self.poll_interval)
        raise GenerationError(f"Generation not finished after {self.max_polls} status checks")

    async def generate(
        self,
        prompt: str,
        model_type: str,
        keywords: list[str],
        extra_form: dict[str, str] | None = None,
    ) -> GenerationResult:
        form = {"prompt": prompt, **(extra_form or {})}
        submitted = await self.submit_job(form)

        task_uuid = submitted.get("uuid", "")
        subscription_key = submitted.get("jobs", {}).get("subscription_key", "")
        if not task_uuid or not subscription_key:
            raise GenerationError("Submission response missing task identifiers")
        logger.info("Generation submitted | task=%s", task_uuid)

        await self.wait_for_jobs(subscription_key)

        files = (await self.download_model(task_uuid)).get("list", [])
        if not files:
            raise GenerationError("No downloadable files for task")
        model_file = next((f for f in files if f.get("name", "").endswith(".glb")), files[0])
        url = model_file.get("url", "")

        result = GenerationResult(task_uuid=task_uuid, model_url=url, download_url=url)
        if self.history is not None:
            result.history_save = self._save_in_background(
                model_type, keywords, prompt, model_url=url, download_url=url,
            )
        return result

    def _save_in_background(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        task = asyncio.create_task(self.history.save_history(*args, **kwargs))
        self._pending_saves.add(task)
        task.add_done_callback(self._save_finished)
        return task

    def _save_finished(self, task: asyncio.Task):
        self._pending_saves.discard(task)
        if task.cancelled():
            logger.warning("Search history save cancelled")
        elif task.exception() is not None:
            logger.error("Search history save failed: %s", str(task.exception())[:200])

    async def drain(self):
        """Wait for history saves still in flight."""
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)

    async def _post(self, path: str, failure: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.http.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise GenerationError(f"{failure}: {e}") from e
        if response.status_code >= 400:
            raise GenerationError(f"{failure}: {response.status_code}")
        return response.json()
