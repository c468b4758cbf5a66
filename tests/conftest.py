"""Shared test fixtures and configuration."""

import json
import os

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure we're in demo mode with the cookie backend during tests
os.environ.setdefault("RODIN_API_KEY", "")
os.environ.setdefault("HISTORY_BACKEND", "cookie")
os.environ.setdefault("ENVIRONMENT", "test")

from app.generation.router import rate_limiter  # noqa: E402
from app.main import app  # noqa: E402


class MemoryStorage:
    """In-process BlobStorage used to exercise the store without HTTP."""

    def __init__(self, blob: str | None = None):
        self.blob = blob
        self.writes: list[int] = []

    async def read(self) -> str | None:
        return self.blob

    async def write(self, blob: str, ttl: int) -> None:
        self.blob = blob
        self.writes.append(ttl)

    def apply(self, response) -> None:
        pass

    def entries(self) -> list[dict]:
        return json.loads(self.blob) if self.blob is not None else []


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_storage():
    return MemoryStorage


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def chair_payload():
    return {
        "modelType": "chair",
        "keywords": ["wood", "modern"],
        "prompt": "a wooden chair",
        "modelUrl": "https://hyper3d.ai/viewer/chair",
        "downloadUrl": "https://hyper3d.ai/files/chair.glb",
    }


@pytest.fixture
def sample_rodin_submit():
    """Sample Rodin /rodin response."""
    return {
        "error": None,
        "message": "Submitted.",
        "uuid": "task-1234",
        "jobs": {
            "uuids": ["job-a", "job-b"],
            "subscription_key": "sub-5678",
        },
    }
