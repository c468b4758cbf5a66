"""Tests for the generation proxy endpoints — demo mode and upstream forwarding."""

import pytest

from app.config import settings
from app.generation.demo_data import DEMO_MODEL_URL, DEMO_SUBSCRIPTION_KEY, DEMO_TASK_UUID
from app.generation.router import rate_limiter

UPSTREAM = "https://hyperhuman.deemos.com/api/v2"


@pytest.fixture
def live_mode(monkeypatch):
    monkeypatch.setattr(settings, "rodin_api_key", "server-key")


class TestDemoMode:
    @pytest.mark.asyncio
    async def test_submit(self, client):
        resp = await client.post("/api/rodin", data={"prompt": "a wooden chair"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["isDemo"] is True
        assert data["uuid"] == DEMO_TASK_UUID
        assert data["jobs"]["subscription_key"] == DEMO_SUBSCRIPTION_KEY

    @pytest.mark.asyncio
    async def test_status(self, client):
        resp = await client.post("/api/status", json={"subscription_key": DEMO_SUBSCRIPTION_KEY})
        assert resp.status_code == 200
        assert all(job["status"] == "Done" for job in resp.json()["jobs"])

    @pytest.mark.asyncio
    async def test_download(self, client):
        resp = await client.post("/api/download", json={"task_uuid": DEMO_TASK_UUID})
        assert resp.status_code == 200
        assert resp.json()["list"][0]["url"] == DEMO_MODEL_URL


class TestValidation:
    @pytest.mark.asyncio
    async def test_submit_requires_prompt_or_image(self, client):
        resp = await client.post("/api/rodin", data={"tier": "Regular"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_submit_blank_prompt(self, client):
        resp = await client.post("/api/rodin", data={"prompt": "   "})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_submit_image_only(self, client):
        resp = await client.post(
            "/api/rodin", files={"images": ("ref.png", b"\x89PNG", "image/png")},
        )
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_status_requires_key(self, client):
        resp = await client.post("/api/status", json={})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_status_invalid_json(self, client):
        resp = await client.post(
            "/api/status", content=b"nope", headers={"content-type": "application/json"},
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_download_requires_uuid(self, client):
        resp = await client.post("/api/download", json={"task_uuid": 5})
        assert resp.status_code == 400


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_submit_limited(self, client):
        for _ in range(rate_limiter.max_requests):
            resp = await client.post("/api/rodin", data={"prompt": "x"})
            assert resp.status_code == 200
        resp = await client.post("/api/rodin", data={"prompt": "x"})
        assert resp.status_code == 429

    @pytest.mark.asyncio
    async def test_rotating_forwarded_for_still_limited(self, client):
        for i in range(rate_limiter.max_requests):
            resp = await client.post(
                "/api/rodin", data={"prompt": "x"}, headers={"x-forwarded-for": f"198.51.100.{i}"},
            )
            assert resp.status_code == 200
        resp = await client.post(
            "/api/rodin", data={"prompt": "x"}, headers={"x-forwarded-for": "198.51.100.250"},
        )
        assert resp.status_code == 429

    @pytest.mark.asyncio
    async def test_status_not_limited(self, client):
        for _ in range(rate_limiter.max_requests + 2):
            resp = await client.post("/api/status", json={"subscription_key": "k"})
            assert resp.status_code == 200


class TestUpstreamForwarding:
    @pytest.mark.asyncio
    async def test_submit_forwarded(self, client, live_mode, httpx_mock, sample_rodin_submit):
        httpx_mock.add_response(url=f"{UPSTREAM}/rodin", method="POST", json=sample_rodin_submit)

        resp = await client.post("/api/rodin", data={"prompt": "a wooden chair"})

        assert resp.status_code == 200
        assert resp.json()["uuid"] == "task-1234"
        upstream = httpx_mock.get_request()
        assert upstream.headers["authorization"] == "Bearer server-key"

    @pytest.mark.asyncio
    async def test_status_forwarded(self, client, live_mode, httpx_mock):
        httpx_mock.add_response(
            url=f"{UPSTREAM}/status", method="POST",
            json={"jobs": [{"uuid": "job-a", "status": "Waiting"}]},
        )
        resp = await client.post("/api/status", json={"subscription_key": "sub-5678"})
        assert resp.json()["jobs"][0]["status"] == "Waiting"

    @pytest.mark.asyncio
    async def test_upstream_failure_is_502(self, client, live_mode, httpx_mock):
        httpx_mock.add_response(url=f"{UPSTREAM}/download", method="POST", status_code=500)
        resp = await client.post("/api/download", json={"task_uuid": "task-1234"})
        assert resp.status_code == 502
        assert "Download failed" in resp.json()["error"]
