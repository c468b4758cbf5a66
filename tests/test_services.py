"""Tests for shared services — rate limiter and configuration."""

import pytest
from fastapi import Request

from app.config import Settings
from app.services.rate_limiter import RateLimiter, client_ip


# ═══════════════ Rate Limiter ═══════════════


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter(max_requests=3)
        assert [limiter.is_limited("1.2.3.4") for _ in range(4)] == [False, False, False, True]

    def test_per_ip(self):
        limiter = RateLimiter(max_requests=1)
        assert limiter.is_limited("a") is False
        assert limiter.is_limited("b") is False
        assert limiter.is_limited("a") is True

    def test_window_expiry(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("app.services.rate_limiter.time.monotonic", lambda: now[0])
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        assert limiter.is_limited("a") is False
        assert limiter.is_limited("a") is True
        now[0] += 61
        assert limiter.is_limited("a") is False

    def test_expired_ips_are_dropped(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("app.services.rate_limiter.time.monotonic", lambda: now[0])
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        for i in range(500):
            limiter.is_limited(f"10.0.{i // 256}.{i % 256}")
        assert limiter.tracked == 500
        now[0] += 61
        assert limiter.tracked == 0

    def test_tracked_ips_bounded(self):
        limiter = RateLimiter(max_requests=1, max_tracked=100)
        for i in range(5000):
            limiter.is_limited(f"ip-{i}")
        assert limiter.tracked <= 100

    def test_reset(self):
        limiter = RateLimiter(max_requests=1)
        limiter.is_limited("a")
        limiter.reset()
        assert limiter.is_limited("a") is False


class TestClientIp:
    def _request(self, headers=None, client=("10.0.0.1", 1234)):
        raw = [(k.encode(), v.encode()) for k, v in (headers or {}).items()]
        return Request({"type": "http", "headers": raw, "client": client})

    def test_forwarded_for_ignored_by_default(self):
        request = self._request({"x-forwarded-for": "203.0.113.5"})
        assert client_ip(request) == "10.0.0.1"

    def test_forwarded_for_behind_trusted_proxy(self):
        request = self._request({"x-forwarded-for": "203.0.113.5, 10.0.0.2"})
        assert client_ip(request, trust_proxy=True) == "203.0.113.5"

    def test_trust_proxy_from_settings(self, monkeypatch):
        from app.config import settings

        monkeypatch.setattr(settings, "trust_proxy", True)
        request = self._request({"x-forwarded-for": "203.0.113.5"})
        assert client_ip(request) == "203.0.113.5"

    def test_trusted_proxy_without_header(self):
        assert client_ip(self._request(), trust_proxy=True) == "10.0.0.1"

    def test_peer_address(self):
        assert client_ip(self._request()) == "10.0.0.1"

    def test_unknown(self):
        assert client_ip(self._request(client=None)) == "unknown"


# ═══════════════ Settings ═══════════════


class TestSettings:
    def test_defaults(self, monkeypatch):
        for var in ("HISTORY_BACKEND", "ENVIRONMENT", "RODIN_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        s = Settings(_env_file=None)
        assert s.history_backend == "cookie"
        assert s.history_cookie_name == "searchHistory"
        assert s.history_max_entries == 50
        assert s.history_ttl_seconds == 604800
        assert s.history_cookie_http_only is True
        assert s.is_demo_mode is True
        assert s.cookie_secure is False
        assert s.trust_proxy is False

    def test_production_cookie_secure(self):
        assert Settings(_env_file=None, environment="production").cookie_secure is True

    def test_demo_mode_off_with_key(self):
        assert Settings(_env_file=None, rodin_api_key="abc").is_demo_mode is False

    @pytest.mark.parametrize("origins,expected", [
        ("*", ["*"]),
        ("https://a.test, https://b.test", ["https://a.test", "https://b.test"]),
    ])
    def test_cors_origins(self, origins, expected):
        assert Settings(_env_file=None, allowed_origins=origins).cors_origins == expected

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("HISTORY_MAX_ENTRIES", "10")
        assert Settings(_env_file=None).history_max_entries == 10
