"""Fixed-window rate limiter keyed by client IP."""

import time

from cachetools import TTLCache
from fastapi import Request

from app.config import settings


class RateLimiter:
    """Fixed-window rate limiter by IP.

    Hits live in a TTLCache, so an IP drops out one window after its last
    request and the number of tracked IPs is bounded by `max_tracked`.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60, max_tracked: int = 10000):
        self.max_requests = max_requests
        self.window = window_seconds
        self._hits: TTLCache = TTLCache(
            maxsize=max_tracked, ttl=window_seconds, timer=lambda: time.monotonic(),
        )

    @property
    def tracked(self) -> int:
        self._hits.expire()
        return len(self._hits)

    def is_limited(self, ip: str) -> bool:
        now = time.monotonic()
        window_start = now - self.window
        # Remove expired entries
        hits = [t for t in self._hits.get(ip, []) if t > window_start]
        if len(hits) >= self.max_requests:
            self._hits[ip] = hits
            return True
        hits.append(now)
        self._hits[ip] = hits
        return False

    def reset(self):
        self._hits.clear()


def client_ip(request: Request, trust_proxy: bool | None = None) -> str:
    """Peer address; X-Forwarded-For is honoured only behind a trusted proxy."""
    if trust_proxy is None:
        trust_proxy = settings.trust_proxy
    if trust_proxy:
        ip = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if ip:
            return ip
    return request.client.host if request.client else "unknown"
