"""Blob storage backends for the history list.

The store only needs two things from its backend: read the current blob (or
learn that there is none) and write a new one with a TTL. Both backends are
request-scoped; writes are applied to the outgoing response via `apply()`.

  - CookieStorage: the blob itself is the cookie value (URL-encoded JSON).
  - KeyValueStorage: the blob lives in the BlobCache (Redis / TTLCache),
    keyed by an opaque session cookie.
"""

import logging
import uuid
from typing import Protocol
from urllib.parse import quote, unquote

from fastapi import Request, Response

from app.config import settings
from app.services.cache import BlobCache, blob_cache

logger = logging.getLogger(__name__)

# Browsers commonly drop cookies above this size
MAX_COOKIE_BYTES = 4096


class BlobStorage(Protocol):
    async def read(self) -> str | None: ...

    async def write(self, blob: str, ttl: int) -> None: ...

    def apply(self, response: Response) -> None: ...


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        samesite="lax",
        secure=settings.cookie_secure,
        httponly=settings.history_cookie_http_only,
    )


class CookieStorage:
    """History blob stored directly in one cookie."""

    def __init__(self, request: Request, cookie_name: str | None = None):
        self.cookie_name = cookie_name or settings.history_cookie_name
        self._incoming = request.cookies.get(self.cookie_name)
        self._pending: str | None = None
        self._ttl = 0

    async def read(self) -> str | None:
        if self._pending is not None:
            return self._pending
        if self._incoming is None:
            return None
        return unquote(self._incoming)

    async def write(self, blob: str, ttl: int) -> None:
        self._pending = blob
        self._ttl = ttl

    def apply(self, response: Response) -> None:
        if self._pending is None:
            return
        value = quote(self._pending, safe="")
        if len(value) > MAX_COOKIE_BYTES:
            logger.error(
                "History cookie oversized, browsers may drop it | cookie=%s | bytes=%d | limit=%d",
                self.cookie_name, len(value), MAX_COOKIE_BYTES,
            )
        _set_cookie(response, self.cookie_name, value, self._ttl)


class KeyValueStorage:
    """History blob stored in the blob cache under a per-browser session key."""

    def __init__(
        self,
        request: Request,
        cache: BlobCache | None = None,
        session_cookie_name: str | None = None,
    ):
        self.cache = cache or blob_cache
        self.session_cookie_name = session_cookie_name or settings.history_session_cookie_name
        self.session_id = request.cookies.get(self.session_cookie_name)
        self._written = False
        self._ttl = 0

    async def read(self) -> str | None:
        if not self.session_id:
            return None
        return await self.cache.get(self.cache.make_key(self.session_id))

    async def write(self, blob: str, ttl: int) -> None:
        if not self.session_id:
            self.session_id = uuid.uuid4().hex
            logger.info("History session created | backend=kv")
        await self.cache.set(self.cache.make_key(self.session_id), blob, ttl)
        self._written = True
        self._ttl = ttl

    def apply(self, response: Response) -> None:
        # Refresh the session cookie so it expires together with the blob
        if self._written and self.session_id:
            _set_cookie(response, self.session_cookie_name, self.session_id, self._ttl)


def storage_for(request: Request) -> BlobStorage:
    """Pick the configured backend for this request."""
    if settings.history_backend == "redis":
        return KeyValueStorage(request)
    return CookieStorage(request)
