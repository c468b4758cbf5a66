"""Blob cache with Redis backend and in-memory fallback.

Backs the key-value history storage: each browser session owns one key whose
value is the serialized history list.

Graceful degradation: if Redis is unavailable, uses cachetools.TTLCache in-memory.
"""

import hashlib
import logging

from cachetools import TTLCache

from app.config import settings

logger = logging.getLogger(__name__)


class BlobCache:
    """Async string store with Redis primary and in-memory fallback."""

    def __init__(self):
        self._redis = None
        self._fallback = TTLCache(maxsize=1024, ttl=settings.history_ttl_seconds)
        self._available = False

    @property
    def is_available(self) -> bool:
        return self._available

    async def connect(self) -> bool:
        """Connect to Redis. Returns True on success."""
        try:
            import redis.asyncio as aioredis

            self._redis = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
            )
            await self._redis.ping()
            self._available = True
            return True
        except Exception as e:
            logger.warning("Redis connection failed — using in-memory fallback: %s", str(e)[:100])
            self._redis = None
            self._available = False
            return False

    async def disconnect(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._available = False

    def make_key(self, session_id: str) -> str:
        """Derive the storage key for a browser session."""
        return f"mh:{hashlib.sha256(session_id.encode()).hexdigest()[:32]}"

    async def get(self, key: str) -> str | None:
        """Read a blob. Returns None on miss."""
        if self._available and self._redis:
            try:
                data = await self._redis.get(key)
                if data is not None:
                    logger.debug("Blob HIT (Redis) | key=%s", key[:20])
                    return data
            except Exception as e:
                logger.debug("Redis GET error: %s", str(e)[:100])

        data = self._fallback.get(key)
        if data is not None:
            logger.debug("Blob HIT (memory) | key=%s", key[:20])
        return data

    async def set(self, key: str, blob: str, ttl: int):
        """Write a blob with TTL."""
        if self._available and self._redis:
            try:
                await self._redis.setex(key, ttl, blob)
                logger.debug("Blob SET (Redis) | key=%s | ttl=%ds", key[:20], ttl)
            except Exception as e:
                logger.debug("Redis SET error: %s", str(e)[:100])

        # Always write to in-memory fallback too
        self._fallback[key] = blob


# Singleton instance
blob_cache = BlobCache()
