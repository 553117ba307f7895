# src/cache/redis_store.py — v1
"""Redis-based fingerprint cache (CACHE_BACKEND=redis).

Requires 'redis' package: pip install sweepscan[redis].
Lets several scanning hosts share one fingerprint cache.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from sweepscan.cache.base_cache_store import BaseFingerprintCache
from sweepscan.cache.models import FingerprintCacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "sweepscan:fingerprint:"
_INDEX_KEY = "sweepscan:fingerprint:__index__"


class RedisFingerprintCache(BaseFingerprintCache):
    """Redis-backed fingerprint cache."""

    def __init__(self, redis_url: str = "", client: object | None = None) -> None:
        if client is None:
            try:
                import redis
            except ImportError as e:
                raise ImportError(
                    "redis package required: pip install redis"
                ) from e
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._client = client

    async def get(self, path: str) -> FingerprintCacheEntry | None:
        """Retrieve cache entry by path."""
        data = self._client.get(f"{_KEY_PREFIX}{path}")
        if data is None:
            return None
        try:
            return FingerprintCacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", path, e)
            return None

    async def put(self, entry: FingerprintCacheEntry) -> None:
        """Store a cache entry."""
        self._client.set(f"{_KEY_PREFIX}{entry.path}", entry.model_dump_json())
        # Index of cached paths for clear() and count()
        self._client.sadd(_INDEX_KEY, entry.path)

    async def clear(self) -> None:
        """Remove every cached entry."""
        paths = self._client.smembers(_INDEX_KEY)
        if paths:
            self._client.delete(*(f"{_KEY_PREFIX}{p}" for p in paths))
        self._client.delete(_INDEX_KEY)

    async def count(self) -> int:
        return int(self._client.scard(_INDEX_KEY))

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
