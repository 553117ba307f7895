# src/cache/cache_factory.py — v1
"""Factory for fingerprint cache instantiation."""

from __future__ import annotations

from sweepscan.cache.base_cache_store import BaseFingerprintCache
from sweepscan.config.settings import Settings

SQLITE_DB_NAME = "fingerprints.db"


def create_cache_store(settings: Settings | None = None) -> BaseFingerprintCache:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseFingerprintCache implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from sweepscan.cache.memory_store import MemoryFingerprintCache
        return MemoryFingerprintCache()

    if backend == "json":
        from sweepscan.cache.json_store import JsonFingerprintCache
        return JsonFingerprintCache(cache_root=settings.cache_root / "fingerprints")

    if backend == "sqlite":
        from sweepscan.cache.sqlite_store import SqliteFingerprintCache
        return SqliteFingerprintCache(
            db_path=settings.cache_root.expanduser() / SQLITE_DB_NAME
        )

    if backend == "redis":
        from sweepscan.cache.redis_store import RedisFingerprintCache
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisFingerprintCache(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
