"""Key-value cache used for sessions and other best-effort data.

Two interchangeable backends share one contract (get/set/delete/exists with
optional TTL). The backend is chosen once at process startup by
``build_cache`` and passed to the components that need it.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable

from jukeboxd.core.config import Settings
from jukeboxd.core.redis_client import create_sync_redis_client

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class CacheBackend(ABC):
    """String key/value store with optional per-key TTL."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def exists(self, key: str) -> bool: ...


class MemoryCache(CacheBackend):
    """In-process map with the same TTL semantics as Redis ``SET EX``.

    Expired keys are dropped when read, and in bulk by a sweep that runs on
    writes at most once per ``sweep_interval_seconds``.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep = clock() + sweep_interval_seconds

    def _sweep_expired(self, now: float) -> None:
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval

    def _live_entry(self, key: str) -> tuple[str, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds else None
        with self._lock:
            if now >= self._next_sweep:
                self._sweep_expired(now)
            self._data[key] = (value, expires_at)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None


class RedisCache(CacheBackend):
    """Redis-backed cache that fails open to an in-memory map.

    Any ``redis.RedisError`` raised by a call is logged and the call is
    served by the fallback instead.
    """

    def __init__(self, client, fallback: CacheBackend | None = None):
        import redis

        self._client = client
        self._fallback = fallback or MemoryCache()
        self._errors = (redis.RedisError,)

    def _fail_open(self, op: str, exc: Exception) -> None:
        logger.warning(f"Redis {op} failed, using in-memory cache: {exc}")

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except self._errors as e:
            self._fail_open("GET", e)
            return self._fallback.get(key)
        if isinstance(value, bytes):
            value = value.decode()
        return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool:
        try:
            if ttl_seconds:
                self._client.setex(key, ttl_seconds, value)
            else:
                self._client.set(key, value)
            return True
        except self._errors as e:
            self._fail_open("SET", e)
            return self._fallback.set(key, value, ttl_seconds)

    def delete(self, key: str) -> bool:
        try:
            return bool(self._client.delete(key))
        except self._errors as e:
            self._fail_open("DEL", e)
            return self._fallback.delete(key)

    def exists(self, key: str) -> bool:
        try:
            return self._client.exists(key) == 1
        except self._errors as e:
            self._fail_open("EXISTS", e)
            return self._fallback.exists(key)


def build_cache(config: Settings) -> CacheBackend:
    """Select the cache backend for this process.

    Redis is used when configured and reachable; otherwise the in-memory map.
    """
    if not config.redis_enabled:
        return MemoryCache()

    try:
        client = create_sync_redis_client(config.REDIS_URL, config.REDIS_MAX_CONNECTIONS)
        client.ping()
    except Exception as e:
        logger.warning(f"Redis unavailable for cache/sessions, using in-memory: {e}")
        return MemoryCache()
    return RedisCache(client)
