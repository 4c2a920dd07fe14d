"""Redis client helpers with connection pooling."""

from __future__ import annotations

REDIS_DISABLED_URL = "memory://"
DEFAULT_REDIS_MAX_CONNECTIONS = 20
DEFAULT_REDIS_CONNECT_TIMEOUT_SECONDS = 2.0
DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS = 2.0
DEFAULT_REDIS_HEALTH_CHECK_SECONDS = 30


def normalize_redis_url(url: str | None) -> str | None:
    """Return the usable Redis URL, or None when Redis is disabled."""
    if not url or url.strip().lower() == REDIS_DISABLED_URL:
        return None
    return url.strip()


def create_sync_redis_client(url: str | None, max_connections: int | None = None):
    """Build a pooled Redis client for ``url`` (None when Redis is disabled).

    The client is returned to the caller rather than cached at module level;
    the process entry point owns it and injects it where needed.
    """
    url = normalize_redis_url(url)
    if not url:
        return None

    import redis

    if not max_connections or max_connections <= 0:
        max_connections = DEFAULT_REDIS_MAX_CONNECTIONS

    pool = redis.ConnectionPool.from_url(
        url,
        max_connections=max_connections,
        socket_connect_timeout=DEFAULT_REDIS_CONNECT_TIMEOUT_SECONDS,
        socket_timeout=DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS,
        health_check_interval=DEFAULT_REDIS_HEALTH_CHECK_SECONDS,
        retry_on_timeout=True,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)
