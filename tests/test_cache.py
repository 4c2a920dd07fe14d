import redis

from jukeboxd.core import cache as cache_module
from jukeboxd.core.cache import MemoryCache, RedisCache, build_cache
from jukeboxd.core.config import Settings


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class DownRedis:
    """Redis client double whose every call fails like a lost connection."""

    def _fail(self, *_args, **_kwargs):
        raise redis.ConnectionError("connection refused")

    get = set = setex = delete = exists = ping = _fail


class DictRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    def exists(self, key):
        return 1 if key in self.data else 0


def test_memory_cache_basic_contract():
    cache = MemoryCache()

    assert cache.get("k") is None
    assert cache.exists("k") is False
    cache.set("k", "v")
    assert cache.get("k") == "v"
    assert cache.exists("k") is True
    assert cache.delete("k") is True
    assert cache.delete("k") is False
    assert cache.get("k") is None


def test_memory_cache_expired_keys_behave_as_absent():
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    cache.set("session:1", "data", ttl_seconds=60)

    clock.now += 59
    assert cache.get("session:1") == "data"

    clock.now += 1
    assert cache.get("session:1") is None
    assert cache.exists("session:1") is False
    assert cache.delete("session:1") is False


def test_memory_cache_sweeps_unread_expired_keys_on_write():
    clock = FakeClock()
    cache = MemoryCache(clock=clock, sweep_interval_seconds=60)
    cache.set("session:old", "data", ttl_seconds=10)
    cache.set("session:forever", "data")

    clock.now += 30
    cache.set("session:new", "data", ttl_seconds=10)
    assert "session:old" in cache._data

    clock.now += 30
    cache.set("session:newer", "data", ttl_seconds=10)

    assert set(cache._data) == {"session:forever", "session:newer"}


def test_redis_cache_uses_client():
    client = DictRedis()
    cache = RedisCache(client)

    cache.set("a", "1", ttl_seconds=30)
    cache.set("b", "2")

    assert client.ttls == {"a": 30}
    assert cache.get("a") == "1"
    assert cache.exists("b") is True
    assert cache.delete("b") is True
    assert cache.exists("b") is False


def test_redis_cache_fails_open_to_memory(caplog):
    cache = RedisCache(DownRedis())

    with caplog.at_level("WARNING"):
        assert cache.set("k", "v", ttl_seconds=10) is True
        assert cache.get("k") == "v"
        assert cache.exists("k") is True
        assert cache.delete("k") is True

    assert any("using in-memory cache" in r.message for r in caplog.records)


def test_build_cache_memory_when_disabled():
    assert isinstance(build_cache(Settings(REDIS_URL="memory://")), MemoryCache)


def test_build_cache_falls_back_when_unreachable(monkeypatch):
    monkeypatch.setattr(
        cache_module, "create_sync_redis_client", lambda url, max_connections=None: DownRedis()
    )

    result = build_cache(Settings(REDIS_URL="redis://localhost:6399/0"))

    assert isinstance(result, MemoryCache)


def test_build_cache_uses_redis_when_reachable(monkeypatch):
    client = DictRedis()
    client.ping = lambda: True
    monkeypatch.setattr(
        cache_module, "create_sync_redis_client", lambda url, max_connections=None: client
    )

    result = build_cache(Settings(REDIS_URL="redis://localhost:6379/0"))

    assert isinstance(result, RedisCache)
