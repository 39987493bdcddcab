import time

import redis

from cyberguard.application.ports.cache import USERS_ALL_KEY, invalidate_user_listings
from cyberguard.infrastructure.cache import build_cache
from cyberguard.infrastructure.cache.memory_cache import InMemoryCache
from cyberguard.infrastructure.cache.redis_cache import RedisCache


class FakeRedis:
    def __init__(self, fail_reads=False):
        self.store = {}
        self.ttls = {}
        self.fail_reads = fail_reads

    def get(self, key):
        if self.fail_reads:
            raise redis.ConnectionError("down")
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


def test_memory_cache_expires(monkeypatch):
    cache = InMemoryCache()
    cache.set("k", [1], 60)
    assert cache.get("k") == [1]

    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now + 61)
    assert cache.get("k") is None


def test_invalidate_user_listings():
    cache = InMemoryCache()
    cache.set(USERS_ALL_KEY, [], 60)
    cache.set("user:3", {}, 60)
    invalidate_user_listings(cache, 3)
    assert cache.get(USERS_ALL_KEY) is None
    assert cache.get("user:3") is None


def test_redis_cache_stores_json_with_ttl():
    client = FakeRedis()
    cache = RedisCache(client=client)

    cache.set(USERS_ALL_KEY, [{"id": 1}], 60)

    assert client.ttls[USERS_ALL_KEY] == 60
    assert cache.get(USERS_ALL_KEY) == [{"id": 1}]
    cache.delete(USERS_ALL_KEY)
    assert cache.get(USERS_ALL_KEY) is None


def test_redis_read_errors_are_misses():
    cache = RedisCache(client=FakeRedis(fail_reads=True))
    assert cache.get(USERS_ALL_KEY) is None


def test_build_cache_without_url_uses_memory():
    assert isinstance(build_cache(None), InMemoryCache)
