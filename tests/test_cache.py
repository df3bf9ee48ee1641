import pytest

from feed_digest.cache import (
    BoundedStore,
    CacheError,
    MemoryCache,
    SharedCache,
    cached_fetch_json,
    create_shared_cache,
    digest_cache_key,
    feed_cache_key,
)
from feed_digest.cache.upstash import UpstashCache


class FailingCache(SharedCache):
    def __init__(self):
        self.calls = 0

    def get(self, key):
        self.calls += 1
        raise CacheError("down")

    def set(self, key, value, ttl_seconds):
        self.calls += 1
        raise CacheError("down")


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_cache_keys_are_namespaced():
    assert feed_cache_key("https://example.com/rss") == "rss:feed:v1:https://example.com/rss"
    assert digest_cache_key("tech", "en") == "news:digest:v1:tech:en"


def test_cached_fetch_json_hit_skips_fetcher():
    cache = MemoryCache()
    cache.set("k", [1, 2], 60)

    def fetcher():
        raise AssertionError("fetcher must not run on a hit")

    assert cached_fetch_json(cache, "k", 60, fetcher) == [1, 2]


def test_cached_fetch_json_miss_stores_result_but_not_none():
    cache = MemoryCache()
    assert cached_fetch_json(cache, "k", 60, lambda: {"a": 1}) == {"a": 1}
    assert cache.get("k") == {"a": 1}

    assert cached_fetch_json(cache, "none", 60, lambda: None) is None
    assert cache.get("none") is None


def test_cached_empty_list_counts_as_hit():
    cache = MemoryCache()
    cached_fetch_json(cache, "k", 60, lambda: [])
    assert cached_fetch_json(cache, "k", 60, lambda: ["refetched"]) == []


def test_cache_failures_degrade_to_a_miss(caplog):
    cache = FailingCache()
    with caplog.at_level("WARNING"):
        assert cached_fetch_json(cache, "k", 60, lambda: "fresh") == "fresh"
    assert cache.calls == 2
    assert "Cache read failed" in caplog.text
    assert "Cache write failed" in caplog.text


def test_no_cache_always_fetches():
    assert cached_fetch_json(None, "k", 60, lambda: 42) == 42


def test_memory_cache_expires_entries():
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    cache.set("k", "v", 10)
    assert cache.get("k") == "v"
    clock.now += 11
    assert cache.get("k") is None


def test_memory_cache_returns_copies():
    cache = MemoryCache()
    cache.set("k", {"items": [1]}, 60)
    cache.get("k")["items"].append(2)
    assert cache.get("k") == {"items": [1]}


def test_bounded_store_clears_wholesale_past_capacity():
    store = BoundedStore(capacity=3)
    for key in "abc":
        store.put(key, key)
    store.put("a", "updated")
    assert len(store) == 3
    store.put("d", "d")
    assert len(store) == 1
    assert store.get("a") is None
    assert store.get("d") == "d"


class FakeRedis:
    """Stands in for ``upstash_redis.Redis``; records calls."""

    def __init__(self, value=None, exc=None):
        self.value = value
        self.exc = exc
        self.calls = []

    def get(self, key):
        self.calls.append(("get", key))
        if self.exc:
            raise self.exc
        return self.value

    def set(self, key, value, ex=None):
        self.calls.append(("set", key, value, ex))
        if self.exc:
            raise self.exc
        return True


def test_upstash_stores_json_with_expiry():
    client = FakeRedis(value='[{"title": "x"}]')
    cache = UpstashCache(client=client)

    assert cache.get("rss:feed:v1:https://example.com/rss") == [{"title": "x"}]
    cache.set("k", {"a": 1}, 600)
    assert client.calls == [
        ("get", "rss:feed:v1:https://example.com/rss"),
        ("set", "k", '{"a": 1}', 600),
    ]


def test_upstash_missing_or_garbled_value_is_none():
    assert UpstashCache(client=FakeRedis(value=None)).get("k") is None
    assert UpstashCache(client=FakeRedis(value="{not json")).get("k") is None


def test_upstash_failures_raise_cache_error():
    cache = UpstashCache(client=FakeRedis(exc=RuntimeError("WRONGPASS invalid password")))
    with pytest.raises(CacheError, match="WRONGPASS"):
        cache.get("k")
    with pytest.raises(CacheError):
        cache.set("k", [], 60)


def test_upstash_outage_degrades_to_a_fetch():
    cache = UpstashCache(client=FakeRedis(exc=ConnectionError("unreachable")))
    assert cached_fetch_json(cache, "k", 60, lambda: ["fresh"]) == ["fresh"]


def test_upstash_requires_credentials(monkeypatch):
    monkeypatch.delenv("UPSTASH_REDIS_REST_URL", raising=False)
    monkeypatch.delenv("UPSTASH_REDIS_REST_TOKEN", raising=False)
    with pytest.raises(CacheError):
        UpstashCache()


def test_factory_selects_backend(monkeypatch):
    monkeypatch.delenv("CACHE_BACKEND", raising=False)
    monkeypatch.delenv("UPSTASH_REDIS_REST_URL", raising=False)
    monkeypatch.delenv("UPSTASH_REDIS_REST_TOKEN", raising=False)
    assert create_shared_cache() is None
    assert isinstance(create_shared_cache(backend="memory"), MemoryCache)

    monkeypatch.setenv("UPSTASH_REDIS_REST_URL", "https://c")
    monkeypatch.setenv("UPSTASH_REDIS_REST_TOKEN", "t")
    assert isinstance(create_shared_cache(), UpstashCache)

    with pytest.raises(ValueError):
        create_shared_cache(backend="memcached")
