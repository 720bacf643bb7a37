"""
Tests for matchengine.core.cache: TTL semantics with an injected clock.
"""

import pytest

from matchengine.core.cache import TTLCache


@pytest.fixture
def cache(clock):
    return TTLCache(name="test", clock=clock)


class TestTTLCache:
    def test_miss_on_empty(self, cache):
        assert cache.get("k") == (None, False)

    def test_hit_before_expiry(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(9.99)
        assert cache.get("k") == ("v", True)

    def test_miss_at_expiry_and_entry_dropped(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(10)
        assert cache.get("k") == (None, False)
        assert len(cache) == 0

    def test_falsy_values_are_hits(self, cache):
        cache.set("empty", "", ttl=5)
        assert cache.get("empty") == ("", True)

    def test_overwrite_resets_ttl(self, cache, clock):
        cache.set("k", 1, ttl=10)
        clock.advance(8)
        cache.set("k", 2, ttl=10)
        clock.advance(8)
        assert cache.get("k") == (2, True)

    def test_tuple_keys(self, cache):
        cache.set(("user-1", "job-1"), "result", ttl=60)
        assert ("user-1", "job-1") in cache
        assert ("user-1", "job-2") not in cache

    def test_non_positive_ttl_deletes(self, cache):
        cache.set("k", "v", ttl=10)
        cache.set("k", "v2", ttl=0)
        assert cache.get("k") == (None, False)

    def test_delete_and_clear(self, cache):
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=10)
        cache.delete("a")
        assert "a" not in cache
        cache.clear()
        assert len(cache) == 0

    def test_per_entry_ttls_differ(self, cache, clock):
        cache.set("ai", "a", ttl=300)
        cache.set("fallback", "f", ttl=120)
        clock.advance(121)
        assert cache.get("fallback") == (None, False)
        assert cache.get("ai") == ("a", True)

    def test_stale_entries_evicted_on_write(self, clock):
        cache = TTLCache(name="large", maxsize=10_000, clock=clock)
        for i in range(5000):
            cache.set(f"https://signed.example.com/r{i}?expires_at={i}", "text", ttl=120)
        clock.advance(10_000)
        cache.set("fresh", "text", ttl=120)
        assert len(cache) == 1

    def test_maxsize_evicts_least_recently_used(self, clock):
        cache = TTLCache(name="small", maxsize=2, clock=clock)
        cache.set("a", 1, ttl=60)
        cache.set("b", 2, ttl=60)
        assert cache.get("a") == (1, True)
        cache.set("c", 3, ttl=60)
        assert "b" not in cache
        assert cache.get("a") == (1, True)
        assert cache.get("c") == (3, True)
        assert cache.maxsize == 2
