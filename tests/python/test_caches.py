from __future__ import annotations

import json

import pytest
from conftest import FakeClock

from mataresit_search import (
    DependencyUnavailableError,
    InMemorySearchCache,
    MemoryCacheConfig,
    RedisCacheConfig,
    RedisSearchCache,
    SearchParams,
    build_cache_key,
    is_temporal_query,
)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.fail = False
        self.closed = False

    async def get(self, key: str) -> str | None:
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value
        self.expiry[key] = ex

    async def delete(self, key: str) -> None:
        self.store.pop(key, None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.parametrize(
    "query",
    [
        "receipts from january",
        "what did I spend yesterday",
        "groceries last week",
        "receipts on 12/03/2024",
        "invoices since 5 mar",
    ],
)
def test_temporal_queries_are_detected(query: str) -> None:
    assert is_temporal_query(query)


def test_plain_queries_are_not_temporal() -> None:
    assert not is_temporal_query("coffee receipts at starbucks")


def test_cache_key_normalizes_query_and_sources() -> None:
    first = SearchParams(query="  Coffee Receipts ", sources=["receipts", "claims"])
    second = SearchParams(query="coffee receipts", sources=["claims", "receipts"])

    assert build_cache_key(first, "user-1") == build_cache_key(second, "user-1")
    assert build_cache_key(first, "user-1") != build_cache_key(first, "user-2")
    assert build_cache_key(first, "user-1") != build_cache_key(first.model_copy(update={"limit": 5}), "user-1")


@pytest.mark.asyncio
async def test_memory_cache_hits_and_expires() -> None:
    clock = FakeClock()
    cache = InMemorySearchCache(MemoryCacheConfig(ttl_ms=1_000), clock=clock)
    params = SearchParams(query="coffee receipts")

    assert await cache.get(params, "user-1") is None
    await cache.set(params, "user-1", {"total": 3})
    assert await cache.get(params, "user-1") == {"total": 3}

    clock.advance(1_001)
    assert await cache.get(params, "user-1") is None

    metrics = cache.get_metrics()
    assert metrics.hits == 1
    assert metrics.misses == 2
    assert metrics.cache_efficiency == pytest.approx(100.0 / 3)
    assert metrics.entry_count == 0


@pytest.mark.asyncio
async def test_memory_cache_evicts_least_recently_used() -> None:
    cache = InMemorySearchCache(MemoryCacheConfig(max_entries=2))
    a, b, c = (SearchParams(query=name) for name in ("a", "b", "c"))

    await cache.set(a, "user-1", 1)
    await cache.set(b, "user-1", 2)
    assert await cache.get(a, "user-1") == 1
    await cache.set(c, "user-1", 3)

    assert await cache.get(b, "user-1") is None
    assert await cache.get(a, "user-1") == 1
    assert await cache.get(c, "user-1") == 3
    assert cache.get_metrics().evictions == 1


@pytest.mark.asyncio
async def test_memory_cache_skips_temporal_queries() -> None:
    cache = InMemorySearchCache()
    params = SearchParams(query="receipts from yesterday")

    await cache.set(params, "user-1", {"total": 1})

    assert await cache.get(params, "user-1") is None
    assert cache.get_metrics().entry_count == 0


@pytest.mark.asyncio
async def test_memory_cache_can_store_temporal_queries_when_bypass_disabled() -> None:
    cache = InMemorySearchCache(MemoryCacheConfig(bypass_temporal_queries=False))
    params = SearchParams(query="receipts from yesterday")

    await cache.set(params, "user-1", {"total": 1})

    assert await cache.get(params, "user-1") == {"total": 1}


@pytest.mark.asyncio
async def test_redis_cache_round_trip_with_ttl_and_prefix() -> None:
    client = FakeRedis()
    cache = RedisSearchCache(RedisCacheConfig(host="localhost", ttl_sec=60), client=client)
    params = SearchParams(query="coffee receipts")

    await cache.set(params, "user-1", {"total": 2})

    [key] = client.store
    assert key.startswith("mataresit:search-cache:user-1:")
    assert client.expiry[key] == 60
    assert await cache.get(params, "user-1") == {"total": 2}

    await cache.delete(params, "user-1")
    assert await cache.get(params, "user-1") is None
    assert cache.get_metrics().cache_efficiency == pytest.approx(50.0)

    await cache.close()
    assert client.closed


@pytest.mark.asyncio
async def test_redis_cache_treats_corrupt_entries_as_miss() -> None:
    client = FakeRedis()
    cache = RedisSearchCache(RedisCacheConfig(host="localhost"), client=client)
    params = SearchParams(query="coffee receipts")
    await cache.set(params, "user-1", {"total": 2})
    [key] = client.store
    client.store[key] = "{not json"

    assert await cache.get(params, "user-1") is None
    assert cache.get_metrics().misses == 1


@pytest.mark.asyncio
async def test_redis_cache_wraps_client_errors() -> None:
    client = FakeRedis()
    client.fail = True
    cache = RedisSearchCache(RedisCacheConfig(host="localhost"), client=client)

    with pytest.raises(DependencyUnavailableError, match="조회 실패"):
        await cache.get(SearchParams(query="coffee"), "user-1")
    with pytest.raises(DependencyUnavailableError, match="저장 실패"):
        await cache.set(SearchParams(query="coffee"), "user-1", {"total": 0})


@pytest.mark.asyncio
async def test_redis_cache_serializes_pydantic_results() -> None:
    client = FakeRedis()
    cache = RedisSearchCache(RedisCacheConfig(host="localhost"), client=client)
    params = SearchParams(query="coffee receipts")

    await cache.set(params, "user-1", SearchParams(query="stored"))

    [value] = client.store.values()
    assert json.loads(value)["query"] == "stored"
