"""
Tests for cache store backends and the default store registry.

Coverage includes:
- Memory store TTL, LRU ordering and eviction, sweeping, lifecycle
- Redis store prefixing, native expiry, raw stripping, self-healing
- SQL store persistence, prefixing, raw stripping, self-healing
"""
import asyncio
import json

import pytest

from fetch_request import (
    MemoryCacheStore,
    RedisCacheStore,
    SqlCacheStore,
    configure,
    create_memory_cache_store,
    create_redis_cache_store,
    create_sql_cache_store,
    get_default_cache_store,
    reset_default_cache_store,
    set_default_cache_store,
)
from fetch_request.utils import MAX_EXPIRES_AT


def response_with_raw():
    return {
        "status": 200,
        "status_text": "OK",
        "headers": {"content-type": "application/json"},
        "data": {"id": 1},
        "raw": object(),
    }


class TestMemoryCacheStore:
    """Tests for MemoryCacheStore."""

    @pytest.fixture
    def store(self) -> MemoryCacheStore:
        """Create a fresh store for each test."""
        return MemoryCacheStore()

    # === get()/set() tests ===

    async def test_get_returns_none_for_missing_key(self, store):
        """Should return None for a key never set."""
        assert await store.get("missing") is None

    async def test_set_then_get(self, store):
        """Should return the stored value."""
        await store.set("k", {"a": 1})
        assert await store.get("k") == {"a": 1}

    async def test_omitted_ttl_never_expires(self, store):
        """Should store entries without TTL at the maximum expiry."""
        await store.set("k", "v")
        assert store._cache["k"].expires_at == MAX_EXPIRES_AT

    async def test_zero_ttl_is_immediately_absent(self, store):
        """Should store a zero-TTL entry that is never observed."""
        await store.set("k", "v", ttl_ms=0)
        assert await store.get("k") is None
        assert await store.has("k") is False

    async def test_expired_entry_is_evicted_on_get(self, store):
        """Should delete an expired entry when it is read."""
        await store.set("k", "v", ttl_ms=10)
        await asyncio.sleep(0.03)
        assert await store.get("k") is None
        assert "k" not in store._cache

    async def test_set_overwrites(self, store):
        """Should replace an existing value."""
        await store.set("k", "old")
        await store.set("k", "new")
        assert await store.get("k") == "new"

    # === delete()/clear()/has() tests ===

    async def test_delete(self, store):
        """Should remove a key and tolerate missing keys."""
        await store.set("k", "v")
        await store.delete("k")
        await store.delete("missing")
        assert await store.has("k") is False

    async def test_clear(self, store):
        """Should remove every entry."""
        await store.set("a", 1)
        await store.set("b", 2)
        await store.clear()
        assert await store.size() == 0

    # === LRU tests ===

    async def test_evicts_least_recently_used(self):
        """Should evict the least recently used key on overflow."""
        store = MemoryCacheStore(max_entries=2)
        await store.set("a", 1)
        await store.set("b", 2)
        await store.get("a")
        await store.set("c", 3)

        assert await store.keys() == ["a", "c"]
        assert await store.get("b") is None

    async def test_has_refreshes_recency(self):
        """Should count has() as a use."""
        store = MemoryCacheStore(max_entries=2)
        await store.set("a", 1)
        await store.set("b", 2)
        await store.has("a")
        await store.set("c", 3)

        assert await store.has("a") is True
        assert await store.has("b") is False

    async def test_rejects_invalid_max_entries(self):
        """Should reject a bound below one."""
        with pytest.raises(ValueError):
            MemoryCacheStore(max_entries=0)

    # === cleanup tests ===

    async def test_cleanup_removes_expired(self, store):
        """Should sweep every expired entry."""
        await store.set("old", 1, ttl_ms=0)
        await store.set("live", 2)
        await store.cleanup()
        assert list(store._cache) == ["live"]

    async def test_background_cleanup(self):
        """Should sweep periodically when an interval is configured."""
        store = MemoryCacheStore(cleanup_interval_seconds=0.02)
        await store.set("k", "v", ttl_ms=5)
        await asyncio.sleep(0.08)
        assert "k" not in store._cache
        await store.close()

    async def test_close_stops_cleanup_and_clears(self):
        """Should cancel the sweeper and drop entries on close."""
        store = create_memory_cache_store(cleanup_interval_seconds=60)
        await store.set("k", "v")
        task = store._cleanup_task
        await store.close()

        assert task.cancelled() or task.done()
        assert store._cleanup_task is None
        assert await store.size() == 0


class TestRedisCacheStore:
    """Tests for RedisCacheStore."""

    @pytest.fixture
    def store(self, fake_redis) -> RedisCacheStore:
        return create_redis_cache_store(fake_redis)

    async def test_set_then_get(self, store, fake_redis):
        """Should round-trip a value under the prefixed key."""
        await store.set("k", {"a": 1})
        assert "fetch-request:k" in fake_redis.data
        assert await store.get("k") == {"a": 1}

    async def test_native_expiry_for_positive_ttl(self, store, fake_redis):
        """Should pass PX for positive TTLs only."""
        await store.set("ttl", "v", ttl_ms=1500)
        await store.set("forever", "v")
        assert fake_redis.expiry["fetch-request:ttl"] == 1500
        assert fake_redis.expiry["fetch-request:forever"] is None

    async def test_expired_record_is_a_miss(self, store, fake_redis):
        """Should delete a record past its expiry."""
        await store.set("k", "v", ttl_ms=0)
        assert await store.get("k") is None
        assert "fetch-request:k" not in fake_redis.data

    async def test_strips_raw_from_responses(self, store, fake_redis):
        """Should never persist the raw transport handle."""
        await store.set("k", response_with_raw())
        record = json.loads(fake_redis.data["fetch-request:k"])
        assert "raw" not in record["value"]
        assert (await store.get("k"))["data"] == {"id": 1}

    @pytest.mark.parametrize(
        "payload",
        [b"not json", b'"a string"', b'{"data": 1}', b'{"value": 1, "expires_at": "soon"}'],
    )
    async def test_heals_malformed_records(self, store, fake_redis, payload):
        """Should treat a corrupted or legacy record as a miss and delete it."""
        fake_redis.data["fetch-request:k"] = payload
        assert await store.get("k") is None
        assert "fetch-request:k" not in fake_redis.data

    async def test_clear_only_touches_own_prefix(self, store, fake_redis):
        """Should leave keys of other prefixes alone."""
        other = RedisCacheStore(fake_redis, key_prefix="other:")
        await store.set("a", 1)
        await other.set("b", 2)

        await store.clear()

        assert await store.has("a") is False
        assert await other.get("b") == 2

    async def test_cleanup_removes_stale_records(self, store, fake_redis):
        """Should delete expired and malformed records."""
        await store.set("expired", 1, ttl_ms=0)
        await store.set("live", 2)
        fake_redis.data["fetch-request:broken"] = b"{"

        await store.cleanup()

        assert sorted(fake_redis.data) == ["fetch-request:live"]

    async def test_close_closes_client(self, store, fake_redis):
        """Should close the underlying client."""
        await store.close()
        assert fake_redis.closed is True


class TestSqlCacheStore:
    """Tests for SqlCacheStore."""

    @pytest.fixture
    def store(self, sql_engine) -> SqlCacheStore:
        return create_sql_cache_store(sql_engine)

    async def test_set_then_get(self, store):
        """Should persist and read back a value."""
        await store.set("k", {"a": [1, 2]})
        assert await store.get("k") == {"a": [1, 2]}
        assert await store.has("k") is True

    async def test_set_replaces(self, store):
        """Should replace an existing row."""
        await store.set("k", "old")
        await store.set("k", "new")
        assert await store.get("k") == "new"

    async def test_expired_row_is_a_miss(self, store):
        """Should delete a row past its expiry."""
        await store.set("k", "v", ttl_ms=0)
        assert await store.get("k") is None
        assert await store.has("k") is False

    async def test_strips_raw_from_responses(self, store, sql_engine):
        """Should never persist the raw transport handle."""
        await store.set("k", response_with_raw())
        cached = await store.get("k")
        assert "raw" not in cached
        assert cached["status"] == 200

    async def test_heals_malformed_rows(self, store, sql_engine):
        """Should treat an unreadable row as a miss and delete it."""
        await store.set("k", "v")
        async with sql_engine.begin() as conn:
            await conn.execute(
                store.table.update()
                .where(store.table.c.key == "fetch-request:k")
                .values(value="{broken")
            )

        assert await store.get("k") is None
        async with sql_engine.begin() as conn:
            rows = (await conn.execute(store.table.select())).all()
        assert rows == []

    async def test_delete(self, store):
        """Should delete a single key."""
        await store.set("a", 1)
        await store.set("b", 2)
        await store.delete("a")
        assert await store.get("a") is None
        assert await store.get("b") == 2

    async def test_clear_only_touches_own_prefix(self, store, sql_engine):
        """Should leave rows of other prefixes alone."""
        other = SqlCacheStore(sql_engine, key_prefix="other_%:")
        await store.set("a", 1)
        await other.set("b", 2)

        await store.clear()

        assert await store.get("a") is None
        assert await other.get("b") == 2

    async def test_cleanup_removes_expired_rows(self, store):
        """Should delete expired rows and keep live ones."""
        await store.set("expired", 1, ttl_ms=0)
        await store.set("live", 2, ttl_ms=60_000)
        await store.cleanup()
        assert await store.get("live") == 2

    async def test_cleanup_removes_malformed_rows(self, store, sql_engine):
        """Should delete rows whose value is not a stored record."""
        await store.set("broken", "v")
        await store.set("live", 2)
        async with sql_engine.begin() as conn:
            await conn.execute(
                store.table.update()
                .where(store.table.c.key == "fetch-request:broken")
                .values(value='{"data": 1}')
            )

        await store.cleanup()

        async with sql_engine.begin() as conn:
            keys = (await conn.execute(store.table.select())).scalars().all()
        assert keys == ["fetch-request:live"]

    async def test_custom_table_name(self, sql_engine):
        """Should create and use the configured table."""
        store = SqlCacheStore(sql_engine, table_name="custom_cache")
        await store.set("k", "v")
        assert store.table.name == "custom_cache"
        assert await store.get("k") == "v"


class TestDefaultCacheStore:
    """Tests for the default cache store registry."""

    def test_lazy_memory_fallback(self):
        """Should create and reuse one memory store."""
        store = get_default_cache_store()
        assert isinstance(store, MemoryCacheStore)
        assert get_default_cache_store() is store

    def test_registered_store(self):
        """Should return the registered store."""
        store = MemoryCacheStore()
        set_default_cache_store(store)
        assert get_default_cache_store() is store

    def test_global_config_store_wins(self):
        """Should prefer the store from the global configuration."""
        configured = MemoryCacheStore()
        set_default_cache_store(MemoryCacheStore())
        configure({"cache_store": configured})
        assert get_default_cache_store() is configured

    def test_reset(self):
        """Should forget registered and fallback stores."""
        store = MemoryCacheStore()
        set_default_cache_store(store)
        reset_default_cache_store()
        assert get_default_cache_store() is not store
