"""Tests for the entry stores."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from config import Config
from quivive.entry import Entry
from quivive.exceptions import ConfigurationError, StoreError
from quivive.store import MemoryEntryStore, RedisEntryStore, create_store


class TestEntry:
    """Test the entry model."""

    def test_defaults(self):
        entry = Entry(id="abc")
        assert entry.val == ""
        assert entry.url == ""
        assert not entry.is_redirect

    def test_json_form(self):
        entry = Entry(id="abc", val="héllo\n", url="https://example.com")
        assert Entry.from_json(entry.to_json()) == entry

    def test_from_dict_tolerates_missing_fields(self):
        assert Entry.from_dict({"id": "abc", "url": "https://example.com"}).is_redirect


@pytest.mark.asyncio
class TestMemoryEntryStore:
    """Test the in-memory store."""

    async def test_insert_and_get(self, store):
        entry = Entry(id="abc", val="payload")
        await store.insert_with("abc", entry, None)

        assert await store.get("abc") == entry

    async def test_get_missing(self, store):
        assert await store.get("missing") is None

    async def test_insert_overwrites(self, store):
        await store.insert_with("abc", Entry(id="abc", val="first"), None)
        await store.insert_with("abc", Entry(id="abc", val="second"), None)

        assert (await store.get("abc")).val == "second"

    async def test_remove_is_idempotent(self, store):
        await store.insert_with("abc", Entry(id="abc"), None)

        await store.remove("abc")
        await store.remove("abc")
        await store.remove("never-existed")

        assert await store.get("abc") is None

    async def test_expired_entry_never_returned(self, store, clock):
        await store.insert_with("abc", Entry(id="abc", val="v"), 10)

        clock.advance(9)
        assert await store.get("abc") is not None

        clock.advance(1)
        assert await store.get("abc") is None
        assert len(store) == 0

    async def test_no_ttl_never_expires(self, store, clock):
        await store.insert_with("abc", Entry(id="abc"), None)

        clock.advance(10 ** 9)
        assert await store.get("abc") is not None

    async def test_overwrite_resets_ttl(self, store, clock):
        await store.insert_with("abc", Entry(id="abc", val="old"), 10)
        clock.advance(5)
        await store.insert_with("abc", Entry(id="abc", val="new"), None)
        clock.advance(100)

        assert (await store.get("abc")).val == "new"

    async def test_purge_expired(self, store, clock):
        await store.insert_with("short", Entry(id="short"), 5)
        await store.insert_with("long", Entry(id="long"), 50)
        await store.insert_with("forever", Entry(id="forever"), None)

        clock.advance(10)
        assert store.purge_expired() == 1
        assert len(store) == 2
        assert await store.get("long") is not None

    async def test_concurrent_writers(self, store):
        """Many tasks writing distinct keys all land."""
        async def write(i):
            await store.insert_with(f"k{i}", Entry(id=f"k{i}", val=str(i)), None)

        await asyncio.gather(*(write(i) for i in range(200)))

        assert len(store) == 200
        assert (await store.get("k199")).val == "199"

    async def test_close_clears(self, store):
        await store.insert_with("abc", Entry(id="abc"), None)
        await store.close()

        assert len(store) == 0


@pytest.fixture
def redis_client():
    """Mock redis.asyncio client."""
    client = AsyncMock()
    client.get.return_value = None
    return client


@pytest.fixture
def redis_store(redis_client, logger):
    return RedisEntryStore(client=redis_client, logger=logger)


@pytest.mark.asyncio
class TestRedisEntryStore:
    """Test the Redis store against a mocked client."""

    async def test_insert_with_ttl(self, redis_store, redis_client):
        entry = Entry(id="abc", val="payload")
        await redis_store.insert_with("abc", entry, 60)

        redis_client.set.assert_awaited_once_with("QuiVive:abc", entry.to_json(), ex=60)

    async def test_insert_without_ttl(self, redis_store, redis_client):
        await redis_store.insert_with("abc", Entry(id="abc"), None)

        assert redis_client.set.await_args.kwargs["ex"] is None

    async def test_get(self, redis_store, redis_client):
        entry = Entry(id="abc", url="https://example.com")
        redis_client.get.return_value = entry.to_json()

        assert await redis_store.get("abc") == entry
        redis_client.get.assert_awaited_once_with("QuiVive:abc")

    async def test_get_missing(self, redis_store):
        assert await redis_store.get("abc") is None

    async def test_get_corrupt_value(self, redis_store, redis_client):
        redis_client.get.return_value = "{not json"

        with pytest.raises(StoreError, match="Corrupt"):
            await redis_store.get("abc")

    async def test_remove(self, redis_store, redis_client):
        redis_client.delete.return_value = 0

        await redis_store.remove("abc")

        redis_client.delete.assert_awaited_once_with("QuiVive:abc")

    @pytest.mark.parametrize("operation,args", [
        ("insert_with", ("abc", Entry(id="abc"), 60)),
        ("get", ("abc",)),
        ("remove", ("abc",)),
    ])
    async def test_redis_errors_raise_store_error(self, redis_store, redis_client, operation, args):
        error = RedisConnectionError("connection refused")
        redis_client.set.side_effect = error
        redis_client.get.side_effect = error
        redis_client.delete.side_effect = error

        with pytest.raises(StoreError):
            await getattr(redis_store, operation)(*args)

    async def test_connect_failure(self, redis_store, redis_client):
        redis_client.ping.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(StoreError, match="Failed to connect"):
            await redis_store.connect()

    async def test_close(self, redis_store, redis_client):
        await redis_store.close()

        redis_client.aclose.assert_awaited_once()


class TestCreateStore:
    """Test backend selection."""

    def test_memory_is_default(self):
        assert isinstance(create_store(Config(cache_type="memory")), MemoryEntryStore)

    def test_redis(self):
        store = create_store(Config(cache_type="redis", redis_hostname="cache.internal:6380"))

        assert isinstance(store, RedisEntryStore)
        assert (store.host, store.port) == ("cache.internal", 6380)

    def test_redis_requires_hostname(self):
        with pytest.raises(ConfigurationError, match="redis_hostname"):
            create_store(Config(cache_type="redis", redis_hostname=None))

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown cache_type"):
            create_store(Config(cache_type="memcached"))
