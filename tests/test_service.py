"""Tests for service layer."""

from unittest.mock import AsyncMock

import pytest
from quivive.entry import Entry
from quivive.exceptions import InvalidRequestError, PayloadTooLargeError, StoreError
from quivive.idgen import IdGenerator
from quivive.service import EntryService, HEALTH_ENTRY_ID
from quivive.store.base import EntryStoreBase


class FixedIdGenerator(IdGenerator):
    """Always hands out the same identifier."""

    def __init__(self, identifier: str):
        super().__init__(id_length=len(identifier))
        self.identifier = identifier

    def generate(self, length=None) -> str:
        return self.identifier


class TestEntryService:
    """Test entry service."""

    @pytest.mark.asyncio
    async def test_create_and_get_key(self, service, store):
        entry = await service.create_key(b"P", ttl=None)

        assert await service.get_value(entry.id) == "P"
        assert (await store.get(entry.id)).url == ""

    @pytest.mark.asyncio
    async def test_create_key_keeps_body_verbatim(self, service):
        entry = await service.create_key("  héllo\n\n".encode("utf-8"))

        assert await service.get_value(entry.id) == "  héllo\n\n"

    @pytest.mark.asyncio
    async def test_create_key_with_custom_id(self, service):
        entry = await service.create_key(b"v", custom_id="my-id")

        assert entry.id == "my-id"
        assert await service.get_value("my-id") == "v"

    @pytest.mark.asyncio
    async def test_custom_id_rejected_by_policy(self, store, logger):
        service = EntryService(store=store, custom_id_policy="none", logger=logger)

        with pytest.raises(InvalidRequestError, match="not enabled"):
            await service.create_key(b"v", custom_id="my-id")
        assert await store.get("my-id") is None

    @pytest.mark.asyncio
    async def test_payload_size_limit(self, service, store):
        """The limit is inclusive; one byte more is refused."""
        entry = await service.create_key(b"x" * service.max_value_size)
        assert await store.get(entry.id) is not None

        with pytest.raises(PayloadTooLargeError):
            await service.create_key(b"x" * (service.max_value_size + 1), custom_id="too-big")
        assert await store.get("too-big") is None

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, service):
        with pytest.raises(InvalidRequestError, match="UTF-8"):
            await service.create_key(b"\xff\xfe")

    @pytest.mark.asyncio
    async def test_random_id_collision_overwrites(self, store, logger):
        """No collision check: a repeated random id replaces the older entry."""
        service = EntryService(store=store, id_generator=FixedIdGenerator("dup"), logger=logger)

        await service.create_key(b"first")
        await service.create_key(b"second")

        assert await service.get_value("dup") == "second"

    @pytest.mark.asyncio
    async def test_create_url(self, service, sample_urls):
        entry = await service.create_url(sample_urls[0].encode() + b"\n")

        assert entry.url == sample_urls[0]
        assert entry.val == ""
        assert await service.get_redirect(entry.id) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_create_url_rejects_garbage(self, service):
        with pytest.raises(InvalidRequestError, match="Invalid URL"):
            await service.create_url(b"not a url")

    @pytest.mark.asyncio
    async def test_key_entries_do_not_redirect(self, service):
        entry = await service.create_key(b"payload")

        assert await service.get_redirect(entry.id) is None

    @pytest.mark.asyncio
    async def test_create_referral(self, service):
        entry = await service.create_referral(
            b"body",
            "https://example.com/landing?a=1",
            id_param="ref",
        )

        assert entry.url == f"https://example.com/landing?a=1&ref={entry.id}"
        # Stored but never read back
        assert entry.val == "body"

    @pytest.mark.asyncio
    async def test_create_referral_with_source(self, service):
        entry = await service.create_referral(
            b"",
            "https://example.com/",
            id_param="ref",
            source_param="src",
        )

        assert entry.url == f"https://example.com/?ref={entry.id}&src=http%3A%2F%2Ftestserver"

    @pytest.mark.asyncio
    async def test_create_referral_without_params(self, service):
        entry = await service.create_referral(b"", "https://example.com/landing")

        assert entry.url == "https://example.com/landing"

    @pytest.mark.asyncio
    async def test_create_referral_requires_destination(self, service, store):
        with pytest.raises(InvalidRequestError, match="required"):
            await service.create_referral(b"", None)

    @pytest.mark.asyncio
    async def test_create_referral_rejects_bad_destination(self, service):
        with pytest.raises(InvalidRequestError, match="destination"):
            await service.create_referral(b"", "::nope::")

    @pytest.mark.asyncio
    async def test_delete(self, service):
        entry = await service.create_key(b"v")

        await service.delete(entry.id)
        await service.delete(entry.id)

        assert await service.get_value(entry.id) is None

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, service):
        assert await service.get_value("nonexistent") is None
        assert await service.get_redirect("nonexistent") is None

    def test_expiration_for(self, service):
        assert service.expiration_for(None) == service.default_expiration
        assert service.expiration_for("0") is None
        assert service.expiration_for("30") == 30

    @pytest.mark.asyncio
    async def test_health_check(self, service, store):
        assert await service.health_check()
        first = (await store.get(HEALTH_ENTRY_ID)).val

        assert await service.health_check()
        second = (await store.get(HEALTH_ENTRY_ID)).val

        assert first.isdigit() and second.isdigit()
        assert first != second

    @pytest.mark.asyncio
    async def test_health_check_store_failure(self, logger):
        store = AsyncMock(spec=EntryStoreBase)
        store.insert_with.side_effect = StoreError("down")
        service = EntryService(store=store, logger=logger)

        assert not await service.health_check()

    @pytest.mark.asyncio
    async def test_health_check_mismatch(self, logger):
        store = AsyncMock(spec=EntryStoreBase)
        store.get.return_value = Entry(id=HEALTH_ENTRY_ID, val="stale")
        service = EntryService(store=store, logger=logger)

        assert not await service.health_check()

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, logger):
        store = AsyncMock(spec=EntryStoreBase)
        store.insert_with.side_effect = StoreError("down")
        service = EntryService(store=store, logger=logger)

        with pytest.raises(StoreError):
            await service.create_key(b"v")
