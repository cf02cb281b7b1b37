"""Redis entry store."""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..entry import Entry
from ..exceptions import StoreError
from .base import EntryStoreBase


KEY_PREFIX = "QuiVive"


class RedisEntryStore(EntryStoreBase):
    """Entry store backed by Redis.

    Entries are stored as JSON strings under ``QuiVive:<id>``. Expiration is
    delegated to Redis (``SET ... EX``). Connection pooling and retries belong
    to the redis client; every failure it reports is raised as StoreError.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        client: Optional[redis.Redis] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis store.

        Args:
            host: Redis hostname
            port: Redis port
            password: Optional Redis password
            db: Redis database number
            client: Pre-built client (used instead of host/port/password/db)
            logger: Optional logger instance
        """
        self.host = host
        self.port = port
        self.logger = logger or logging.getLogger(__name__)
        self.client = client or redis.Redis(
            host=host,
            port=port,
            password=password,
            db=db,
            encoding="utf-8",
            decode_responses=True,
        )

    async def connect(self) -> None:
        """Check that Redis answers.

        Raises:
            StoreError: If Redis cannot be reached
        """
        try:
            await self.client.ping()
        except RedisError as e:
            raise StoreError(f"Failed to connect to Redis at {self.host}:{self.port}: {e}") from e
        self.logger.info(f"Connected to Redis at {self.host}:{self.port}")

    def get_store_key(self, key: str) -> str:
        """Generate the Redis key for an entry identifier."""
        return f"{KEY_PREFIX}:{key}"

    async def insert_with(
        self,
        key: str,
        entry: Entry,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        try:
            await self.client.set(self.get_store_key(key), entry.to_json(), ex=ttl_seconds or None)
        except RedisError as e:
            self.logger.error(f"Redis set error for {key}: {e}")
            raise StoreError(f"Failed to store entry {key}") from e

    async def get(self, key: str) -> Optional[Entry]:
        try:
            raw = await self.client.get(self.get_store_key(key))
        except RedisError as e:
            self.logger.error(f"Redis get error for {key}: {e}")
            raise StoreError(f"Failed to read entry {key}") from e

        if raw is None:
            return None

        try:
            return Entry.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            self.logger.error(f"Corrupt entry stored under {key}: {e}")
            raise StoreError(f"Corrupt entry {key}") from e

    async def remove(self, key: str) -> None:
        try:
            await self.client.delete(self.get_store_key(key))
        except RedisError as e:
            self.logger.error(f"Redis delete error for {key}: {e}")
            raise StoreError(f"Failed to remove entry {key}") from e

    async def close(self) -> None:
        """Close Redis connection."""
        await self.client.aclose()
        self.logger.info("Redis connection closed")
