"""Entry store backends for qui-vive."""

import logging
from typing import Optional

from ..exceptions import ConfigurationError
from .base import EntryStoreBase
from .memory import MemoryEntryStore
from .redis_store import RedisEntryStore

__all__ = ["EntryStoreBase", "MemoryEntryStore", "RedisEntryStore", "create_store"]

STORE_TYPES = ("memory", "redis")


def create_store(config, logger: Optional[logging.Logger] = None) -> EntryStoreBase:
    """Build the store selected by ``config.cache_type``.

    Args:
        config: Configuration instance
        logger: Optional logger passed to the store

    Returns:
        An unconnected store instance

    Raises:
        ConfigurationError: If the store type is unknown or incomplete
    """
    cache_type = (config.cache_type or "memory").lower()

    if cache_type == "memory":
        return MemoryEntryStore(logger=logger)

    if cache_type == "redis":
        if not config.redis_hostname:
            raise ConfigurationError("cache_type 'redis' requires redis_hostname")
        host, port = config.redis_address()
        return RedisEntryStore(
            host=host,
            port=port,
            password=config.redis_password,
            db=config.redis_db,
            logger=logger,
        )

    raise ConfigurationError(
        f"Unknown cache_type '{config.cache_type}' (expected one of: {', '.join(STORE_TYPES)})"
    )
