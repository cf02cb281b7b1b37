"""In-process entry store."""

import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..entry import Entry
from .base import EntryStoreBase


class MemoryEntryStore(EntryStoreBase):
    """Entry store backed by a dict.

    Expired entries are dropped lazily when read and in bulk by
    ``purge_expired``. The lock only covers single map operations and is
    never held across an await.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize memory store.

        Args:
            clock: Monotonic time source in seconds
            logger: Optional logger instance
        """
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        # key -> (entry, deadline or None)
        self._data: Dict[str, Tuple[Entry, Optional[float]]] = {}
        self._lock = threading.Lock()

    async def insert_with(
        self,
        key: str,
        entry: Entry,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        deadline = self.clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._data[key] = (entry, deadline)

    async def get(self, key: str) -> Optional[Entry]:
        now = self.clock()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            entry, deadline = item
            if deadline is not None and deadline <= now:
                del self._data[key]
                return None
            return entry

    async def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        with self._lock:
            expired = [
                key for key, (_, deadline) in self._data.items()
                if deadline is not None and deadline <= now
            ]
            for key in expired:
                del self._data[key]

        if expired:
            self.logger.debug(f"Purged {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    async def close(self) -> None:
        with self._lock:
            self._data.clear()
