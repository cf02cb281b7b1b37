"""Abstract base class for qui-vive entry stores."""

from abc import ABC, abstractmethod
from typing import Optional

from ..entry import Entry


class EntryStoreBase(ABC):
    """Abstract base class for TTL-aware entry stores.

    A single store instance is shared by every in-flight request.
    Implementations synchronize internally; callers never lock around them.
    """

    @abstractmethod
    async def insert_with(
        self,
        key: str,
        entry: Entry,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """Insert or overwrite an entry.

        Args:
            key: The store key (the entry identifier)
            entry: Entry to store
            ttl_seconds: Seconds until the entry expires, None for no expiration

        Raises:
            StoreError: If the backend fails to store the entry
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Entry]:
        """Get an entry.

        Args:
            key: The store key

        Returns:
            The entry, or None if absent or expired

        Raises:
            StoreError: If the backend fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove an entry. Removing a missing key is a no-op.

        Args:
            key: The store key

        Raises:
            StoreError: If the backend fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass
