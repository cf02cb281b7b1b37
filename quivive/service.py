"""Business logic service for qui-vive."""

import logging
import time
from typing import Optional

from .entry import Entry
from .exceptions import InvalidRequestError, PayloadTooLargeError, StoreError
from .idgen import IdGenerator
from .store.base import EntryStoreBase
from .common.headers import resolve_expiration
from .common.url_builder import append_query_param
from .common.validators import CustomIdPolicy, is_valid_custom_id, is_valid_url


HEALTH_ENTRY_ID = "health"


class EntryService:
    """Service layer applying per-operation policy on top of an entry store.

    The service keeps no per-request state, so one instance serves every
    request concurrently. Synchronization is left to the store.
    """

    def __init__(
        self,
        store: EntryStoreBase,
        id_generator: Optional[IdGenerator] = None,
        external_url: str = "http://127.0.0.1:8080",
        default_expiration: Optional[int] = None,
        max_value_size: int = 65536,
        custom_id_policy: CustomIdPolicy = CustomIdPolicy.REJECT_ALL,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize entry service.

        Args:
            store: Entry store shared by all requests
            id_generator: Optional identifier generator
            external_url: Public base URL of the service
            default_expiration: TTL applied when a request sets none (None = never)
            max_value_size: Maximum accepted body size in bytes
            custom_id_policy: Policy for caller-supplied identifiers
            logger: Optional logger
        """
        self.store = store
        self.generator = id_generator or IdGenerator()
        self.external_url = external_url.rstrip("/")
        self.default_expiration = default_expiration
        self.max_value_size = max_value_size
        self.custom_id_policy = CustomIdPolicy(custom_id_policy)
        self.logger = logger or logging.getLogger(__name__)

    def expiration_for(self, header_value: Optional[str]) -> Optional[int]:
        """Resolve the TTL of a write from the request's expiration header."""
        return resolve_expiration(header_value, self.default_expiration)

    def decode_value(self, body: bytes) -> str:
        """Apply the size and encoding policy to a request body.

        Args:
            body: Raw request body

        Returns:
            Body decoded as UTF-8

        Raises:
            PayloadTooLargeError: If the body exceeds max_value_size
            InvalidRequestError: If the body is not valid UTF-8
        """
        if len(body) > self.max_value_size:
            raise PayloadTooLargeError(self.max_value_size)

        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidRequestError("Body is not valid UTF-8") from e

    def check_custom_id(self, identifier: str) -> None:
        """Raise InvalidRequestError unless the policy accepts the identifier."""
        is_valid, error = is_valid_custom_id(identifier, self.custom_id_policy)
        if not is_valid:
            raise InvalidRequestError(error)

    async def create_key(
        self,
        body: bytes,
        ttl: Optional[int] = None,
        custom_id: Optional[str] = None,
    ) -> Entry:
        """Store a payload.

        Args:
            body: Raw payload
            ttl: Expiration in seconds (None = never)
            custom_id: Optional caller-supplied identifier

        Returns:
            The stored entry

        Raises:
            InvalidRequestError: If the body or custom identifier is refused
            StoreError: If the store fails
        """
        if custom_id is not None:
            self.check_custom_id(custom_id)
            identifier = custom_id
        else:
            identifier = self.generator.generate()

        value = self.decode_value(body)
        entry = Entry(id=identifier, val=value)
        await self.store.insert_with(identifier, entry, ttl)

        self.logger.info(f"Stored key {identifier} ({len(body)} bytes, ttl={ttl})")
        return entry

    async def create_url(self, body: bytes, ttl: Optional[int] = None) -> Entry:
        """Store a redirect whose destination is the request body.

        Raises:
            InvalidRequestError: If the body is refused or not an absolute URL
            StoreError: If the store fails
        """
        destination = self.decode_value(body).strip()

        is_valid, error = is_valid_url(destination)
        if not is_valid:
            raise InvalidRequestError(f"Invalid URL: {error}")

        identifier = self.generator.generate()
        entry = Entry(id=identifier, url=destination)
        await self.store.insert_with(identifier, entry, ttl)

        self.logger.info(f"Stored url {identifier} -> {destination}")
        return entry

    async def create_referral(
        self,
        body: bytes,
        destination: Optional[str],
        id_param: Optional[str] = None,
        source_param: Optional[str] = None,
        ttl: Optional[int] = None,
    ) -> Entry:
        """Store a referral redirect.

        The generated identifier is appended to the destination's query
        string under ``id_param``, and the service's external URL under
        ``source_param``, when those names are given. The body is kept in
        ``val`` but no read path returns it.

        Args:
            body: Raw request body
            destination: Destination URL from the request headers
            id_param: Optional query parameter name for the identifier
            source_param: Optional query parameter name for the external URL
            ttl: Expiration in seconds (None = never)

        Returns:
            The stored entry

        Raises:
            InvalidRequestError: If the destination is missing or invalid, or the body is refused
            StoreError: If the store fails
        """
        if destination is None:
            raise InvalidRequestError("Destination URL header is required")

        destination = destination.strip()
        is_valid, error = is_valid_url(destination)
        if not is_valid:
            raise InvalidRequestError(f"Invalid destination URL: {error}")

        identifier = self.generator.generate()

        url = destination
        if id_param:
            url = append_query_param(url, id_param, identifier)
        if source_param:
            url = append_query_param(url, source_param, self.external_url)

        value = self.decode_value(body)
        entry = Entry(id=identifier, val=value, url=url)
        await self.store.insert_with(identifier, entry, ttl)

        self.logger.info(f"Stored referral {identifier} -> {url}")
        return entry

    async def get_value(self, identifier: str) -> Optional[str]:
        """Get the payload stored under an identifier, or None on a miss."""
        entry = await self.store.get(identifier)
        if entry is None:
            self.logger.debug(f"Key not found: {identifier}")
            return None
        return entry.val

    async def get_redirect(self, identifier: str) -> Optional[str]:
        """Get the redirect target of an identifier.

        Returns:
            The stored URL, or None if the entry is missing or has no URL
        """
        entry = await self.store.get(identifier)
        if entry is None or not entry.is_redirect:
            self.logger.debug(f"Redirect not found: {identifier}")
            return None
        return entry.url

    async def delete(self, identifier: str) -> None:
        """Delete an entry. Deleting a missing entry is not an error."""
        await self.store.remove(identifier)
        self.logger.info(f"Deleted {identifier}")

    async def health_check(self) -> bool:
        """Write a fresh timestamp entry and read it back.

        Returns:
            True if the value read back matches the one written
        """
        stamp = str(time.time_ns())
        entry = Entry(id=HEALTH_ENTRY_ID, val=stamp)

        try:
            await self.store.insert_with(HEALTH_ENTRY_ID, entry, self.default_expiration)
            stored = await self.store.get(HEALTH_ENTRY_ID)
        except StoreError as e:
            self.logger.error(f"Health check failed: {e}")
            return False

        if stored is None or stored.val != stamp:
            self.logger.error("Health check failed: value read back does not match")
            return False

        return True

    async def close(self) -> None:
        """Close store connections."""
        await self.store.close()
