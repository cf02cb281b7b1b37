#!/usr/bin/env python3
"""
Command-line interface for the qui-vive entry store.

Operates directly on the configured store (normally Redis), bypassing HTTP.
Store settings come from the same environment variables as the service.

Usage:
    python quivive_cli.py put <value|-> [--id ID] [--expiration SECONDS]
    python quivive_cli.py get <id>
    python quivive_cli.py delete <id>
    python quivive_cli.py shorten <url> [--expiration SECONDS]
    python quivive_cli.py refer <destination> [--id-param NAME] [--src-param NAME]
    python quivive_cli.py resolve <id>
    python quivive_cli.py health
"""

import argparse
import asyncio
import json
import sys
import os
from typing import Optional

# Add parent directories to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from config import load_config
from quivive.exceptions import InvalidRequestError, QuiViveError
from quivive.service import EntryService
from quivive.idgen import IdGenerator
from quivive.store import RedisEntryStore, create_store
from quivive.common.url_builder import build_link
from quivive.common.logging_config import setup_logging


class QuiViveCLI:
    """Command-line interface for the entry store."""

    def __init__(self, redis_hostname: Optional[str] = None, verbose: bool = False):
        """Initialize CLI."""
        overrides = {"cache_type": "redis", "redis_hostname": redis_hostname} if redis_hostname else {}
        self.config = load_config(**overrides)
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.store = None
        self.service = None

    async def initialize(self):
        """Initialize store and service."""
        self.store = create_store(self.config, logger=self.logger)
        if isinstance(self.store, RedisEntryStore):
            await self.store.connect()
        else:
            self.logger.warning("Using an in-memory store: entries vanish when the CLI exits")

        self.service = EntryService(
            store=self.store,
            id_generator=IdGenerator(self.config.id_length, self.config.id_charset),
            external_url=self.config.external_url,
            default_expiration=self.config.default_expiration,
            max_value_size=self.config.max_value_size,
            # The CLI is an operator tool, so any well-formed id is allowed
            custom_id_policy="all",
            logger=self.logger,
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    def _ttl(self, expiration: Optional[int]) -> Optional[int]:
        return self.service.expiration_for(None if expiration is None else str(expiration))

    async def put(self, value: str, custom_id: Optional[str], expiration: Optional[int]):
        """Store a payload."""
        if value == "-":
            value = sys.stdin.read()
        entry = await self.service.create_key(value.encode("utf-8"), self._ttl(expiration), custom_id=custom_id)
        return self._ok(id=entry.id, link=build_link(self.config.external_url, "key", entry.id))

    async def get(self, identifier: str):
        """Print a stored payload."""
        value = await self.service.get_value(identifier)
        if value is None:
            return self._fail(f"'{identifier}' not found")
        sys.stdout.write(value)
        return 0

    async def delete(self, identifier: str):
        """Delete an entry."""
        await self.service.delete(identifier)
        return self._ok(id=identifier, deleted=True)

    async def shorten(self, url: str, expiration: Optional[int]):
        """Store a redirect."""
        entry = await self.service.create_url(url.encode("utf-8"), self._ttl(expiration))
        return self._ok(id=entry.id, url=entry.url, link=build_link(self.config.external_url, entry.id))

    async def refer(self, destination: str, id_param: Optional[str], src_param: Optional[str], expiration: Optional[int]):
        """Store a referral redirect."""
        entry = await self.service.create_referral(
            b"",
            destination,
            id_param=id_param,
            source_param=src_param,
            ttl=self._ttl(expiration),
        )
        return self._ok(id=entry.id, url=entry.url, link=build_link(self.config.external_url, entry.id))

    async def resolve(self, identifier: str):
        """Print the redirect target of an entry."""
        url = await self.service.get_redirect(identifier)
        if url is None:
            return self._fail(f"'{identifier}' has no redirect")
        return self._ok(id=identifier, url=url)

    async def health(self):
        """Run the store round-trip probe."""
        healthy = await self.service.health_check()
        if not healthy:
            return self._fail("store round trip failed")
        return self._ok(status="healthy")

    def _ok(self, **fields) -> int:
        print(json.dumps({"success": True, **fields}, indent=2))
        return 0

    def _fail(self, error: str) -> int:
        print(json.dumps({"success": False, "error": error}, indent=2), file=sys.stderr)
        return 1


async def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="qui-vive entry store CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Store a payload read from stdin
  echo hello | %(prog)s put -

  # Store a redirect that never expires
  %(prog)s shorten https://example.com --expiration 0

  # Check the store
  %(prog)s health
        """
    )

    parser.add_argument(
        "--redis-hostname",
        default=None,
        help="Redis host[:port] (default: from REDIS_HOSTNAME / CACHE_TYPE env)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    put_parser = subparsers.add_parser("put", help="Store a payload")
    put_parser.add_argument("value", help="Payload, or - to read stdin")
    put_parser.add_argument("--id", dest="custom_id", help="Identifier to store under")
    put_parser.add_argument("--expiration", type=int, help="TTL in seconds (0 = never)")

    get_parser = subparsers.add_parser("get", help="Print a payload")
    get_parser.add_argument("id", help="Identifier")

    delete_parser = subparsers.add_parser("delete", help="Delete an entry")
    delete_parser.add_argument("id", help="Identifier")

    shorten_parser = subparsers.add_parser("shorten", help="Store a redirect")
    shorten_parser.add_argument("url", help="Destination URL")
    shorten_parser.add_argument("--expiration", type=int, help="TTL in seconds (0 = never)")

    refer_parser = subparsers.add_parser("refer", help="Store a referral redirect")
    refer_parser.add_argument("destination", help="Destination URL")
    refer_parser.add_argument("--id-param", help="Query parameter that receives the identifier")
    refer_parser.add_argument("--src-param", help="Query parameter that receives the service URL")
    refer_parser.add_argument("--expiration", type=int, help="TTL in seconds (0 = never)")

    resolve_parser = subparsers.add_parser("resolve", help="Print a redirect target")
    resolve_parser.add_argument("id", help="Identifier")

    subparsers.add_parser("health", help="Check the store")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    cli = QuiViveCLI(redis_hostname=args.redis_hostname, verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "put":
            return await cli.put(args.value, args.custom_id, args.expiration)
        elif args.command == "get":
            return await cli.get(args.id)
        elif args.command == "delete":
            return await cli.delete(args.id)
        elif args.command == "shorten":
            return await cli.shorten(args.url, args.expiration)
        elif args.command == "refer":
            return await cli.refer(args.destination, args.id_param, args.src_param, args.expiration)
        elif args.command == "resolve":
            return await cli.resolve(args.id)
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    except InvalidRequestError as e:
        return cli._fail(str(e))
    except QuiViveError as e:
        return cli._fail(f"Store error: {e}")
    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
