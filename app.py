#!/usr/bin/env python3
"""
Main entry point for the qui-vive service.

Concurrency: a single asyncio event loop serves every connection (FastAPI +
uvicorn). The entry store is shared by all requests and synchronizes itself.

Usage:
    python app.py [--listener-url URL] [--external-url URL] [--cache-type memory|redis] ...

Environment variables (overridden by the matching command-line flags):
    EXTERNAL_URL - Base URL used to build returned links
    LISTENER_URL - Address to listen on
    CACHE_TYPE - Entry store backend (memory or redis)
    REDIS_HOSTNAME - Redis host[:port]
    REDIS_PASSWORD - Redis password
    ID_LENGTH - Length of generated identifiers
    ID_CHARSET - Alphabet of generated identifiers
    CUSTOM_ID_FORMAT - Caller-supplied identifiers: none, uuid or all
    DEFAULT_EXPIRATION - Default entry TTL in seconds (0 = none)
    MAX_VALUE_SIZE - Maximum accepted body in bytes
    LOG_LEVEL - Logging level
"""

import argparse
import asyncio
import signal
import sys
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from config import Config, load_config
from quivive.exceptions import ConfigurationError
from quivive.idgen import IdGenerator
from quivive.service import EntryService
from quivive.store import MemoryEntryStore, RedisEntryStore, create_store
from quivive.common.logging_config import setup_logging
from web_app import create_app


async def sweep_expired(store: MemoryEntryStore, interval: int, logger) -> None:
    """Periodically drop expired entries from the memory store."""
    while True:
        await asyncio.sleep(interval)
        removed = store.purge_expired()
        if removed:
            logger.info(f"Expired {removed} entries")


def build_service(config: Config, store, logger) -> EntryService:
    """Wire the entry service from configuration."""
    generator = IdGenerator(
        id_length=config.id_length,
        id_charset=config.id_charset,
    )
    return EntryService(
        store=store,
        id_generator=generator,
        external_url=config.external_url,
        default_expiration=config.default_expiration,
        max_value_size=config.max_value_size,
        custom_id_policy=config.custom_id_format,
        logger=logger,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger
    store = app.state.store
    service = app.state.service

    logger.info("Starting qui-vive...")

    if isinstance(store, RedisEntryStore):
        logger.info(f"Connecting to Redis at {store.host}:{store.port}")
        await store.connect()
    else:
        logger.info("Using in-memory entry store")

    sweeper = None
    if isinstance(store, MemoryEntryStore):
        sweeper = asyncio.create_task(sweep_expired(store, config.sweep_interval, logger))

    logger.info(f"Service started, links point to {config.external_url}")

    yield

    logger.info("Shutting down qui-vive...")

    if sweeper:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper

    await service.close()

    logger.info("Service stopped")


def parse_args(argv=None) -> dict:
    """Parse command-line flags into Config overrides (unset flags are omitted)."""
    parser = argparse.ArgumentParser(
        description="qui-vive: ephemeral key/value and URL redirection service",
    )
    parser.add_argument("--listener-url", help="Address to listen on (e.g. http://0.0.0.0:8080)")
    parser.add_argument("--external-url", help="Public base URL used in returned links")
    parser.add_argument("--cache-type", choices=["memory", "redis"], help="Entry store backend")
    parser.add_argument("--redis-hostname", help="Redis host[:port]")
    parser.add_argument("--redis-password", help="Redis password")
    parser.add_argument("--id-length", type=int, help="Length of generated identifiers")
    parser.add_argument("--id-charset", help="Alphabet of generated identifiers")
    parser.add_argument(
        "--custom-id-format",
        choices=["none", "uuid", "all"],
        help="Caller-supplied identifiers: none, uuid or all",
    )
    parser.add_argument("--default-expiration", type=int, help="Default TTL in seconds (0 = none)")
    parser.add_argument("--max-value-size", type=int, help="Maximum accepted body in bytes")
    parser.add_argument("--log-level", help="Logging level")

    args = parser.parse_args(argv)
    return {key: value for key, value in vars(args).items() if value is not None}


def main(argv=None):
    """Main entry point."""
    try:
        config = load_config(**parse_args(argv))
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("qui-vive")
    logger.info(f"Configuration: {config.model_dump(exclude={'redis_password'})}")

    try:
        host, port = config.listener_address()
        store = create_store(config, logger=logger)
        service = build_service(config, store, logger)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    # Redis is connected in lifespan
    app = create_app(
        store_instance=store,
        service_instance=service,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=config.log_level.lower(),
        access_log=False,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Listening on {host}:{port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
