"""Configuration management for qui-vive."""

from typing import Optional, Tuple
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from quivive.common.validators import CustomIdPolicy, ID_PATTERN
from quivive.exceptions import ConfigurationError
from quivive.idgen import DEFAULT_ID_CHARSET, DEFAULT_ID_LENGTH


class Config(BaseSettings):
    """Application configuration."""

    # Server settings
    external_url: str = Field(
        default="http://127.0.0.1:8080",
        description="Public base URL used to build returned links"
    )

    listener_url: str = Field(
        default="http://0.0.0.0:8080",
        description="Address to listen on, e.g. http://0.0.0.0:8080"
    )

    # Store settings
    cache_type: str = Field(
        default="memory",
        description="Entry store backend (memory or redis)"
    )

    redis_hostname: Optional[str] = Field(
        default=None,
        description="Redis hostname, optionally with :port"
    )

    redis_password: Optional[str] = Field(
        default=None,
        description="Redis password"
    )

    redis_db: int = Field(
        default=0,
        ge=0,
        description="Redis database number"
    )

    sweep_interval: int = Field(
        default=60,
        ge=1,
        description="Seconds between expired-entry sweeps of the memory store"
    )

    # Entry settings
    id_length: int = Field(
        default=DEFAULT_ID_LENGTH,
        ge=1,
        description="Length of generated identifiers"
    )

    id_charset: str = Field(
        default=DEFAULT_ID_CHARSET,
        min_length=1,
        description="Alphabet of generated identifiers"
    )

    custom_id_format: CustomIdPolicy = Field(
        default=CustomIdPolicy.REJECT_ALL,
        description="Caller-supplied identifiers: none, uuid or all"
    )

    default_expiration: Optional[int] = Field(
        default=86400,
        description="Default entry TTL in seconds (0 = no expiration)"
    )

    max_value_size: int = Field(
        default=65536,
        ge=0,
        description="Maximum accepted request body in bytes"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @field_validator("id_charset")
    @classmethod
    def validate_id_charset(cls, v: str) -> str:
        """Generated identifiers must be routable."""
        if not ID_PATTERN.fullmatch(v):
            raise ValueError("id_charset may only contain letters, digits, '-' and '_'")
        return v

    @field_validator("default_expiration")
    @classmethod
    def validate_default_expiration(cls, v: Optional[int]) -> Optional[int]:
        """Map 0 to no expiration."""
        if v is not None and v < 0:
            raise ValueError("default_expiration must not be negative")
        return v or None

    def listener_address(self) -> Tuple[str, int]:
        """Host and port to bind to.

        Raises:
            ConfigurationError: If listener_url cannot be parsed
        """
        url = self.listener_url if "://" in self.listener_url else f"http://{self.listener_url}"
        try:
            parsed = urlsplit(url)
            port = parsed.port or 80
        except ValueError as e:
            raise ConfigurationError(f"Invalid listener_url '{self.listener_url}': {e}") from e

        if not parsed.hostname:
            raise ConfigurationError(f"Invalid listener_url '{self.listener_url}': missing host")

        return parsed.hostname, port

    def redis_address(self) -> Tuple[str, int]:
        """Redis host and port (port defaults to 6379).

        Raises:
            ConfigurationError: If redis_hostname is missing or has a bad port
        """
        if not self.redis_hostname:
            raise ConfigurationError("redis_hostname is not set")

        host, sep, port = self.redis_hostname.rpartition(":")
        if not sep:
            return self.redis_hostname, 6379
        if not port.isdigit():
            raise ConfigurationError(f"Invalid redis_hostname '{self.redis_hostname}'")
        return host, int(port)


def load_config(**overrides) -> Config:
    """Load configuration from environment, with explicit overrides on top."""
    return Config(**overrides)
