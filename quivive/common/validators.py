"""Validation utilities for qui-vive."""

import re
import uuid
from enum import Enum
from typing import Tuple
from urllib.parse import urlsplit


# Shape of every identifier accepted in a path segment
ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class CustomIdPolicy(str, Enum):
    """Whether callers may pick their own identifier on ``POST /key/{id}``."""

    REJECT_ALL = "none"
    REQUIRE_UUID = "uuid"
    ACCEPT_ALL = "all"


def is_valid_id(identifier: str) -> bool:
    """Check that an identifier only uses letters, digits, '-' and '_'."""
    return ID_PATTERN.fullmatch(identifier) is not None


def is_canonical_uuid(value: str) -> bool:
    """Check for the hyphenated 8-4-4-4-12 UUID form (case-insensitive)."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def is_valid_custom_id(identifier: str, policy: CustomIdPolicy) -> Tuple[bool, str]:
    """Validate a caller-supplied identifier against the custom-id policy.

    Args:
        identifier: The requested identifier
        policy: Configured custom-id policy

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not is_valid_id(identifier):
        return False, "Identifier can only contain letters, numbers, hyphens, and underscores"

    if policy == CustomIdPolicy.REJECT_ALL:
        return False, "Custom identifiers are not enabled"

    if policy == CustomIdPolicy.REQUIRE_UUID and not is_canonical_uuid(identifier):
        return False, "Custom identifiers must be UUIDs"

    return True, ""


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a redirect destination.

    Any scheme is accepted as long as the URL is absolute.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url:
        return False, "URL is required"

    if any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    if any(ord(c) < 0x20 or c == "\x7f" for c in url):
        return False, "URL must not contain control characters"

    try:
        result = urlsplit(url)
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if not result.scheme:
        return False, "URL must have a scheme"

    if not result.netloc:
        return False, "URL must have a host"

    return True, ""
