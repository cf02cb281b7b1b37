"""Request and response header handling for qui-vive."""

from typing import Mapping, Optional, Sequence


# Request headers. The QuiVive-* spellings are accepted as aliases.
EXPIRATION_HEADER = "QuiVive-Expiration"
DESTINATION_URL_HEADERS = ("Destination-Url", "QuiVive-DstUrl")
ID_PARAM_HEADERS = ("Id-Param-Name", "QuiVive-IdParam")
SOURCE_PARAM_HEADERS = ("Source-Param-Name", "QuiVive-SrcParam")

# Headers added to responses that echo stored or generated content
NO_INDEX_HEADERS = {
    "X-Robots-Tag": "noindex",
    "X-Content-Type-Options": "nosniff",
}

# Largest expiration accepted from a request, in seconds
MAX_EXPIRATION = 2 ** 32 - 1


def first_header(headers: Mapping[str, str], names: Sequence[str]) -> Optional[str]:
    """Return the value of the first header present among ``names``.

    Args:
        headers: Request headers (case-insensitive mapping)
        names: Header names in order of preference

    Returns:
        Header value or None
    """
    for name in names:
        value = headers.get(name)
        if value is not None:
            return value
    return None


def resolve_expiration(value: Optional[str], default: Optional[int]) -> Optional[int]:
    """Resolve the TTL for a write from the expiration header.

    ``0`` disables expiration. A missing, negative, non-numeric or out of
    range value (above MAX_EXPIRATION) falls back to the configured default.

    Args:
        value: Raw expiration header value
        default: Configured default expiration in seconds (None = never)

    Returns:
        TTL in seconds, or None for no expiration
    """
    if value is not None:
        value = value.strip()
        digits = value.lstrip("0") or "0"
        if value.isascii() and value.isdigit() and len(digits) <= len(str(MAX_EXPIRATION)):
            seconds = int(digits)
            if seconds <= MAX_EXPIRATION:
                return seconds if seconds > 0 else None
    return default
