"""URL building utilities for qui-vive."""

import re
from urllib.parse import quote, urlsplit, urlunsplit, urlencode


def build_link(external_url: str, *segments: str) -> str:
    """Build the public link for an identifier.

    Args:
        external_url: Configured external base URL (e.g., https://example.com)
        segments: Path segments appended to the base

    Returns:
        Complete link, e.g. https://example.com/key/abc123
    """
    base = external_url.rstrip("/")
    path = "/".join(s.strip("/") for s in segments)
    return f"{base}/{path}"


def append_query_param(url: str, name: str, value: str) -> str:
    """Append a query parameter, keeping existing parameters and the fragment.

    Args:
        url: The destination URL
        name: Parameter name
        value: Parameter value (form-encoded)

    Returns:
        URL with the parameter appended
    """
    parts = urlsplit(url)
    pair = urlencode({name: value})
    query = f"{parts.query}&{pair}" if parts.query else pair
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


_AUTHORITY_END = re.compile(r"[/?#]")


def _quote_non_ascii(text: str) -> str:
    return "".join(c if c.isascii() else quote(c, safe="") for c in text)


def to_location(url: str) -> str:
    """Make a stored URL usable as a Location header value.

    ASCII URLs are returned unchanged. Otherwise a non-ASCII host is
    IDNA-encoded and every other non-ASCII character is percent-encoded as
    UTF-8. Characters that are already ASCII are never touched.

    Args:
        url: Stored destination URL

    Returns:
        ASCII-only URL
    """
    if url.isascii():
        return url

    scheme, sep, rest = url.partition("://")
    if not sep:
        return _quote_non_ascii(url)

    match = _AUTHORITY_END.search(rest)
    end = match.start() if match else len(rest)
    authority, tail = rest[:end], rest[end:]

    userinfo, at, hostport = authority.rpartition("@")
    host, colon, port = hostport.partition(":")
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError:
            host = _quote_non_ascii(host)

    return "".join((
        _quote_non_ascii(scheme), sep,
        _quote_non_ascii(userinfo), at,
        host, colon, _quote_non_ascii(port),
        _quote_non_ascii(tail),
    ))
