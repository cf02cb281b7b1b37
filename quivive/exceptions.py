"""Exceptions raised by the qui-vive core.

Routes translate these into HTTP status codes:

    InvalidRequestError    -> 400
    PayloadTooLargeError   -> 413
    StoreError             -> 500 (503 for the health probe)

ConfigurationError is only raised while the process starts up.
"""


class QuiViveError(Exception):
    """Base class for qui-vive errors."""

    pass


class InvalidRequestError(QuiViveError, ValueError):
    """The client sent something we refuse to store."""

    pass


class PayloadTooLargeError(InvalidRequestError):
    """The request body exceeds the configured maximum value size."""

    def __init__(self, limit: int):
        super().__init__(f"Payload exceeds {limit} bytes")
        self.limit = limit


class StoreError(QuiViveError):
    """The entry store failed (connection issues, timeouts, corrupt data, etc.)."""

    pass


class ConfigurationError(QuiViveError, ValueError):
    """Invalid configuration detected at startup."""

    pass
