"""Common utilities for qui-vive."""

from .validators import CustomIdPolicy, is_valid_id, is_valid_custom_id, is_valid_url
from .headers import resolve_expiration, first_header
from .url_builder import build_link, append_query_param, to_location
from .logging_config import setup_logging

__all__ = [
    "CustomIdPolicy",
    "is_valid_id",
    "is_valid_custom_id",
    "is_valid_url",
    "resolve_expiration",
    "first_header",
    "build_link",
    "append_query_param",
    "to_location",
    "setup_logging",
]
