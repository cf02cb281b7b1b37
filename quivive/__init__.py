"""Core logic for the qui-vive entry service."""

from .idgen import IdGenerator
from .entry import Entry
from .service import EntryService

__all__ = ["IdGenerator", "Entry", "EntryService"]
