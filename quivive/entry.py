"""Data model for stored entries."""

import json
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Entry:
    """A stored record, keyed by its identifier.

    Key entries carry ``val`` and leave ``url`` empty. URL and referral
    entries carry ``url``; an empty ``url`` means the entry never redirects.
    """

    id: str
    val: str = ""
    url: str = ""

    @property
    def is_redirect(self) -> bool:
        return bool(self.url)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            val=data.get("val", ""),
            url=data.get("url", ""),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> "Entry":
        return cls.from_dict(json.loads(raw))
