"""
Core data types for the article repository.

This module defines the Article record and the timestamp encoding used by
stored records. Timestamps are RFC 3339 strings in UTC, e.g.
``2024-05-01T12:00:00.123456Z``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|z|[+-]\d{2}:\d{2})?$"
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime as an RFC 3339 UTC string with a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Decode an RFC 3339 timestamp into an aware UTC datetime.

    Fractional seconds of any precision are accepted and truncated to
    microseconds. A missing offset is read as UTC.

    Raises:
        ValueError: If the text is not a timestamp
    """
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    frac = (match.group("frac") or "")[:6].ljust(6, "0")
    tz = match.group("tz") or "+00:00"
    if tz in ("Z", "z"):
        tz = "+00:00"
    parsed = datetime.fromisoformat(f"{match.group('base').replace(' ', 'T')}.{frac}{tz}")
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Article:
    """A single article with metadata and body text.

    Attributes:
        title: The article headline, also the source of its storage key
        author: Author name
        description: Short teaser shown in listings
        text: Body text; empty for index entries
        created: When the article was first created (UTC)
        updated: When the article was last edited (UTC)
    """

    title: str
    author: str
    description: str
    text: str
    created: datetime
    updated: datetime

    def stripped(self) -> Article:
        """Return a copy without body text, as kept in the index."""
        return replace(self, text="")

    def to_record(self) -> dict[str, Any]:
        return {
            "Title": self.title,
            "Author": self.author,
            "Description": self.description,
            "Text": self.text,
            "Created": format_timestamp(self.created),
            "Updated": format_timestamp(self.updated),
        }

    @classmethod
    def from_record(cls, data: Any) -> Article:
        """Build an Article from a decoded record object.

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("record is not an object")
        fields: dict[str, str] = {}
        for name in ("Title", "Author", "Text", "Created", "Updated"):
            value = data.get(name)
            if not isinstance(value, str):
                raise ValueError(f"field {name} missing or not a string")
            fields[name] = value
        description = data.get("Description", "")
        if not isinstance(description, str):
            raise ValueError("field Description is not a string")
        return cls(
            title=fields["Title"],
            author=fields["Author"],
            description=description,
            text=fields["Text"],
            created=parse_timestamp(fields["Created"]),
            updated=parse_timestamp(fields["Updated"]),
        )
