"""Storage key derivation.

Every article is stored under a key derived from its title. The key doubles
as the file stem on disk and as the path segment in article URLs, so it is
restricted to lowercase ASCII letters, digits and hyphens.
"""

from __future__ import annotations

import re

from .errors import InvalidInput

MAX_KEY_LENGTH = 80

_KEY_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(text: str) -> str:
    """Convert text to URL-safe slug.

    Args:
        text: The text to slugify

    Returns:
        A lowercase, hyphenated slug limited to MAX_KEY_LENGTH characters,
        or an empty string if the text has no slug characters
    """
    slug = text.lower()
    # Replace non-alphanumeric characters with hyphens
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    slug = slug[:MAX_KEY_LENGTH].rstrip("-")
    return slug


def title_key(title: str) -> str:
    """Return the storage key for a title.

    Raises:
        InvalidInput: If the title is empty or has no slug characters
    """
    if not title or not title.strip():
        raise InvalidInput("title must not be empty")
    key = slugify(title)
    if not key:
        raise InvalidInput(f"title {title!r} has no usable characters")
    return key


def validate_key(key: str) -> str:
    """Check that a key is already in slug form and return it unchanged."""
    if not key or len(key) > MAX_KEY_LENGTH or not _KEY_RE.match(key):
        raise InvalidInput(f"invalid record key {key!r}", key=key)
    return key
