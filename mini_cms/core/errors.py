"""Error taxonomy shared by the record store, index and repository."""

from __future__ import annotations


class CmsError(Exception):
    """Base class for article repository failures.

    Attributes:
        key: Storage key the failure relates to, when known
    """

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class InvalidInput(CmsError):
    """Empty or malformed title or key."""


class NotFound(CmsError):
    """No record exists at the key."""


class Conflict(CmsError):
    """A record already exists at the target key."""


class DecodeError(CmsError):
    """A stored record could not be decoded."""


class StoreIOError(CmsError, OSError):
    """Filesystem failure while reading or changing a record."""
