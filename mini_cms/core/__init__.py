"""
Core domain models and business logic.

This package contains data types, the error taxonomy and key derivation
that are independent of storage and presentation.
"""

from .errors import CmsError, Conflict, DecodeError, InvalidInput, NotFound, StoreIOError
from .keys import slugify, title_key, validate_key
from .types import Article, format_timestamp, parse_timestamp, utc_now

__all__ = [
    "Article",
    "CmsError",
    "Conflict",
    "DecodeError",
    "InvalidInput",
    "NotFound",
    "StoreIOError",
    "format_timestamp",
    "parse_timestamp",
    "slugify",
    "title_key",
    "utc_now",
    "validate_key",
]
