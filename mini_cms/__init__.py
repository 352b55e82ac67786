"""
Mini CMS - a small file-backed article server.

This package stores short articles as individual JSON records, keeps an
in-memory index of them, and serves them as HTML with an admin-only
editor protected by HTTP basic auth.

Main entry point is the CLI via `mini-cms serve` command.

Example:
    $ mini-cms serve -c config.yaml
"""

__all__ = ["__version__", "Article", "ArticleIndex", "RecordStore", "Repository", "title_key"]
__version__ = "0.1.0"

from .core.keys import title_key
from .core.types import Article
from .repository import Repository
from .storage.index import ArticleIndex
from .storage.record_store import RecordStore
