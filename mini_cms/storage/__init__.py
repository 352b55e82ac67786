"""
Article persistence.

This package contains the per-file record store and the in-memory index
derived from it.
"""

from .index import ArticleIndex, RebuildIssue
from .record_store import RecordStore

__all__ = ["ArticleIndex", "RebuildIssue", "RecordStore"]
