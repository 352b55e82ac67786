"""
In-memory article index.

The index is a derived view of the record store: every stored article with
its body text stripped, sorted by creation time. It is only ever replaced
wholesale by ``rebuild()``; there is no incremental update path, which keeps
it trivially consistent with the store for the small number of articles a
site like this holds.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from mini_cms.core.errors import CmsError, DecodeError, InvalidInput, NotFound, StoreIOError
from mini_cms.core.types import Article
from mini_cms.storage.record_store import RecordStore
from mini_cms.utils.logging import log_event


@dataclass(frozen=True)
class RebuildIssue:
    """A record skipped during rebuild.

    Attributes:
        key: Key of the skipped record
        error: The error raised while reading it
    """

    key: str
    error: CmsError


class ArticleIndex:
    """Lock-guarded, body-stripped list of all stored articles."""

    def __init__(self, store: RecordStore, logger: logging.Logger | None = None):
        self._store = store
        self._logger = logger or logging.getLogger("mini_cms.index")
        self._lock = threading.Lock()
        self._entries: tuple[Article, ...] = ()
        self._issues: tuple[RebuildIssue, ...] = ()

    def rebuild(self) -> list[RebuildIssue]:
        """Reload every record from the store and replace the index.

        Unreadable records are skipped and reported instead of aborting the
        rebuild. If the store cannot be listed at all, the error propagates
        and the previous index is kept.

        Returns:
            Issues for the records that were skipped
        """
        keys = self._store.list_keys()
        entries: list[Article] = []
        issues: list[RebuildIssue] = []
        for key in keys:
            try:
                article = self._store.read(key)
            except (DecodeError, NotFound, InvalidInput, StoreIOError) as err:
                issues.append(RebuildIssue(key=key, error=err))
                self._logger.warning(
                    "Skipping unreadable record %s: %s",
                    key,
                    err,
                    extra={"event": "index_record_skipped", "key": key, "error_type": type(err).__name__},
                )
                continue
            entries.append(article.stripped())
        # sorted() is stable, so equal timestamps keep key order
        entries = sorted(entries, key=lambda item: item.created)

        with self._lock:
            self._entries = tuple(entries)
            self._issues = tuple(issues)

        log_event(
            self._logger,
            "Index rebuilt",
            event="index_rebuilt",
            articles=len(entries),
            skipped=len(issues),
        )
        return issues

    def snapshot(self) -> tuple[Article, ...]:
        """Return the current index, oldest article first."""
        with self._lock:
            return self._entries

    @property
    def issues(self) -> tuple[RebuildIssue, ...]:
        with self._lock:
            return self._issues

    def __len__(self) -> int:
        return len(self.snapshot())
