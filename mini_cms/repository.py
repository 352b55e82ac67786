"""
Article repository.

The repository is the only entry point the web layer uses. It enforces title
uniqueness and timestamp discipline on top of the record store, and rebuilds
the index after every successful change so listings always match the disk.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from .core.errors import CmsError, InvalidInput, StoreIOError
from .core.keys import title_key
from .core.types import Article, utc_now
from .storage.index import ArticleIndex, RebuildIssue
from .storage.record_store import RecordStore
from .utils.logging import log_event


class Repository:
    """Create, read, edit and delete articles.

    Mutations are serialized with a lock. Creation uses the store's
    exclusive create, so a duplicate title is rejected even when two
    requests race.
    """

    def __init__(
        self,
        store: RecordStore,
        index: ArticleIndex,
        clock: Callable[[], datetime] = utc_now,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._index = index
        self._clock = clock
        self._logger = logger or logging.getLogger("mini_cms.repository")
        self._write_lock = threading.Lock()

    @property
    def index(self) -> ArticleIndex:
        return self._index

    def load(self) -> list[RebuildIssue]:
        """Build the index from the store at startup."""
        return self._index.rebuild()

    def articles(self) -> tuple[Article, ...]:
        """Return all articles without body text, oldest first."""
        return self._index.snapshot()

    def get(self, title: str) -> Article:
        """Return the stored article for a title.

        Raises:
            InvalidInput: If the title is empty
            NotFound: If no such article exists
        """
        return self._store.read(title_key(title))

    def create(self, title: str, author: str, text: str, description: str = "") -> Article:
        """Store a new article.

        Raises:
            InvalidInput: If the title is empty
            Conflict: If an article with the same key already exists
            StoreIOError: On filesystem failure
        """
        title = _clean_title(title)
        key = title_key(title)
        now = self._now()
        article = Article(
            title=title,
            author=author,
            description=description,
            text=text,
            created=now,
            updated=now,
        )
        with self._write_lock:
            _with_context("create", lambda: self._store.create(key, article))
            self._index.rebuild()
        log_event(self._logger, "Article created", event="article_created", key=key, author=author)
        return article

    def edit(
        self,
        original_title: str,
        new_title: str,
        author: str,
        text: str,
        description: str | None = None,
    ) -> Article:
        """Replace an article's content, renaming it if the title changes.

        The creation time is preserved and the update time refreshed. When
        the new title maps to a different key, the edited record is created
        under the new key and only then is the old record removed. If the
        removal fails the new copy is discarded, leaving the original record
        in place.

        Raises:
            InvalidInput: If either title is empty
            NotFound: If original_title does not exist
            Conflict: If the new title is taken by another article
            StoreIOError: On filesystem failure
        """
        old_key = title_key(original_title)
        new_title = _clean_title(new_title)
        new_key = title_key(new_title)

        with self._write_lock:
            current = _with_context("edit", lambda: self._store.read(old_key))
            edited = replace(
                current,
                title=new_title,
                author=author,
                text=text,
                description=current.description if description is None else description,
                updated=max(self._now(), current.updated),
            )
            if new_key == old_key:
                _with_context("edit", lambda: self._store.write(old_key, edited))
            else:
                _with_context("edit", lambda: self._store.create(new_key, edited))
                try:
                    self._store.delete(old_key)
                except CmsError as err:
                    self._discard_copy(new_key)
                    raise StoreIOError(f"edit: {err}", key=old_key) from err
            self._index.rebuild()

        if new_key != old_key:
            log_event(
                self._logger,
                "Article renamed",
                event="article_renamed",
                key=new_key,
                previous_key=old_key,
            )
        log_event(self._logger, "Article edited", event="article_edited", key=new_key, author=author)
        return edited

    def delete(self, title: str) -> None:
        """Remove an article.

        Raises:
            NotFound: If no such article exists
            StoreIOError: On filesystem failure
        """
        key = title_key(title)
        with self._write_lock:
            _with_context("delete", lambda: self._store.delete(key))
            self._index.rebuild()
        log_event(self._logger, "Article deleted", event="article_deleted", key=key)

    def _discard_copy(self, key: str) -> None:
        try:
            self._store.delete(key)
        except CmsError as err:
            self._logger.error(
                "Could not remove %r after a failed rename: %s",
                key,
                err,
                extra={"event": "rename_cleanup_failed", "key": key},
            )

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise InvalidInput("title must not be empty")
    return cleaned


def _with_context(operation: str, call):
    """Run a store call, prefixing any repository error with the operation."""
    try:
        return call()
    except CmsError as err:
        raise type(err)(f"{operation}: {err}", key=err.key) from err
