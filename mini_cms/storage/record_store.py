"""Record store for per-article JSON files.

Each article lives in its own file named ``{key}.json`` inside the articles
directory, where the key is the slug of the article title. The store has no
in-memory state: every call goes to the filesystem.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from mini_cms.core.errors import Conflict, DecodeError, NotFound, StoreIOError
from mini_cms.core.keys import validate_key
from mini_cms.core.types import Article

RECORD_SUFFIX = ".json"
_TEMP_PREFIX = ".tmp-"


class RecordStore:
    """Reads and writes serialized Articles, one file per key."""

    def __init__(self, articles_dir: Path):
        """Initialize the RecordStore.

        Args:
            articles_dir: Directory holding the article records; created if missing
        """
        self._articles_dir = Path(articles_dir)
        try:
            self._articles_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise StoreIOError(f"cannot create articles directory {self._articles_dir}: {err}") from err

    @property
    def articles_dir(self) -> Path:
        return self._articles_dir

    def path_for(self, key: str) -> Path:
        """Returns path to the record file for a key."""
        return self._articles_dir / f"{validate_key(key)}{RECORD_SUFFIX}"

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def write(self, key: str, article: Article) -> None:
        """Write or overwrite the record at key.

        The record is written to a temporary file first and moved into place,
        so readers see either the old or the new content.

        Raises:
            StoreIOError: On filesystem failure
        """
        path = self.path_for(key)
        tmp_name = self._stage(key, article)
        try:
            os.replace(tmp_name, path)
        except OSError as err:
            _discard(tmp_name)
            raise StoreIOError(f"cannot write record {key!r}: {err}", key=key) from err

    def create(self, key: str, article: Article) -> None:
        """Write a new record, failing if one already exists at key.

        The full record is staged in a temporary file and then hard-linked
        under its final name, so the record appears complete or not at all.

        Raises:
            Conflict: If a record already exists at key
            StoreIOError: On filesystem failure
        """
        path = self.path_for(key)
        tmp_name = self._stage(key, article)
        try:
            os.link(tmp_name, path)
        except FileExistsError as err:
            raise Conflict(f"record {key!r} already exists", key=key) from err
        except OSError as err:
            raise StoreIOError(f"cannot create record {key!r}: {err}", key=key) from err
        finally:
            _discard(tmp_name)

    def _stage(self, key: str, article: Article) -> str:
        """Write the encoded record to a temporary file beside the records."""
        payload = _encode(article)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, suffix=RECORD_SUFFIX, dir=self._articles_dir)
        except OSError as err:
            raise StoreIOError(f"cannot write record {key!r}: {err}", key=key) from err
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
        except OSError as err:
            _discard(tmp_name)
            raise StoreIOError(f"cannot write record {key!r}: {err}", key=key) from err
        return tmp_name

    def read(self, key: str) -> Article:
        """Read and decode the record at key.

        Raises:
            NotFound: If no record exists at key
            DecodeError: If the record is corrupt
            StoreIOError: On other filesystem failure
        """
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as err:
            raise NotFound(f"no article stored under {key!r}", key=key) from err
        except UnicodeDecodeError as err:
            raise DecodeError(f"record {key!r} is not valid UTF-8", key=key) from err
        except OSError as err:
            raise StoreIOError(f"cannot read record {key!r}: {err}", key=key) from err
        try:
            return Article.from_record(json.loads(raw))
        except ValueError as err:
            # json.JSONDecodeError is a ValueError too
            raise DecodeError(f"record {key!r} is corrupt: {err}", key=key) from err

    def delete(self, key: str) -> None:
        """Remove the record at key.

        Raises:
            NotFound: If no record exists at key
            StoreIOError: On other filesystem failure
        """
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError as err:
            raise NotFound(f"no article stored under {key!r}", key=key) from err
        except OSError as err:
            raise StoreIOError(f"cannot delete record {key!r}: {err}", key=key) from err

    def rename(self, old_key: str, new_key: str) -> None:
        """Move the record at old_key to new_key without overwriting.

        A hard link is made under the new name before the old name is
        removed, so the move fails atomically if new_key is taken.

        Raises:
            NotFound: If no record exists at old_key
            Conflict: If a record already exists at new_key
            StoreIOError: On other filesystem failure
        """
        old_path = self.path_for(old_key)
        new_path = self.path_for(new_key)
        if old_path == new_path:
            if not old_path.is_file():
                raise NotFound(f"no article stored under {old_key!r}", key=old_key)
            return
        try:
            os.link(old_path, new_path)
        except FileExistsError as err:
            raise Conflict(f"record {new_key!r} already exists", key=new_key) from err
        except FileNotFoundError as err:
            raise NotFound(f"no article stored under {old_key!r}", key=old_key) from err
        except OSError as err:
            raise StoreIOError(f"cannot rename {old_key!r} to {new_key!r}: {err}", key=old_key) from err
        try:
            old_path.unlink()
        except OSError as err:
            _discard(new_path)
            raise StoreIOError(f"cannot rename {old_key!r} to {new_key!r}: {err}", key=old_key) from err

    def list_keys(self) -> list[str]:
        """Return the keys of all stored records, sorted.

        Raises:
            StoreIOError: If the articles directory cannot be listed
        """
        try:
            names = os.listdir(self._articles_dir)
        except OSError as err:
            raise StoreIOError(f"cannot list {self._articles_dir}: {err}") from err
        keys = []
        for name in names:
            if name.startswith(_TEMP_PREFIX) or not name.endswith(RECORD_SUFFIX):
                continue
            keys.append(name[: -len(RECORD_SUFFIX)])
        return sorted(keys)


def _encode(article: Article) -> str:
    return json.dumps(article.to_record(), indent=2, ensure_ascii=False)


def _discard(path: str | Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
