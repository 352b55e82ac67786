"""Tests for RecordStore class."""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from mini_cms.core.errors import Conflict, DecodeError, InvalidInput, NotFound, StoreIOError
from mini_cms.core.keys import slugify, title_key
from mini_cms.core.types import Article
from mini_cms.storage.record_store import RecordStore


def _article(title="Hello World", text="body text"):
    ts = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    return Article(
        title=title,
        author="alice",
        description="teaser",
        text=text,
        created=ts,
        updated=ts,
    )


def test_slugify_title():
    """Titles should map to lowercase hyphenated keys"""
    assert slugify("OpenAI Codex App Launch") == "openai-codex-app-launch"
    assert slugify("  Hello,   World!  ") == "hello-world"
    assert slugify("!!!") == ""
    assert len(slugify("word " * 40)) <= 80


def test_title_key_rejects_empty():
    """Empty or symbol-only titles should be invalid"""
    with pytest.raises(InvalidInput):
        title_key("")
    with pytest.raises(InvalidInput):
        title_key("   ")
    with pytest.raises(InvalidInput):
        title_key("???")


def test_creates_articles_dir(tmp_path):
    """Store should create its directory if missing"""
    target = tmp_path / "nested" / "articles"
    RecordStore(target)
    assert target.is_dir()


def test_write_and_read_round_trip(tmp_path):
    """Written records should read back unchanged"""
    store = RecordStore(tmp_path)
    article = _article()

    store.write("hello-world", article)

    assert store.read("hello-world") == article
    assert (tmp_path / "hello-world.json").exists()


def test_record_uses_field_tags(tmp_path):
    """Records should be JSON objects with capitalized field tags"""
    store = RecordStore(tmp_path)
    store.write("hello-world", _article())

    data = json.loads((tmp_path / "hello-world.json").read_text(encoding="utf-8"))

    assert set(data) == {"Title", "Author", "Description", "Text", "Created", "Updated"}
    assert data["Created"] == "2024-05-01T12:00:00.123456Z"


def test_reads_records_with_nanosecond_timestamps(tmp_path):
    """Records with high-precision offsets and no Description should load"""
    (tmp_path / "legacy.json").write_text(
        json.dumps(
            {
                "Title": "legacy",
                "Author": "bob",
                "Text": "old body",
                "Created": "2024-03-10T08:15:30.123456789+02:00",
                "Updated": "2024-03-10T08:15:30Z",
            }
        ),
        encoding="utf-8",
    )
    store = RecordStore(tmp_path)

    article = store.read("legacy")

    assert article.description == ""
    assert article.created == datetime(2024, 3, 10, 6, 15, 30, 123456, tzinfo=timezone.utc)
    assert article.updated.tzinfo is not None


def test_write_overwrites(tmp_path):
    """write should replace existing content"""
    store = RecordStore(tmp_path)
    store.write("hello-world", _article(text="first"))
    store.write("hello-world", _article(text="second"))

    assert store.read("hello-world").text == "second"
    assert store.list_keys() == ["hello-world"]


def test_create_conflicts_on_existing(tmp_path):
    """create should refuse to overwrite"""
    store = RecordStore(tmp_path)
    store.create("hello-world", _article(text="original"))

    with pytest.raises(Conflict):
        store.create("hello-world", _article(text="intruder"))

    assert store.read("hello-world").text == "original"
    assert os.listdir(tmp_path) == ["hello-world.json"]


def test_create_publishes_only_complete_records(tmp_path, monkeypatch):
    """The record name should appear only once the whole payload is on disk"""
    store = RecordStore(tmp_path)
    real_link = os.link
    seen = []

    def checking_link(src, dst):
        assert not Path(dst).exists()
        seen.append(json.loads(Path(src).read_text(encoding="utf-8")))
        real_link(src, dst)

    monkeypatch.setattr(os, "link", checking_link)

    store.create("hello-world", _article(text="x" * 100_000))

    assert seen[0]["Text"] == "x" * 100_000
    assert os.listdir(tmp_path) == ["hello-world.json"]


def test_create_failure_leaves_nothing_behind(tmp_path, monkeypatch):
    """A failed create should leave neither a record nor a temp file"""
    store = RecordStore(tmp_path)

    def failing_link(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr(os, "link", failing_link)

    with pytest.raises(StoreIOError):
        store.create("hello-world", _article())

    assert os.listdir(tmp_path) == []


def test_read_missing(tmp_path):
    """Missing records should raise NotFound"""
    store = RecordStore(tmp_path)
    with pytest.raises(NotFound) as excinfo:
        store.read("nothing-here")
    assert excinfo.value.key == "nothing-here"


def test_read_corrupt(tmp_path):
    """Undecodable records should raise DecodeError"""
    store = RecordStore(tmp_path)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "partial.json").write_text(json.dumps({"Title": "partial"}), encoding="utf-8")
    (tmp_path / "bad-time.json").write_text(
        json.dumps(
            {
                "Title": "bad time",
                "Author": "a",
                "Text": "t",
                "Created": "yesterday",
                "Updated": "yesterday",
            }
        ),
        encoding="utf-8",
    )

    for key in ("broken", "partial", "bad-time"):
        with pytest.raises(DecodeError):
            store.read(key)


def test_invalid_keys_rejected(tmp_path):
    """Keys must already be slugs"""
    store = RecordStore(tmp_path)
    for key in ("", "../escape", "Upper", "a b"):
        with pytest.raises(InvalidInput):
            store.read(key)


def test_delete(tmp_path):
    """delete should remove the record and fail when absent"""
    store = RecordStore(tmp_path)
    store.write("hello-world", _article())

    store.delete("hello-world")

    assert not store.exists("hello-world")
    with pytest.raises(NotFound):
        store.delete("hello-world")


def test_rename(tmp_path):
    """rename should move the record to the new key"""
    store = RecordStore(tmp_path)
    article = _article()
    store.write("hello-world", article)

    store.rename("hello-world", "hello-world-2")

    assert store.list_keys() == ["hello-world-2"]
    assert store.read("hello-world-2") == article


def test_rename_conflict_leaves_both(tmp_path):
    """rename onto an existing key should change nothing"""
    store = RecordStore(tmp_path)
    store.write("first", _article(title="first", text="one"))
    store.write("second", _article(title="second", text="two"))

    with pytest.raises(Conflict):
        store.rename("first", "second")

    assert store.read("first").text == "one"
    assert store.read("second").text == "two"


def test_rename_missing(tmp_path):
    """rename of an absent key should raise NotFound"""
    store = RecordStore(tmp_path)
    with pytest.raises(NotFound):
        store.rename("ghost", "other")


def test_list_keys_ignores_other_files(tmp_path):
    """Only .json records should be listed, sorted"""
    store = RecordStore(tmp_path)
    store.write("beta", _article(title="beta"))
    store.write("alpha", _article(title="alpha"))
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    (tmp_path / ".tmp-abc.json").write_text("{}", encoding="utf-8")

    assert store.list_keys() == ["alpha", "beta"]


def test_write_failure_raises_store_io_error(tmp_path, monkeypatch):
    """Filesystem failures should surface as StoreIOError"""
    store = RecordStore(tmp_path)
    store.write("hello-world", _article(text="kept"))

    def failing_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr(os, "replace", failing_replace)

    with pytest.raises(StoreIOError) as excinfo:
        store.write("hello-world", _article(text="lost"))

    assert isinstance(excinfo.value, OSError)
    monkeypatch.undo()
    assert store.read("hello-world").text == "kept"
    assert store.list_keys() == ["hello-world"]


def test_path_for():
    """Record paths should live directly under the articles directory"""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = RecordStore(Path(tmpdir))
        assert store.path_for("abc") == Path(tmpdir) / "abc.json"
