"""Tests for the settings storage backends."""

import pytest

from rss_fetch.errors import StorageError
from rss_fetch.state import SavedFeedStore
from rss_fetch.storage import MemoryStorage, SqlStorage


@pytest.fixture
def sql_storage():
    """Create an in-memory SQLite storage for testing."""
    return SqlStorage.from_url("sqlite:///:memory:")


def test_memory_storage_round_trip():
    storage = MemoryStorage({"a": "1"})

    storage.set("b", "2")

    assert storage.get("a") == "1"
    assert storage.get("b") == "2"
    assert storage.get("missing") is None


def test_sql_storage_insert_and_update(sql_storage):
    assert sql_storage.get("darkMode") is None

    sql_storage.set("darkMode", "true")
    assert sql_storage.get("darkMode") == "true"

    sql_storage.set("darkMode", "false")
    assert sql_storage.get("darkMode") == "false"


def test_sql_storage_persists_across_instances(tmp_path):
    url = f"sqlite:///{tmp_path / 'settings.db'}"

    SavedFeedStore(SqlStorage.from_url(url)).add("https://example.com/feed.xml")

    assert SavedFeedStore(SqlStorage.from_url(url)).list() == [
        "https://example.com/feed.xml"
    ]


def test_sql_storage_rejects_bad_connection_string():
    with pytest.raises(StorageError):
        SqlStorage.from_url("not a database url")
