"""Unit tests for the SQLite document store backend."""

import sqlite3
from pathlib import Path

import pytest

from sqlstash.backends.memory import MemoryCacheBackend
from sqlstash.backends.sqlite import DEFAULT_TABLE_NAME, SqliteCacheBackend
from sqlstash.core.cache import CacheEntry, ResultCache
from sqlstash.core.rows import Row
from sqlstash.exceptions import ImproperConfigurationError, SerializationError


def test_missing_key_returns_none() -> None:
    with SqliteCacheBackend() as backend:
        assert backend.load("missing") is None
        assert len(backend) == 0


def test_save_and_load_document() -> None:
    document = {"rows": [[["id", 1], [0, 1]]], "result": True}

    with SqliteCacheBackend() as backend:
        backend.save("k", document)

        assert backend.load("k") == document
        assert "k" in backend
        assert "other" not in backend


def test_save_replaces_existing_document() -> None:
    with SqliteCacheBackend() as backend:
        backend.save("k", {"rows": [], "result": 1})
        backend.save("k", {"rows": [], "result": 2})

        assert backend.load("k") == {"rows": [], "result": 2}
        assert len(backend) == 1
        assert backend.keys() == ["k"]


def test_entries_survive_reopening(tmp_path: Path) -> None:
    database = tmp_path / "cache.db"
    entry = CacheEntry([Row.from_values(["id", "name"], (1, "alice"))], True)

    with SqliteCacheBackend(database) as backend:
        ResultCache(backend).save("users", entry)

    with SqliteCacheBackend(database) as backend:
        assert ResultCache(backend).load("users") == entry


def test_binary_values_keep_their_type(tmp_path: Path) -> None:
    database = tmp_path / "cache.db"
    entry = CacheEntry([Row.from_values(["id", "data", "note"], (1, b"\x00\x01abc", "AAFhYmM="))], True)

    with SqliteCacheBackend(database) as backend:
        ResultCache(backend).save("blob", entry)

    with SqliteCacheBackend(database) as backend:
        loaded = ResultCache(backend).load("blob")

    assert loaded == entry
    assert loaded is not None
    assert loaded.rows[0]["data"] == b"\x00\x01abc"
    assert isinstance(loaded.rows[0][1], bytes)
    assert loaded.rows[0]["note"] == "AAFhYmM="


def test_documents_are_stored_as_blobs() -> None:
    with SqliteCacheBackend() as backend:
        backend.save("k", {"rows": []})
        stored = backend._connection.execute(f"SELECT typeof(document) FROM {DEFAULT_TABLE_NAME}").fetchone()[0]

    assert stored == "blob"


def test_custom_table_name(tmp_path: Path) -> None:
    database = tmp_path / "cache.db"

    with SqliteCacheBackend(database, table_name="query_cache") as backend:
        backend.save("k", [1, 2])
        assert backend.table_name == "query_cache"

    connection = sqlite3.connect(database)
    try:
        tables = {name for (name,) in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    finally:
        connection.close()
    assert tables == {"query_cache"}


@pytest.mark.parametrize("table_name", ["", "1table", "cache; DROP TABLE x", "cache-name"])
def test_invalid_table_name(table_name: str) -> None:
    with pytest.raises(ImproperConfigurationError):
        SqliteCacheBackend(table_name=table_name)


def test_borrowed_connection_is_not_closed() -> None:
    connection = sqlite3.connect(":memory:")
    backend = SqliteCacheBackend(connection=connection)
    backend.save("k", "v")
    backend.close()

    assert connection.execute(f"SELECT COUNT(*) FROM {DEFAULT_TABLE_NAME}").fetchone()[0] == 1
    connection.close()


def test_unencodable_value_raises() -> None:
    with SqliteCacheBackend() as backend, pytest.raises(SerializationError):
        backend.save("k", object())


def test_keys_in_storage_order() -> None:
    with SqliteCacheBackend() as backend:
        for key in ("a", "b", "c"):
            backend.save(key, None)

        assert sorted(backend.keys()) == ["a", "b", "c"]


class TestMemoryBackend:
    def test_values_are_kept_as_given(self) -> None:
        backend = MemoryCacheBackend()
        value = {"rows": []}
        backend.save("k", value)

        assert backend.load("k") is value

    def test_mapping_helpers(self) -> None:
        backend = MemoryCacheBackend()
        backend.save("a", 1)
        backend.save("b", 2)

        assert len(backend) == 2
        assert "a" in backend
        assert list(backend) == ["a", "b"]
        assert backend.keys() == ["a", "b"]
        assert backend.load("c") is None
