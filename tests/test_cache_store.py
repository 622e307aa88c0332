"""Tests for the insert-if-absent cache store backends."""

import threading
from contextlib import contextmanager

import psycopg
import pytest

from infrastructure.cache_store import (
    CacheStoreError,
    MemoryCacheStore,
    PostgresCacheStore,
    blob_key,
    borehole_ids_key,
    borehole_index_key,
    registry_key,
)


class TestKeyHelpers:

    def test_namespaces(self):
        assert registry_key("model_parameters") == "registry:model_parameters"
        assert borehole_index_key("Alpha") == "boreholes:Alpha:index"
        assert borehole_ids_key("Alpha") == "boreholes:Alpha:ids"
        assert blob_key("Alpha", "borehole_R1") == "blob:Alpha:borehole_R1"


class TestMemoryCacheStore:

    def test_get_miss(self):
        assert MemoryCacheStore().get("nothing") is None

    def test_add_then_get(self):
        store = MemoryCacheStore()
        assert store.add("k", b"first") is True
        assert store.get("k") == b"first"

    def test_add_never_overwrites(self):
        store = MemoryCacheStore()
        store.add("k", b"first")
        assert store.add("k", b"second") is False
        assert store.get("k") == b"first"
        assert len(store) == 1

    def test_concurrent_adds_single_winner(self):
        store = MemoryCacheStore()
        results = []

        def populate(n):
            results.append(store.add("race", f"value-{n}".encode()))

        threads = [threading.Thread(target=populate, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert store.get("race").startswith(b"value-")


class FakeCursor:
    """Records statements; rowcount mimics ON CONFLICT DO NOTHING."""

    def __init__(self, rows, existing=False):
        self.rows = rows
        self.existing = existing
        self.rowcount = 0
        self.executed = []

    def execute(self, query, params=None):
        self.executed.append((query, params))
        self.rowcount = 0 if self.existing else 1

    def fetchone(self):
        return self.rows.pop(0) if self.rows else None


def _store_with_cursor(cursor):
    store = PostgresCacheStore(connection_string="postgresql://unused")
    store._table_ready = True

    @contextmanager
    def fake_cursor():
        yield cursor

    store._get_cursor = fake_cursor
    return store


def _failing_store():
    store = PostgresCacheStore(connection_string="postgresql://unused")
    store._table_ready = True

    @contextmanager
    def broken_cursor():
        raise psycopg.OperationalError("connection refused")
        yield  # pragma: no cover

    store._get_cursor = broken_cursor
    return store


class TestPostgresCacheStore:

    def test_get_hit_returns_bytes(self):
        store = _store_with_cursor(FakeCursor(rows=[{"value": memoryview(b"abc")}]))
        assert store.get("k") == b"abc"

    def test_get_miss(self):
        store = _store_with_cursor(FakeCursor(rows=[]))
        assert store.get("k") is None

    def test_add_inserted(self):
        cursor = FakeCursor(rows=[])
        store = _store_with_cursor(cursor)
        assert store.add("k", b"abcd") is True
        _, params = cursor.executed[0]
        assert params == ("k", b"abcd", 4)

    def test_add_existing_key(self):
        store = _store_with_cursor(FakeCursor(rows=[], existing=True))
        assert store.add("k", b"abcd") is False

    def test_backend_errors_wrapped(self):
        store = _failing_store()
        with pytest.raises(CacheStoreError):
            store.get("k")
        with pytest.raises(CacheStoreError):
            store.add("k", b"v")
