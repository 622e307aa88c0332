# ============================================================================
# CLAUDE CONTEXT - CACHE STORE
# ============================================================================
# STATUS: Core Infrastructure - Shared key/value cache
# PURPOSE: Insert-if-absent byte cache shared by all Function App workers
# LAST_REVIEWED: Current
# EXPORTS: CacheStore, PostgresCacheStore, MemoryCacheStore, CacheStoreError, key helpers
# DEPENDENCIES: psycopg, infrastructure.postgresql, util_logger
# SCOPE: Model registry, borehole index and glTF binary buffer caching
# PATTERNS: Repository pattern, Per-operation connections, First-writer-wins
# ENTRY_POINTS: store = PostgresCacheStore(schema_name='geomodels'); store.add(key, data)
# ============================================================================

"""
Cache Store

A persistent key/value store with two operations:

    get(key)        -> bytes or None on miss
    add(key, value) -> True if inserted, False if the key already existed

``add`` never overwrites. Concurrent populators racing on the same key are
resolved by the backend (``INSERT ... ON CONFLICT DO NOTHING``); the loser's
value is discarded and that is not an error.

Three namespaces share the store:

    registry:<name>                 model registry payloads
    boreholes:<model>:index|ids     borehole index per model
    blob:<model>:<resource_id>      glTF binary buffers
"""

import threading
from typing import Dict, Optional

import psycopg
from psycopg import sql

from infrastructure.postgresql import PostgreSQLRepository
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "CacheStore")


class CacheStoreError(Exception):
    """Cache backend unreachable or failed mid-operation."""


# ============================================================================
# Key helpers
# ============================================================================

def registry_key(name: str) -> str:
    return f"registry:{name}"


def borehole_index_key(model_name: str) -> str:
    return f"boreholes:{model_name}:index"


def borehole_ids_key(model_name: str) -> str:
    return f"boreholes:{model_name}:ids"


def blob_key(model_name: str, resource_id: str) -> str:
    return f"blob:{model_name}:{resource_id}"


# ============================================================================
# Store implementations
# ============================================================================

class CacheStore:
    """Interface shared by the cache backends."""

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def add(self, key: str, value: bytes) -> bool:
        raise NotImplementedError

    def ping(self) -> bool:
        """True if the backend is reachable."""
        raise NotImplementedError


class MemoryCacheStore(CacheStore):
    """
    Process-local store for local development and tests.

    Only shared between threads of one worker process.
    """

    def __init__(self):
        self._entries: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._entries.get(key)

    def add(self, key: str, value: bytes) -> bool:
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = bytes(value)
            return True

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PostgresCacheStore(PostgreSQLRepository, CacheStore):
    """
    PostgreSQL-backed cache store.

    Table layout ({schema}.{table}):
        cache_key    TEXT PRIMARY KEY
        value        BYTEA NOT NULL
        byte_length  INTEGER NOT NULL
        created_at   TIMESTAMPTZ DEFAULT now()

    Every call opens and closes its own connection.
    """

    def __init__(self, connection_string: Optional[str] = None,
                 schema_name: str = 'geomodels', table_name: str = 'cache_entries'):
        super().__init__(connection_string=connection_string, schema_name=schema_name)
        self.table_name = table_name
        self._table_ready = False

    def _table(self) -> sql.Composed:
        return sql.SQL("{}.{}").format(
            sql.Identifier(self.schema_name),
            sql.Identifier(self.table_name)
        )

    def ensure_table(self) -> None:
        """Create schema and cache table if missing (idempotent)."""
        if self._table_ready:
            return
        try:
            self._ensure_schema_exists()
            with self._get_cursor() as cursor:
                cursor.execute(
                    sql.SQL("""
                        CREATE TABLE IF NOT EXISTS {table} (
                            cache_key TEXT PRIMARY KEY,
                            value BYTEA NOT NULL,
                            byte_length INTEGER NOT NULL,
                            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                        )
                    """).format(table=self._table())
                )
        except psycopg.Error as e:
            raise CacheStoreError(f"Cannot prepare cache table: {e}") from e
        self._table_ready = True
        logger.info(f"✅ Cache table ready: {self.schema_name}.{self.table_name}")

    def get(self, key: str) -> Optional[bytes]:
        self.ensure_table()
        try:
            with self._get_cursor() as cursor:
                cursor.execute(
                    sql.SQL("SELECT value FROM {table} WHERE cache_key = %s").format(
                        table=self._table()
                    ),
                    (key,)
                )
                row = cursor.fetchone()
        except psycopg.Error as e:
            raise CacheStoreError(f"Cache get failed for '{key}': {e}") from e

        if row is None:
            logger.debug(f"Cache miss: {key}")
            return None
        return bytes(row['value'])

    def add(self, key: str, value: bytes) -> bool:
        self.ensure_table()
        try:
            with self._get_cursor() as cursor:
                cursor.execute(
                    sql.SQL("""
                        INSERT INTO {table} (cache_key, value, byte_length)
                        VALUES (%s, %s, %s)
                        ON CONFLICT (cache_key) DO NOTHING
                    """).format(table=self._table()),
                    (key, bytes(value), len(value))
                )
                inserted = cursor.rowcount == 1
        except psycopg.Error as e:
            raise CacheStoreError(f"Cache add failed for '{key}': {e}") from e

        if inserted:
            logger.debug(f"Cache add: {key} ({len(value)} bytes)")
        else:
            logger.debug(f"Cache add skipped, key exists: {key}")
        return inserted

    def ping(self) -> bool:
        return self._table_exists(self.table_name)
