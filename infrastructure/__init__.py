# ============================================================================
# CLAUDE CONTEXT - INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Core Infrastructure - Database and Cache Store
# PURPOSE: Shared infrastructure components for the 3DPS API
# LAST_REVIEWED: Current
# EXPORTS: PostgreSQLRepository, CacheStore, MemoryCacheStore, PostgresCacheStore
# DEPENDENCIES: psycopg, config
# ============================================================================

"""
Infrastructure Module

- PostgreSQL connection management (PostgreSQLRepository)
- Insert-if-absent binary cache store (PostgreSQL and in-memory backends)
- Cache key helpers shared by the registry, index builder and splitter
"""

from .postgresql import PostgreSQLRepository
from .cache_store import (
    CacheStore,
    CacheStoreError,
    MemoryCacheStore,
    PostgresCacheStore,
    registry_key,
    borehole_index_key,
    borehole_ids_key,
    blob_key
)

__version__ = "1.0.0"
__all__ = [
    "PostgreSQLRepository",
    "CacheStore",
    "CacheStoreError",
    "MemoryCacheStore",
    "PostgresCacheStore",
    "registry_key",
    "borehole_index_key",
    "borehole_ids_key",
    "blob_key"
]
