# ============================================================================
# CLAUDE CONTEXT - POSTGRESQL REPOSITORY
# ============================================================================
# STATUS: Core Infrastructure - PostgreSQL connection management
# PURPOSE: Per-operation PostgreSQL connections for the cache store and attribute store
# LAST_REVIEWED: Current
# EXPORTS: PostgreSQLRepository
# DEPENDENCIES: psycopg, config
# SCOPE: Connection lifecycle, cursor helper, schema/table checks
# PATTERNS: Repository pattern, Per-request connections, Managed identity
# ============================================================================

"""
PostgreSQL Repository - Connection Management

Shared base for PostgresCacheStore and FeatureAttributeRepository. Each
operation opens its own connection and closes it when done; function
instances are short-lived so there is no pool.

Usage:
    class AttributeTable(PostgreSQLRepository):
        def count(self) -> int:
            with self._get_cursor() as cursor:
                cursor.execute("SELECT count(*) AS n FROM geomodels.feature_attributes")
                return cursor.fetchone()['n']
"""

import logging
import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from typing import Optional
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PostgreSQLRepository:
    """
    Base class owning the connection string and schema name.

    Rows come back as dicts. Nothing touches the database until the first
    operation, so constructing a repository never fails on connectivity.
    """

    def __init__(self, connection_string: Optional[str] = None,
                 schema_name: str = 'geomodels'):
        """
        Args:
            connection_string: Fixed DSN; when omitted one is built from
                config for every connection
            schema_name: Schema holding this repository's tables
        """
        self.schema_name = schema_name
        self._conn_string = connection_string

    @property
    def conn_string(self) -> str:
        if self._conn_string is not None:
            return self._conn_string
        # Managed identity tokens expire, so never keep a built DSN
        from config import get_postgres_connection_string
        return get_postgres_connection_string()

    @contextmanager
    def _get_connection(self):
        """Open a connection, roll back on psycopg errors, always close."""
        conn = psycopg.connect(self.conn_string, row_factory=dict_row)
        logger.debug(f"🔗 Connected for schema {self.schema_name}")
        try:
            yield conn
        except psycopg.Error as e:
            logger.error(f"❌ PostgreSQL error in {self.schema_name}: {type(e).__name__}: {e}")
            if not conn.broken:
                conn.rollback()
            raise
        finally:
            conn.close()
            logger.debug("🔒 Connection closed")

    @contextmanager
    def _get_cursor(self):
        """Cursor on a fresh connection; commits when the block exits cleanly."""
        with self._get_connection() as conn:
            with conn.cursor() as cursor:
                yield cursor
            conn.commit()

    def _ensure_schema_exists(self) -> None:
        with self._get_cursor() as cursor:
            cursor.execute(
                sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(self.schema_name))
            )

    def _table_exists(self, table_name: str) -> bool:
        """False when the table is missing or the server cannot be reached."""
        try:
            with self._get_cursor() as cursor:
                cursor.execute(
                    "SELECT to_regclass(%s) IS NOT NULL AS present",
                    (f"{self.schema_name}.{table_name}",)
                )
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error(f"Could not look up {self.schema_name}.{table_name}: {e}")
            return False
        return bool(row and row['present'])
