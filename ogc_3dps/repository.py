# ============================================================================
# CLAUDE CONTEXT - FEATURE ATTRIBUTE QUERIES
# ============================================================================
# STATUS: Standalone Repository - Attribute lookup for GetFeatureInfoByObjectId
# PURPOSE: Answer (object id, model) with up to four attribute groups
# LAST_REVIEWED: Current
# EXPORTS: AttributeQuery, AttributeQueryResult, FeatureAttributeRepository,
#          BoreholeAttributeQuery, ChainedAttributeQuery
# DEPENDENCIES: psycopg, psycopg.sql, infrastructure.postgresql
# SOURCE: {schema}.feature_attributes table, per-model borehole index
# PATTERNS: Repository Pattern, Chain of responsibility
# ============================================================================

"""
Feature Attribute Queries

Every query returns an ``AttributeQueryResult``; ``ok=False`` means the
object is unknown or the store could not be read. Groups, in merge order:

    segment_info  attributes of one mesh segment
    part_info     attributes of the part the segment belongs to
    model_info    attributes shared by the whole model
    user_info     free-form attributes (borehole records land here)

Table layout ({schema}.{table})::

    model_name   TEXT
    object_id    TEXT
    segment_info JSONB
    part_info    JSONB
    model_info   JSONB
    user_info    JSONB
    PRIMARY KEY (model_name, object_id)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql

from infrastructure.postgresql import PostgreSQLRepository
from .models import ModelRegistry

logger = logging.getLogger(__name__)

ATTRIBUTE_GROUPS = ("segment_info", "part_info", "model_info", "user_info")


@dataclass(frozen=True)
class AttributeQueryResult:
    ok: bool
    segment_info: Optional[Dict[str, Any]] = None
    part_info: Optional[Dict[str, Any]] = None
    model_info: Optional[Dict[str, Any]] = None
    user_info: Optional[Dict[str, Any]] = None

    def groups(self) -> List[Dict[str, Any]]:
        """Present groups in merge order (later wins on key collision)."""
        return [g for g in (getattr(self, name) for name in ATTRIBUTE_GROUPS) if g]


QUERY_FAILED = AttributeQueryResult(ok=False)


class AttributeQuery:
    """Interface for attribute lookups."""

    def query(self, object_id: str, model_name: str) -> AttributeQueryResult:
        raise NotImplementedError


class FeatureAttributeRepository(PostgreSQLRepository, AttributeQuery):
    """PostgreSQL attribute store."""

    def __init__(self, connection_string: Optional[str] = None,
                 schema_name: str = 'geomodels', table_name: str = 'feature_attributes'):
        super().__init__(connection_string=connection_string, schema_name=schema_name)
        self.table_name = table_name

    def query(self, object_id: str, model_name: str) -> AttributeQueryResult:
        query = sql.SQL("""
            SELECT segment_info, part_info, model_info, user_info
            FROM {schema}.{table}
            WHERE model_name = %s AND object_id = %s
        """).format(
            schema=sql.Identifier(self.schema_name),
            table=sql.Identifier(self.table_name)
        )

        try:
            with self._get_cursor() as cursor:
                cursor.execute(query, (model_name, object_id))
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error(f"Attribute query failed for {model_name}/{object_id}: {e}")
            return QUERY_FAILED

        if row is None:
            return QUERY_FAILED

        return AttributeQueryResult(ok=True, **{name: row[name] for name in ATTRIBUTE_GROUPS})


class BoreholeAttributeQuery(AttributeQuery):
    """Answers object ids that are borehole resource ids of the model."""

    def __init__(self, registry: ModelRegistry, index_builder):
        self.registry = registry
        self.index_builder = index_builder

    def query(self, object_id: str, model_name: str) -> AttributeQueryResult:
        model = self.registry.lookup(model_name)
        if model is None:
            return QUERY_FAILED

        index, _ = self.index_builder.get_index(model)
        record = index.lookup(object_id)
        if not record:
            return QUERY_FAILED

        return AttributeQueryResult(
            ok=True,
            user_info={"nvcl_id": record.nvcl_id, **record.attributes}
        )


class ChainedAttributeQuery(AttributeQuery):
    """First successful answer wins."""

    def __init__(self, queries: List[AttributeQuery]):
        self.queries = list(queries)

    def query(self, object_id: str, model_name: str) -> AttributeQueryResult:
        for attribute_query in self.queries:
            result = attribute_query.query(object_id, model_name)
            if result.ok:
                return result
        return QUERY_FAILED
