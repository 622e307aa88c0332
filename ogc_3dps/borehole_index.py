# ============================================================================
# CLAUDE CONTEXT - BOREHOLE INDEX BUILDER
# ============================================================================
# STATUS: Standalone Module - Per-model borehole index with cache-aside population
# PURPOSE: Resource id -> BoreholeRecord index and ordered id list for one model
# LAST_REVIEWED: Current
# EXPORTS: BoreholeIndexBuilder, make_resource_id, record_from_feature
# DEPENDENCIES: pydantic, services.wfs_client, infrastructure.cache_store
# SOURCE: Upstream WFS listing (gsmlp:BoreholeView GeoJSON)
# PATTERNS: Cache-aside, insert-if-absent, degrade-to-empty
# ============================================================================

"""
Borehole Index Builder

``get_index(model)`` answers from the cache store when both the index and
the ordered id list are cached for the model. Otherwise it lists the
boreholes upstream (bounded by max features and a timeout), builds both
structures from that one listing, and adds them to the cache.

Never raises to the caller: cache failures, unreadable cached bytes, a
model without a listing endpoint, or a failed listing all produce an empty
index so that query operations still return a well-formed empty result.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from infrastructure.cache_store import (
    CacheStore,
    CacheStoreError,
    borehole_ids_key,
    borehole_index_key,
)
from services.wfs_client import WFSListingClient
from util_logger import LoggerFactory, ComponentType
from .exceptions import ListingError
from .models import BoreholeIndex, BoreholeRecord, ModelParameters

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "BoreholeIndexBuilder")

_records_adapter = TypeAdapter(Dict[str, BoreholeRecord])
_ids_adapter = TypeAdapter(List[Dict[str, str]])

_NON_WORD = re.compile(r"\W")


def make_resource_id(nvcl_id: str) -> str:
    """External resource id for an upstream borehole id."""
    return "borehole_" + _NON_WORD.sub("_", nvcl_id)


def _scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def record_from_feature(feature: Dict[str, Any]) -> Optional[BoreholeRecord]:
    """
    Convert one GeoJSON BoreholeView feature into a record.

    Returns None for features without an identifier or flagged as having no
    NVCL collection.
    """
    properties = feature.get("properties") or {}

    nvcl_flag = properties.get("nvclCollection")
    if nvcl_flag is not None and str(nvcl_flag).lower() not in ("true", "1"):
        return None

    identifier = properties.get("identifier") or feature.get("id") or ""
    nvcl_id = re.split(r"[/.]", str(identifier).rstrip("/"))[-1]
    if not nvcl_id:
        return None

    attributes = {k: v for k, v in properties.items() if _scalar(v)}

    geometry = feature.get("geometry") or {}
    if geometry.get("type") == "Point":
        coords = geometry.get("coordinates") or []
        for axis, value in zip(("x", "y", "z"), coords):
            attributes.setdefault(axis, value)

    return BoreholeRecord(nvcl_id=nvcl_id, attributes=attributes)


class BoreholeIndexBuilder:
    """Builds and caches one BoreholeIndex per model."""

    def __init__(self, cache_store: CacheStore, listing_client: WFSListingClient,
                 max_features: int = 9999):
        self.cache_store = cache_store
        self.listing_client = listing_client
        self.max_features = max_features

    def get_index(self, model: ModelParameters) -> Tuple[BoreholeIndex, List[Dict[str, str]]]:
        """
        Get (index, ordered id list) for a model.

        Returns:
            Both structures; empty when nothing can be produced.
        """
        index_key = borehole_index_key(model.name)
        ids_key = borehole_ids_key(model.name)

        try:
            records_blob = self.cache_store.get(index_key)
            ids_blob = self.cache_store.get(ids_key)
        except CacheStoreError as e:
            logger.error(f"Borehole cache unavailable for '{model.name}': {e}")
            return self._empty()

        if records_blob is not None and ids_blob is not None:
            try:
                index = BoreholeIndex(
                    records=_records_adapter.validate_json(records_blob),
                    ids=_ids_adapter.validate_json(ids_blob)
                )
            except ValidationError as e:
                logger.error(f"Cached borehole index for '{model.name}' is unreadable: {e}")
                return self._empty()
            logger.debug(f"Borehole index cache hit for '{model.name}' ({len(index)} boreholes)")
            return index, index.ids

        if model.listing is None:
            logger.info(f"Model '{model.name}' has no borehole listing endpoint")
            return self._empty()

        try:
            index = self._build(model)
        except ListingError as e:
            logger.error(f"Borehole listing failed for '{model.name}': {e}")
            return self._empty()

        try:
            self.cache_store.add(index_key, _records_adapter.dump_json(index.records))
            self.cache_store.add(ids_key, _ids_adapter.dump_json(index.ids))
        except CacheStoreError as e:
            logger.error(f"Could not cache borehole index for '{model.name}': {e}")
            return self._empty()

        return index, index.ids

    def _build(self, model: ModelParameters) -> BoreholeIndex:
        """
        List the model's boreholes upstream and index them.

        Raises:
            ListingError: listing failed or returned no FeatureCollection
        """
        response = self.listing_client.list_features(
            url=model.listing.url,
            version=model.listing.version,
            type_name=model.listing.type_name,
            max_features=self.max_features
        )
        if not response.success:
            raise ListingError(f"HTTP {response.status_code}: {response.error}")

        ordered = []
        for feature in response.features:
            record = record_from_feature(feature)
            if record is not None:
                ordered.append((make_resource_id(record.nvcl_id), record))

        index = BoreholeIndex.from_records(ordered)
        logger.info(f"Built borehole index for '{model.name}' ({len(index)} boreholes)")
        return index

    @staticmethod
    def _empty() -> Tuple[BoreholeIndex, List[Dict[str, str]]]:
        return BoreholeIndex(), []
