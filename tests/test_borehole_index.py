"""Tests for the per-model borehole index builder."""

import httpx

from fakes import FakeListingClient, borehole_feature
from infrastructure.cache_store import (
    CacheStoreError,
    MemoryCacheStore,
    borehole_ids_key,
    borehole_index_key,
)
from ogc_3dps.borehole_index import BoreholeIndexBuilder, make_resource_id, record_from_feature
from ogc_3dps.models import ModelParameters, NotFound
from services.wfs_client import WFSListingClient


class RaisingCacheStore(MemoryCacheStore):
    def get(self, key):
        raise CacheStoreError("cache offline")


class TestRecordFromFeature:

    def test_identifier_tail_and_coordinates(self):
        record = record_from_feature(borehole_feature("6710", x=137.1, y=-30.2, drillingMethod="diamond"))
        assert record.nvcl_id == "6710"
        assert record.attributes["x"] == 137.1
        assert record.attributes["y"] == -30.2
        assert record.attributes["drillingMethod"] == "diamond"

    def test_no_nvcl_collection_skipped(self):
        assert record_from_feature(borehole_feature("1", nvclCollection="false")) is None

    def test_non_scalar_properties_dropped(self):
        record = record_from_feature(borehole_feature("1", shape={"nested": True}))
        assert "shape" not in record.attributes

    def test_resource_id_replaces_non_word_characters(self):
        assert make_resource_id("ab-12.3") == "borehole_ab_12_3"


class TestGetIndex:

    def test_builds_from_listing_and_caches(self, alpha_model):
        store = MemoryCacheStore()
        client = FakeListingClient([borehole_feature("R2"), borehole_feature("R1"), borehole_feature("R2")])
        builder = BoreholeIndexBuilder(store, client)

        index, ids = builder.get_index(alpha_model)

        assert ids == [{"borehole:id": "borehole_R2"}, {"borehole:id": "borehole_R1"}]
        assert index.lookup("borehole_R1").nvcl_id == "R1"
        assert store.get(borehole_index_key("Alpha")) is not None
        assert store.get(borehole_ids_key("Alpha")) is not None

    def test_second_call_served_from_cache(self, alpha_model):
        store = MemoryCacheStore()
        client = FakeListingClient([borehole_feature("R1")])
        builder = BoreholeIndexBuilder(store, client)

        first = builder.get_index(alpha_model)
        second = builder.get_index(alpha_model)

        assert client.calls == 1
        assert first == second

    def test_unknown_resource_is_not_found(self, index_builder, alpha_model):
        index, _ = index_builder.get_index(alpha_model)
        assert isinstance(index.lookup("borehole_nope"), NotFound)

    def test_listing_failure_degrades_to_empty(self, alpha_model):
        store = MemoryCacheStore()
        builder = BoreholeIndexBuilder(store, FakeListingClient(success=False))

        index, ids = builder.get_index(alpha_model)

        assert len(index) == 0
        assert ids == []
        assert len(store) == 0

    def test_model_without_listing(self):
        client = FakeListingClient([borehole_feature("R1")])
        builder = BoreholeIndexBuilder(MemoryCacheStore(), client)

        index, ids = builder.get_index(ModelParameters(name="Flat", crs="EPSG:4326"))

        assert ids == []
        assert client.calls == 0

    def test_cache_failure_degrades_to_empty(self, alpha_model):
        client = FakeListingClient([borehole_feature("R1")])
        index, ids = BoreholeIndexBuilder(RaisingCacheStore(), client).get_index(alpha_model)
        assert ids == []

    def test_unreadable_cached_index(self, alpha_model):
        store = MemoryCacheStore()
        store.add(borehole_index_key("Alpha"), b"{broken")
        store.add(borehole_ids_key("Alpha"), b"[]")

        index, ids = BoreholeIndexBuilder(store, FakeListingClient()).get_index(alpha_model)
        assert len(index) == 0

    def test_with_http_listing_client(self, alpha_model):
        def handler(request):
            return httpx.Response(200, json={
                "type": "FeatureCollection",
                "features": [borehole_feature("R7")],
            })

        client = WFSListingClient(client=httpx.Client(transport=httpx.MockTransport(handler)))
        index, ids = BoreholeIndexBuilder(MemoryCacheStore(), client, max_features=5).get_index(alpha_model)

        assert ids == [{"borehole:id": "borehole_R7"}]
