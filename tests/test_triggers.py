"""End-to-end tests through the Azure Functions HTTP trigger."""

import json

import azure.functions as func
import pytest

from ogc_3dps.triggers import Ogc3dpsTrigger, get_3dps_triggers

BASE = "http://localhost"


def _get(trigger, path_and_query):
    return trigger.handle(func.HttpRequest(method="GET", url=BASE + path_and_query, body=b""))


@pytest.fixture
def trigger(service):
    return Ogc3dpsTrigger(service)


class TestTriggerRegistration:

    def test_single_catch_all_route(self, service):
        triggers = get_3dps_triggers(service)
        assert len(triggers) == 1
        assert triggers[0]['route'] == '{*path}'
        assert triggers[0]['methods'] == ['GET']


class TestBoreholeScenario:
    """A viewer session against model Alpha with one borehole, R1."""

    def test_capabilities(self, trigger):
        response = _get(trigger, "/api/Alpha?service=3DPS&request=GetCapabilities")

        assert response.status_code == 200
        assert response.mimetype == "text/xml"
        assert b'xlink:href="http://localhost/api/Alpha?"' in response.get_body()

    def test_borehole_ids(self, trigger):
        response = _get(
            trigger,
            "/Alpha?service=WFS&version=2.0&request=GetPropertyValue"
            "&outputFormat=application/json&typeName=boreholes&valueReference=borehole:id"
        )
        assert json.loads(response.get_body())["values"] == [{"borehole:id": "borehole_R1"}]

    def test_feature_info(self, trigger):
        response = _get(
            trigger,
            "/api/Alpha?service=3DPS&version=1.0&request=GetFeatureInfoByObjectId"
            "&objectId=obj-1&format=application/json&layers=boreholes"
        )
        body = json.loads(response.get_body())
        assert body["featureInfos"][0]["featureId"] == "obj-1"

    def test_resource_then_binary(self, trigger):
        response = _get(
            trigger,
            "/api/Alpha?service=3DPS&version=1.0&request=GetResourceById"
            "&outputFormat=model/gltf+json;charset=UTF-8&resourceId=borehole_R1"
        )
        assert response.mimetype == "model/gltf+json;charset=UTF-8"
        uri = json.loads(response.get_body())["buffers"][0]["uri"]
        assert uri == "Alpha/$blobfile.bin?id=borehole_R1"

        binary = _get(trigger, "/" + uri)
        assert binary.status_code == 200
        assert binary.mimetype == "application/octet-stream"
        assert binary.get_body() == b"BIN1"
        assert binary.headers["Content-Length"] == "4"

        again = _get(trigger, "/api/" + uri)
        assert again.get_body() == b"BIN1"

    def test_binary_before_resource_is_single_space(self, trigger):
        response = _get(trigger, "/Alpha/$blobfile.bin?id=borehole_R1")
        assert response.get_body() == b" "

    def test_exception_report_is_http_200(self, trigger):
        response = _get(trigger, "/api/Beta?service=3DPS&request=GetCapabilities")

        assert response.status_code == 200
        report = json.loads(response.get_body())
        assert report["exceptions"][0]["code"] == "NotFound"


class TestTriggerFailures:

    def test_unrecognised_path(self, trigger):
        response = _get(trigger, "/api/Alpha/deeper/path")
        assert response.status_code == 200
        assert response.get_body() == b" "

    def test_unexpected_error_is_single_space(self, trigger, service, monkeypatch):
        def broken(model, base_url):
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "get_capabilities", broken)
        response = _get(trigger, "/Alpha?service=3DPS&request=GetCapabilities")

        assert response.status_code == 200
        assert response.get_body() == b" "
        assert response.mimetype == "text/plain"


class TestRecordIdScenario:
    """Index with the single record id R1, attributes answered from the index."""

    @pytest.fixture
    def trigger(self, registry, cache_store, scene_generator, ogc_config):
        from fakes import StaticIndexBuilder
        from ogc_3dps.models import BoreholeRecord
        from ogc_3dps.repository import BoreholeAttributeQuery
        from ogc_3dps.service import Ogc3dpsService
        from ogc_3dps.splitter import PayloadSplitter

        index_builder = StaticIndexBuilder([
            ("R1", BoreholeRecord(nvcl_id="R1", attributes={"name": "Hole one", "z": 112.5}))
        ])
        service = Ogc3dpsService(
            registry=registry,
            cache_store=cache_store,
            index_builder=index_builder,
            splitter=PayloadSplitter(cache_store),
            scene_generator=scene_generator,
            attribute_query=BoreholeAttributeQuery(registry, index_builder),
            config=ogc_config
        )
        return Ogc3dpsTrigger(service)

    def test_feature_info_reflects_record(self, trigger):
        response = _get(
            trigger,
            "/api/Alpha?service=3DPS&version=1.0&request=GetFeatureInfoByObjectId"
            "&objectId=R1&layers=boreholes&format=application/json"
        )
        body = json.loads(response.get_body())

        assert body["totalFeatureInfo"] == 1
        assert len(body["featureInfos"]) == 1
        attributes = {a["name"]: a["value"] for a in body["featureInfos"][0]["featureAttributeList"]}
        assert attributes == {"nvcl_id": "R1", "name": "Hole one", "z": 112.5}

    def test_blob_after_resource(self, trigger):
        _get(
            trigger,
            "/api/Alpha?service=3DPS&version=1.0&request=GetResourceById"
            "&resourceId=R1&outputFormat=model/gltf+json;charset=UTF-8"
        )
        response = _get(trigger, "/api/Alpha/$blobfile.bin?id=R1")

        assert response.get_body() == b"BIN1"
        assert response.headers["Content-Length"] == str(len(b"BIN1"))
