"""Tests for the WFS borehole listing client (httpx.MockTransport)."""

import httpx

from services.wfs_client import WFSListingClient

URL = "http://wfs.example.org/wfs"


def _client(handler):
    return WFSListingClient(timeout=5, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestBuildParams:

    def test_wfs_1_1_names(self):
        params = WFSListingClient.build_params("1.1.0", "gsmlp:BoreholeView", 50)
        assert params["typeName"] == "gsmlp:BoreholeView"
        assert params["maxFeatures"] == "50"
        assert params["outputFormat"] == "application/json"
        assert "typeNames" not in params

    def test_wfs_2_names(self):
        params = WFSListingClient.build_params("2.0.0", "gsmlp:BoreholeView", 50)
        assert params["typeNames"] == "gsmlp:BoreholeView"
        assert params["count"] == "50"


class TestListFeatures:

    def test_success_keeps_upstream_order(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={
                "type": "FeatureCollection",
                "features": [{"id": "b"}, {"id": "a"}],
            })

        response = _client(handler).list_features(URL, "1.1.0", "gsmlp:BoreholeView", 9999)

        assert response.success is True
        assert [f["id"] for f in response.features] == ["b", "a"]
        assert seen["request"] == "GetFeature"
        assert seen["maxFeatures"] == "9999"

    def test_http_error(self):
        response = _client(lambda request: httpx.Response(503, text="busy")).list_features(
            URL, "1.1.0", "gsmlp:BoreholeView", 10
        )
        assert response.success is False
        assert response.status_code == 503

    def test_not_json(self):
        response = _client(lambda request: httpx.Response(200, text="<ows:ExceptionReport/>")).list_features(
            URL, "1.1.0", "gsmlp:BoreholeView", 10
        )
        assert response.success is False
        assert response.status_code == 502

    def test_not_a_feature_collection(self):
        response = _client(lambda request: httpx.Response(200, json={"hello": "world"})).list_features(
            URL, "1.1.0", "gsmlp:BoreholeView", 10
        )
        assert response.success is False

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        response = _client(handler).list_features(URL, "1.1.0", "gsmlp:BoreholeView", 10)
        assert response.success is False
        assert response.status_code == 504

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        response = _client(handler).list_features(URL, "1.1.0", "gsmlp:BoreholeView", 10)
        assert response.success is False
        assert response.status_code == 500
