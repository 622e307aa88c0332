"""Tests for environment-driven configuration and scene generator loading."""

import pytest
from pydantic import ValidationError

from ogc_3dps.config import Ogc3dpsConfig
from ogc_3dps.scene import NullSceneGenerator, load_scene_generator


def make_generator():
    return NullSceneGenerator()


class TestOgc3dpsConfig:

    def test_environment_defaults(self, monkeypatch):
        for name in ("OGC3DPS_INPUT_DIR", "OGC3DPS_MAX_BOREHOLES", "OGC3DPS_BASE_URL"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("OGC3DPS_CACHE_BACKEND", "MEMORY")

        config = Ogc3dpsConfig()

        assert config.input_dir == "input"
        assert config.cache_backend == "memory"
        assert config.max_boreholes == 9999
        assert str(config.provider_config_path).endswith("ProviderModelInfo.json")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OGC3DPS_MAX_BOREHOLES", "25")
        monkeypatch.setenv("OGC3DPS_LISTING_TIMEOUT", "5")

        config = Ogc3dpsConfig()

        assert config.max_boreholes == 25
        assert config.listing_timeout_seconds == 5.0

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Ogc3dpsConfig(cache_backend="redis")

    def test_scene_generator_needs_factory(self):
        with pytest.raises(ValidationError):
            Ogc3dpsConfig(scene_generator="some.module")

    @pytest.mark.parametrize("base_url,request_url,expected", [
        ("https://models.example.org/", None, "https://models.example.org"),
        (None, "https://host.example:8443/api/Alpha?service=3DPS", "https://host.example:8443"),
        (None, None, "http://localhost:7071"),
    ])
    def test_base_url(self, base_url, request_url, expected):
        config = Ogc3dpsConfig(base_url=base_url, cache_backend="memory")
        assert config.get_base_url(request_url) == expected


class TestLoadSceneGenerator:

    def test_unset_is_null_generator(self):
        assert isinstance(load_scene_generator(None), NullSceneGenerator)

    def test_import_path(self):
        generator = load_scene_generator("test_config:make_generator")
        assert isinstance(generator, NullSceneGenerator)

    def test_bad_import_path(self):
        with pytest.raises(ImportError):
            load_scene_generator("no_such_module_here:factory")
