"""
Root conftest.py: sys.path, env vars, shared fixtures.

Every fixture runs without PostgreSQL, upstream WFS servers or a scene
generator: the cache store is in-memory and the collaborators are fakes.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'ogc_3dps', 'infrastructure', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fakes import FakeAttributeQuery, FakeListingClient, FakeSceneGenerator, borehole_feature  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """Safe defaults so imports and config objects build without Azure infrastructure."""
    defaults = {
        "POSTGIS_HOST": "localhost",
        "POSTGIS_DATABASE": "testdb",
        "POSTGIS_USER": "tester",
        "POSTGIS_PASSWORD": "secret",
        "USE_MANAGED_IDENTITY": "false",
        "OGC3DPS_CACHE_BACKEND": "memory",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def cache_store():
    from infrastructure.cache_store import MemoryCacheStore
    return MemoryCacheStore()


@pytest.fixture
def alpha_model():
    from ogc_3dps.models import ListingConnection, ModelParameters
    return ModelParameters(
        name="Alpha",
        provider="TEST",
        crs="EPSG:28352",
        listing=ListingConnection(url="http://wfs.example.org/wfs")
    )


@pytest.fixture
def registry(alpha_model):
    from ogc_3dps.models import ModelRegistry
    return ModelRegistry(models={"Alpha": alpha_model})


@pytest.fixture
def listing_client():
    return FakeListingClient(features=[borehole_feature("R1")])


@pytest.fixture
def index_builder(cache_store, listing_client):
    from ogc_3dps.borehole_index import BoreholeIndexBuilder
    return BoreholeIndexBuilder(cache_store, listing_client)


@pytest.fixture
def scene_generator():
    return FakeSceneGenerator()


@pytest.fixture
def attribute_query():
    from ogc_3dps.repository import AttributeQueryResult
    return FakeAttributeQuery({
        ("Alpha", "obj-1"): AttributeQueryResult(
            ok=True,
            segment_info={"colour": "red", "depth": 10},
            model_info={"colour": "blue"},
            user_info={"note": "checked"},
        )
    })


@pytest.fixture
def ogc_config(tmp_path):
    from ogc_3dps.config import Ogc3dpsConfig
    return Ogc3dpsConfig(input_dir=str(tmp_path), cache_backend="memory")


@pytest.fixture
def service(registry, cache_store, index_builder, scene_generator, attribute_query, ogc_config):
    from ogc_3dps.service import Ogc3dpsService
    from ogc_3dps.splitter import PayloadSplitter
    return Ogc3dpsService(
        registry=registry,
        cache_store=cache_store,
        index_builder=index_builder,
        splitter=PayloadSplitter(cache_store),
        scene_generator=scene_generator,
        attribute_query=attribute_query,
        config=ogc_config
    )
