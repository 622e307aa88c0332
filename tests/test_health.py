"""Tests for the two-tier health checks (in-memory cache backend)."""

import health
from infrastructure.cache_store import MemoryCacheStore


class OfflineCacheStore(MemoryCacheStore):
    def ping(self):
        return False


class TestHealth:

    def test_public_health(self, service, monkeypatch):
        monkeypatch.setattr(health, "_get_service", lambda: service)

        result = health.get_public_health()

        assert result["status"] == "healthy"
        assert "timestamp" in result
        assert set(result) == {"status", "timestamp"}

    def test_detailed_health(self, service, monkeypatch):
        monkeypatch.setattr(health, "_get_service", lambda: service)

        result = health.get_detailed_health()

        assert result["status"] == "healthy"
        assert "database" not in result["checks"]
        assert result["checks"]["cache_store"]["details"]["backend"] == "MemoryCacheStore"
        assert result["checks"]["model_registry"]["details"]["models"] == ["Alpha"]

    def test_cache_store_down_is_unhealthy(self, service, monkeypatch):
        service.cache_store = OfflineCacheStore()
        monkeypatch.setattr(health, "_get_service", lambda: service)

        assert health.get_detailed_health()["status"] == "unhealthy"
        assert health.get_public_health()["status"] == "unhealthy"
