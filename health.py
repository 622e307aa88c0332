# ============================================================================
# CLAUDE CONTEXT - HEALTH CHECK MODULE
# ============================================================================
# STATUS: Core Infrastructure - Health Monitoring
# PURPOSE: Cache store, database and model registry probes for APIM and monitoring
# LAST_REVIEWED: Current
# EXPORTS: get_public_health, get_detailed_health, get_app_identity, HealthStatus
# DEPENDENCIES: psycopg, config, ogc_3dps, util_logger
# PATTERNS: Two-tier health checks (public/detailed) for APIM
# ============================================================================

"""
Health Check Module for the 3DPS borehole API

/health            status + timestamp, always 200
/health/detailed   every probe with latency; the route answers 503 when unhealthy

Probes:
    cache_store      critical - every request but GetCapabilities reads it
    database         critical - only with the PostgreSQL cache backend
    model_registry   non-critical - an empty registry still answers (NotFound)
"""

import time
import uuid
import psycopg
from enum import Enum
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

from config import get_postgres_connection_string, get_app_config
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "HealthService")

APP_NAME = "geomodel-3dps-api"
APP_DESCRIPTION = "OGC 3DPS / WFS Borehole API"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"      # Non-critical probe failing
    UNHEALTHY = "unhealthy"    # Critical probe failing


@dataclass
class CheckResult:
    """Outcome of one probe."""
    passed: bool
    latency_ms: float
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": "pass" if self.passed else "fail",
            "latency_ms": round(self.latency_ms, 2),
            "message": self.message
        }
        if self.details:
            result["details"] = self.details
        return result


ProbeOutcome = Tuple[bool, str, Dict[str, Any]]


def _timed(name: str, probe: Callable[[], ProbeOutcome]) -> CheckResult:
    """Run a probe, timing it; an exception counts as a failed probe."""
    start_time = time.perf_counter()
    try:
        passed, message, details = probe()
    except Exception as e:
        logger.error(f"Health probe '{name}' failed: {e}")
        passed, message, details = False, f"{name} check failed: {type(e).__name__}", {"error": str(e)}
    return CheckResult(passed, (time.perf_counter() - start_time) * 1000, message, details)


def get_app_identity() -> Dict[str, str]:
    """Name and description used in startup logs and detailed health."""
    return {"name": APP_NAME, "description": APP_DESCRIPTION}


# ============================================================================
# Probes
# ============================================================================

def check_database_connectivity(timeout_seconds: float = 5.0) -> CheckResult:
    """SELECT 1 against the configured PostgreSQL server."""
    def probe() -> ProbeOutcome:
        config = get_app_config()
        with psycopg.connect(get_postgres_connection_string(),
                             connect_timeout=int(timeout_seconds)) as conn:
            conn.execute("SELECT 1").fetchone()
        return True, "PostgreSQL reachable", {
            "host": config.postgis_host,
            "database": config.postgis_database,
            "auth_mode": config.auth_mode
        }

    return _timed("database", probe)


def check_cache_store(service) -> CheckResult:
    def probe() -> ProbeOutcome:
        reachable = service.cache_store.ping()
        return (
            reachable,
            "Cache store reachable" if reachable else "Cache store unreachable",
            {"backend": type(service.cache_store).__name__}
        )

    return _timed("cache_store", probe)


def check_model_registry(service) -> CheckResult:
    def probe() -> ProbeOutcome:
        names = service.registry.names()
        return bool(names), f"{len(names)} models registered", {"models": names}

    return _timed("model_registry", probe)


def _get_service():
    from ogc_3dps.service import get_3dps_service
    return get_3dps_service()


# ============================================================================
# Entry points
# ============================================================================

def get_public_health() -> Dict[str, Any]:
    """Status and timestamp only; no internal details."""
    start_time = time.perf_counter()

    # Service construction failures count as unhealthy too
    result = _timed("cache_store", _public_probe)
    status = HealthStatus.HEALTHY if result.passed else HealthStatus.UNHEALTHY

    logger.info("Public health check completed", extra={
        'custom_dimensions': {
            'status': status.value,
            'duration_ms': round((time.perf_counter() - start_time) * 1000, 2),
            'check_type': 'public'
        }
    })

    return {"status": status.value, "timestamp": datetime.now(timezone.utc).isoformat()}


def _public_probe() -> ProbeOutcome:
    result = check_cache_store(_get_service())
    return result.passed, result.message, {}


def get_detailed_health() -> Dict[str, Any]:
    """
    Every probe with latency, for APIM backend probes and operations.

    SECURITY NOTE: Block this endpoint from external access via APIM policy.
    """
    start_time = time.perf_counter()
    request_id = str(uuid.uuid4())[:8]
    service = _get_service()

    critical = {"cache_store": check_cache_store(service)}
    if service.config.cache_backend == "postgres":
        critical["database"] = check_database_connectivity()
    non_critical = {"model_registry": check_model_registry(service)}

    critical_failures = [name for name, r in critical.items() if not r.passed]
    non_critical_failures = [name for name, r in non_critical.items() if not r.passed]

    if critical_failures:
        status = HealthStatus.UNHEALTHY
    elif non_critical_failures:
        status = HealthStatus.DEGRADED
    else:
        status = HealthStatus.HEALTHY

    total_ms = round((time.perf_counter() - start_time) * 1000, 2)

    logger.info("Detailed health check completed", extra={
        'custom_dimensions': {
            'status': status.value,
            'duration_ms': total_ms,
            'check_type': 'detailed',
            'request_id': request_id,
            'critical_failures': critical_failures,
            'non_critical_failures': non_critical_failures
        }
    })

    identity = get_app_identity()
    return {
        "status": status.value,
        "app": identity["name"],
        "description": identity["description"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "checks": {name: r.to_dict() for name, r in {**critical, **non_critical}.items()},
        "total_duration_ms": total_ms
    }
