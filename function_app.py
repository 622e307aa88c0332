# ============================================================================
# CLAUDE CONTEXT - AZURE FUNCTIONS ENTRY POINT
# ============================================================================
# STATUS: Core Infrastructure - Function App Entry Point
# PURPOSE: Main entry point for Azure Functions runtime with the 3DPS borehole API
# LAST_REVIEWED: Current
# EXPORTS: app (FunctionApp instance)
# DEPENDENCIES: azure-functions, ogc_3dps, health
# ============================================================================

"""
Azure Functions Entry Point for the 3DPS borehole API

Registers the health checks and one catch-all trigger for the 3DPS / WFS
API. host.json sets an empty route prefix, so the trigger sees both
``/<model>`` and ``/api/<model>`` paths.

Endpoints:
    - /health - Public (minimal response for external callers)
    - /health/detailed - Internal (full metrics for APIM probes)
    - /{*path} - 3DPS / WFS requests and glTF binary buffers

Deployment:
    - Local: func start
    - Azure: func azure functionapp publish <app> --python --build remote

A missing provider configuration raises RegistryConfigError while the
trigger is built; the host then fails to start.
"""

import json
import azure.functions as func
import logging

from health import get_public_health, get_detailed_health, get_app_identity, HealthStatus

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = func.FunctionApp()

# ============================================================================
# Health Checks
# ============================================================================
# Registered before the catch-all route so that /health is not taken for a
# model name.

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def _health_response(result: dict, status_code: int = 200, indent=None) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(result, default=str, indent=indent),
        status_code=status_code,
        mimetype="application/json",
        headers=_NO_CACHE
    )


@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def public_health(req: func.HttpRequest) -> func.HttpResponse:
    """Status and timestamp only; the HTTP status is always 200."""
    return _health_response(get_public_health())


@app.route(route="health/detailed", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def detailed_health(req: func.HttpRequest) -> func.HttpResponse:
    """All probes; 503 when a critical probe fails. Keep behind APIM."""
    result = get_detailed_health()
    healthy = result["status"] != HealthStatus.UNHEALTHY.value
    return _health_response(result, 200 if healthy else 503, indent=2)


# ============================================================================
# 3DPS / WFS Borehole API - catch-all endpoint
# ============================================================================

try:
    from ogc_3dps import get_3dps_triggers

    logger.info("Registering 3DPS API endpoint...")

    ogc_3dps_triggers = get_3dps_triggers()

    @app.route(route=ogc_3dps_triggers[0]['route'], methods=ogc_3dps_triggers[0]['methods'],
               auth_level=func.AuthLevel.ANONYMOUS)
    def ogc_3dps_request(req: func.HttpRequest) -> func.HttpResponse:
        return ogc_3dps_triggers[0]['handler'](req)

    logger.info("✅ 3DPS API registered successfully")

except ImportError as e:
    logger.warning(f"⚠️ 3DPS module not available: {e}")
    logger.warning("3DPS API will not be available")

# ============================================================================
# Application Startup
# ============================================================================

_identity = get_app_identity()
_routes = [
    "GET /health                       public health",
    "GET /health/detailed              probe detail (APIM only)",
    "GET /{model}?service=3DPS&request=GetCapabilities",
    "GET /{model}?service=3DPS&request=GetResourceById&resourceId=...",
    "GET /{model}?service=3DPS&request=GetFeatureInfoByObjectId&objectId=...",
    "GET /{model}?service=WFS&request=GetPropertyValue&valueReference=borehole:id",
    "GET /{model}/$blobfile.bin?id={resourceId}",
]

logger.info("=" * 60)
logger.info(f"{_identity['name']}: {_identity['description']} (optional /api prefix)")
for _route in _routes:
    logger.info(f"  {_route}")
logger.info("=" * 60)
