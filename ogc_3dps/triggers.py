# ============================================================================
# CLAUDE CONTEXT - 3DPS TRIGGERS
# ============================================================================
# STATUS: Standalone HTTP Triggers - 3DPS / WFS borehole API endpoint
# PURPOSE: Azure Functions HTTP handler translating requests into router/service calls
# LAST_REVIEWED: Current
# EXPORTS: get_3dps_triggers, Ogc3dpsTrigger
# INTERFACES: Azure Functions HttpRequest/HttpResponse
# DEPENDENCIES: azure.functions, urllib.parse, util_logger
# SOURCE: HTTP requests from the 3D geomodel viewer
# PATTERNS: Trigger Pattern, Factory Pattern (get_3dps_triggers)
# ENTRY_POINTS: Function App route registration via get_3dps_triggers()
# ============================================================================

"""
3DPS HTTP Trigger - Azure Functions Handler

One catch-all route serves every accepted path shape; the router decides
what the path means. Every answer is HTTP 200, including protocol
exceptions and unexpected failures.

Integration:
    In function_app.py:

    from ogc_3dps import get_3dps_triggers

    for trigger in get_3dps_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])
"""

import azure.functions as func
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from util_logger import LoggerFactory, ComponentType, LogContext
from .models import ServiceResponse
from .responses import empty_response
from .router import dispatch, first_value, parse_kvp, parse_path
from .service import Ogc3dpsService, get_3dps_service

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "Ogc3dpsTrigger")


def get_3dps_triggers(service: Optional[Ogc3dpsService] = None) -> List[Dict[str, Any]]:
    """
    Get the 3DPS trigger configurations for function_app.py.

    Building the trigger builds the service, so a missing provider
    configuration stops the Function App at startup.
    """
    return [
        {
            'route': '{*path}',
            'methods': ['GET'],
            'handler': Ogc3dpsTrigger(service).handle
        }
    ]


class Ogc3dpsTrigger:
    """
    Catch-all trigger.

    Endpoints:
        GET /<model>?service=3DPS|WFS&...
        GET /api/<model>?service=3DPS|WFS&...
        GET /<model>/$blobfile.bin?id=<resourceId>
        GET /api/<model>/$blobfile.bin?id=<resourceId>
    """

    def __init__(self, service: Optional[Ogc3dpsService] = None):
        self.service = service or get_3dps_service()
        self.config = self.service.config

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        """
        Handle one request.

        Args:
            req: Azure Functions HTTP request

        Returns:
            HttpResponse (always status 200)
        """
        url = urlparse(req.url)
        routed = parse_path(url.path)
        if routed is None:
            logger.info(f"Unrecognised path: {url.path}")
            return self._http_response(empty_response())

        kvp = parse_kvp(url.query)
        context = LogContext(
            model_name=routed.model_name,
            service=first_value(kvp, "service") or None,
            request=first_value(kvp, "request") or None,
            resource_id=first_value(kvp, "resourceid") or first_value(kvp, "id") or None
        )

        try:
            if routed.blob_fetch:
                response = self.service.get_blob(routed.model_name, kvp)
            else:
                response = dispatch(
                    self.service,
                    routed.model_name,
                    kvp,
                    base_url=self.config.get_base_url(req.url)
                )

            logger.info(
                f"Answered {url.path}: {response.mimetype}, {len(response.body)} bytes",
                extra={'custom_dimensions': context.to_dict()}
            )
            return self._http_response(response)

        except Exception as e:
            logger.error(
                f"Error handling {url.path}: {e}",
                exc_info=True,
                extra={'custom_dimensions': context.to_dict()}
            )
            return self._http_response(empty_response())

    @staticmethod
    def _http_response(response: ServiceResponse) -> func.HttpResponse:
        return func.HttpResponse(
            body=response.body,
            status_code=response.status_code,
            headers=dict(response.headers),
            mimetype=response.mimetype
        )
