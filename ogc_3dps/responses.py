"""
Response helpers shared by the router and the response builders.

Every response is HTTP 200: the 3D viewer cannot cope with error statuses,
so protocol errors travel in the body as OWS exception reports.
"""

import json
from typing import Any

from .exceptions import OWSException
from .models import ExceptionItem, ExceptionReport, ServiceResponse

JSON_MIMETYPE = "application/json"
TEXT_MIMETYPE = "text/plain"
XML_MIMETYPE = "text/xml"


def empty_response() -> ServiceResponse:
    """Single-space plain text, the generic 'nothing here' answer."""
    return ServiceResponse(body=b" ", mimetype=TEXT_MIMETYPE)


def empty_json_response() -> ServiceResponse:
    return ServiceResponse(body=b"{}", mimetype=JSON_MIMETYPE)


def json_response(data: Any) -> ServiceResponse:
    # Pydantic models serialise themselves
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    return ServiceResponse(body=json.dumps(data).encode("utf-8"), mimetype=JSON_MIMETYPE)


def exception_response(exc: OWSException) -> ServiceResponse:
    report = ExceptionReport(
        version=exc.version,
        exceptions=[ExceptionItem(code=exc.code, locator=exc.locator, text=exc.text)]
    )
    return json_response(report)
