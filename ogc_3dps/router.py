# ============================================================================
# CLAUDE CONTEXT - 3DPS REQUEST ROUTER
# ============================================================================
# STATUS: Standalone Module - Path/KVP parsing and OWS dispatch
# PURPOSE: Map (service, request, version) to a response builder, or to an OWS exception
# LAST_REVIEWED: Current
# EXPORTS: RoutedPath, parse_path, parse_kvp, first_value, dispatch
# DEPENDENCIES: re, urllib.parse, util_logger
# PATTERNS: Pure dispatch function, exceptions rendered in one place
# ============================================================================

"""
Request Router

Paths (the ``/api`` prefix is optional)::

    /<model>                        OWS KVP request
    /api/<model>
    /<model>/$blobfile.bin?id=...   glTF binary buffer fetch
    /api/<model>/$blobfile.bin?id=...

KVP keys are folded to lower case; repeated keys accumulate their values in
order. Values of ``service``, ``request`` and ``version`` are compared
case-insensitively.

Supported:

    3DPS 1.0  GetCapabilities, GetFeatureInfoByObjectId, GetResourceById
    WFS  2.0  GetPropertyValue
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import unquote

from util_logger import LoggerFactory, ComponentType
from .exceptions import (
    THREEDPS_VERSION,
    WFS_VERSION,
    InvalidParameterValue,
    MissingParameterValue,
    ModelNotFound,
    OperationNotSupported,
    OperationProcessingFailed,
    OWSException,
)
from .models import BLOB_FILE_NAME, ModelParameters, ServiceResponse
from .responses import exception_response

logger = LoggerFactory.create_logger(ComponentType.VALIDATOR, "Ogc3dpsRouter")

_BLOB_PATH = re.compile(r"^/(?:api/)?([\w\-]+)/" + re.escape(BLOB_FILE_NAME) + "$")
_API_MODEL_PATH = re.compile(r"^/api/([\w\-]+)/?$")
_MODEL_PATH = re.compile(r"^/([\w\-]+)/?$")

UNSUPPORTED_3DPS_REQUESTS = {
    "getscene",
    "getview",
    "getfeatureinfobyray",
    "getfeatureinfobyposition",
}

KVP = Dict[str, List[str]]


@dataclass(frozen=True)
class RoutedPath:
    model_name: str
    blob_fetch: bool = False


def parse_path(path: str) -> Optional[RoutedPath]:
    """Match the request path against the accepted shapes; None if none match."""
    match = _BLOB_PATH.match(path)
    if match:
        return RoutedPath(model_name=match.group(1), blob_fetch=True)

    for pattern in (_API_MODEL_PATH, _MODEL_PATH):
        match = pattern.match(path)
        if match:
            return RoutedPath(model_name=match.group(1))

    return None


def parse_kvp(query_string: str) -> KVP:
    """
    Parse a raw query string into lower-case keys with accumulated values.

    Percent escapes are decoded; '+' is kept literally so that MIME types
    such as model/gltf+json survive unencoded.
    """
    kvp: KVP = {}
    for pair in query_string.lstrip("?").split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        kvp.setdefault(unquote(key).lower(), []).append(unquote(value))
    return kvp


def first_value(kvp: KVP, key: str) -> str:
    """First value for a (lower-case) key, '' if absent."""
    values = kvp.get(key)
    return values[0] if values else ""


def require_value(kvp: KVP, key: str, expected: str, version: str = THREEDPS_VERSION,
                  missing=MissingParameterValue, invalid=InvalidParameterValue) -> str:
    """
    Validate that a parameter is present and equals expected (case-insensitive).

    Raises:
        missing: parameter absent
        invalid: parameter present with another value
    """
    value = first_value(kvp, key)
    if not value:
        raise missing(f"Missing '{key}' parameter", locator=key, version=version)
    if value.lower() != expected.lower():
        raise invalid(f"Incorrect '{key}', try \"{expected}\"", locator=key, version=version)
    return value


def _check_version(kvp: KVP, expected: str) -> None:
    version = first_value(kvp, "version")
    if not version:
        raise MissingParameterValue("Missing 'version' parameter", locator="version", version=expected)
    if version != expected:
        raise OperationProcessingFailed(
            f"Incorrect version, try \"{expected}\"", locator="version", version=expected
        )


def _require_model(service, model_name: str, version: str) -> ModelParameters:
    model = service.lookup_model(model_name)
    if model is None:
        raise ModelNotFound(model_name, version=version)
    return model


def _dispatch_3dps(service, model_name: str, kvp: KVP, base_url: str) -> ServiceResponse:
    model = _require_model(service, model_name, THREEDPS_VERSION)
    request = first_value(kvp, "request")
    request_lc = request.lower()

    if request_lc == "getcapabilities":
        return service.get_capabilities(model, base_url)
    if not request_lc:
        raise MissingParameterValue("Missing 'request' parameter", locator="request")
    if request_lc in UNSUPPORTED_3DPS_REQUESTS:
        raise OperationNotSupported(f"Request '{request}' is not supported", locator=request)
    if request_lc not in ("getfeatureinfobyobjectid", "getresourcebyid"):
        raise OperationNotSupported(f"Unknown request name '{request}'", locator="request")

    _check_version(kvp, THREEDPS_VERSION)

    if request_lc == "getresourcebyid":
        return service.get_resource_by_id(model, kvp)
    return service.get_feature_info_by_object_id(model, kvp)


def _dispatch_wfs(service, model_name: str, kvp: KVP) -> ServiceResponse:
    model = _require_model(service, model_name, WFS_VERSION)
    request = first_value(kvp, "request")
    request_lc = request.lower()

    if not request_lc:
        raise MissingParameterValue("Missing 'request' parameter", locator="request", version=WFS_VERSION)
    if request_lc != "getpropertyvalue":
        raise OperationNotSupported(
            f"Unknown request name '{request}'", locator="request", version=WFS_VERSION
        )

    _check_version(kvp, WFS_VERSION)
    return service.get_property_value(model, kvp)


def dispatch(service, model_name: str, kvp: KVP, base_url: str = "") -> ServiceResponse:
    """
    Route one OWS KVP request.

    Args:
        service: Response builder (Ogc3dpsService or compatible)
        model_name: Model path segment
        kvp: Output of parse_kvp
        base_url: Scheme and host, used in capabilities links

    Returns:
        The builder's response, or an OWS exception report
    """
    service_name = first_value(kvp, "service").upper()

    try:
        if service_name == "3DPS":
            return _dispatch_3dps(service, model_name, kvp, base_url)
        if service_name == "WFS":
            return _dispatch_wfs(service, model_name, kvp)
        if not service_name:
            raise MissingParameterValue("Missing 'service' parameter", locator="service")
        raise OperationNotSupported(f"Unknown service name '{service_name}'", locator="service")

    except OWSException as e:
        logger.info(
            f"OWS exception {e.code} ({e.locator}): {e.text}",
            extra={'custom_dimensions': {'model_name': model_name, 'ows_code': e.code}}
        )
        return exception_response(e)
