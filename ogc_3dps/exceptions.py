# ============================================================================
# CLAUDE CONTEXT - 3DPS EXCEPTIONS
# ============================================================================
# STATUS: Standalone Module - Exception hierarchy for the 3DPS/WFS API
# PURPOSE: Separate client-visible OWS exceptions from infrastructure failures
# LAST_REVIEWED: Current
# EXPORTS: OWSException, MissingParameterValue, InvalidParameterValue, OperationNotSupported,
#          OperationProcessingFailed, ModelNotFound, RegistryConfigError, ListingError
# DEPENDENCIES: None (standard library only)
# PATTERNS: Exception hierarchy for error categorization
# ============================================================================

"""
Exception Hierarchy

1. OWS exceptions - the client sent something we will not serve. Rendered
   as an OWS exception report (JSON, HTTP 200) by the router.
2. Infrastructure errors - config, upstream listing. Logged where they are
   caught; query operations degrade to empty results instead of failing.
"""

THREEDPS_VERSION = "1.0"
WFS_VERSION = "2.0"

NO_LOCATOR = "noLocator"


class OWSException(Exception):
    """
    Base class for client-visible protocol exceptions.

    Attributes:
        code: OWS exception code
        locator: Offending parameter (lower-case KVP name) or request name
        text: Human-readable message
        version: Protocol version echoed in the report
    """
    code = "NoApplicableCode"

    def __init__(self, text: str, locator: str = NO_LOCATOR, version: str = THREEDPS_VERSION):
        super().__init__(text)
        self.text = text
        self.locator = locator or NO_LOCATOR
        self.version = version


class MissingParameterValue(OWSException):
    """Required query parameter absent."""
    code = "MissingParameterValue"


class InvalidParameterValue(OWSException):
    """Parameter present but not an allowed value."""
    code = "InvalidParameterValue"


class OperationNotSupported(OWSException):
    """Unknown or deliberately unimplemented service/request."""
    code = "OperationNotSupported"


class OperationProcessingFailed(OWSException):
    """Wrong protocol version, or a WFS parameter we cannot process."""
    code = "OperationProcessingFailed"


class ModelNotFound(OWSException):
    """Model path segment not present in the registry."""
    code = "NotFound"

    def __init__(self, model_name: str, version: str = THREEDPS_VERSION):
        super().__init__(f"Model '{model_name}' not found", locator="model", version=version)
        self.model_name = model_name


class RegistryConfigError(RuntimeError):
    """
    Provider/model configuration missing or unreadable.

    Fatal: the Function App cannot serve any model without it.
    """


class ListingError(RuntimeError):
    """Upstream borehole listing failed (network, timeout, bad response)."""
