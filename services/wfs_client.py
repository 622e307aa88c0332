# ============================================================================
# CLAUDE CONTEXT - WFS BOREHOLE LISTING CLIENT
# ============================================================================
# STATUS: Service Layer - Upstream borehole listing
# PURPOSE: List borehole features from a model's WFS endpoint with a hard timeout
# LAST_REVIEWED: Current
# EXPORTS: WFSListingClient, WFSListingResponse
# DEPENDENCIES: httpx (sync), util_logger
# PORTABLE: Yes - no config imports, endpoint passed per call
# ============================================================================
"""
WFS Borehole Listing Client (SYNC).

Issues one ``GetFeature`` request per call against the endpoint described by
a model's ListingConnection, asking for GeoJSON output. The connection is a
plain descriptor; the underlying ``httpx.Client`` is created lazily and can
be shared between models.

No retries: a failed or timed-out call returns an unsuccessful response and
the caller decides how to degrade.
"""

import httpx
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "WFSListingClient")

JSON_OUTPUT_FORMAT = "application/json"


@dataclass
class WFSListingResponse:
    """Response wrapper for listing calls."""
    success: bool
    status_code: int
    features: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


class WFSListingClient:
    """
    Upstream WFS listing client.

    Usage:
        client = WFSListingClient(timeout=60)
        response = client.list_features(
            url="https://nvclwebservices.example/geoserver/wfs",
            version="1.1.0",
            type_name="gsmlp:BoreholeView",
            max_features=9999
        )
        if response.success:
            for feature in response.features: ...
        client.close()
    """

    def __init__(self, timeout: float = 60.0, client: Optional[httpx.Client] = None):
        """
        Args:
            timeout: Hard request timeout in seconds.
            client: Pre-built httpx client (tests inject a MockTransport here).
        """
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Get or create sync HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True
            )
        return self._client

    def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()

    @staticmethod
    def build_params(version: str, type_name: str, max_features: int) -> Dict[str, str]:
        """GetFeature KVP; WFS 2.x renamed typeName/maxFeatures to typeNames/count."""
        params = {
            "service": "WFS",
            "version": version,
            "request": "GetFeature",
            "outputFormat": JSON_OUTPUT_FORMAT,
        }
        if version.startswith("2."):
            params["typeNames"] = type_name
            params["count"] = str(max_features)
        else:
            params["typeName"] = type_name
            params["maxFeatures"] = str(max_features)
        return params

    def list_features(
        self,
        url: str,
        version: str,
        type_name: str,
        max_features: int
    ) -> WFSListingResponse:
        """
        List up to max_features features of type_name.

        Returns:
            WFSListingResponse with GeoJSON features (upstream order) or error
        """
        params = self.build_params(version, type_name, max_features)
        client = self._get_client()

        try:
            response = client.get(url, params=params, timeout=self.timeout)

            if response.status_code >= 400:
                return WFSListingResponse(
                    success=False,
                    status_code=response.status_code,
                    error=f"WFS error: {response.text[:200]}"
                )

            data = response.json()
            features = data.get("features") if isinstance(data, dict) else None
            if not isinstance(features, list):
                return WFSListingResponse(
                    success=False,
                    status_code=response.status_code,
                    error="WFS response is not a GeoJSON FeatureCollection"
                )

            logger.info(f"Listed {len(features)} features of {type_name} from {url}")
            return WFSListingResponse(
                success=True,
                status_code=response.status_code,
                features=features
            )

        except httpx.TimeoutException:
            return WFSListingResponse(
                success=False,
                status_code=504,
                error=f"WFS timeout after {self.timeout}s"
            )
        except httpx.RequestError as e:
            return WFSListingResponse(
                success=False,
                status_code=500,
                error=f"WFS request error: {str(e)}"
            )
        except ValueError as e:
            # response.json() on a non-JSON body (GML error document, HTML)
            return WFSListingResponse(
                success=False,
                status_code=502,
                error=f"WFS response is not JSON: {str(e)}"
            )
