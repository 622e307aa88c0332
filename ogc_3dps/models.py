# ============================================================================
# CLAUDE CONTEXT - 3DPS MODELS
# ============================================================================
# STATUS: Standalone Models - 3DPS / WFS borehole API
# PURPOSE: Domain values (registry, boreholes, scene payloads) and OGC response documents
# LAST_REVIEWED: Current
# EXPORTS: ListingConnection, ModelParameters, ModelRegistry, BoreholeRecord, BoreholeIndex,
#          NotFound, ScenePart, ScenePayload, ScenePayloadError, CachedBlob, BLOB_FILE_NAME,
#          FeatureAttribute, FeatureInfo, FeatureInfoList, ValueCollection,
#          ExceptionReport, ExceptionItem, ServiceResponse
# INTERFACES: Pydantic BaseModel, dataclasses
# DEPENDENCIES: pydantic, typing, dataclasses
# SOURCE: OGC 3DPS 1.0 JSON encodings, glTF 2.0 (document + binary buffer)
# PATTERNS: Immutable value objects, Data Transfer Objects (DTOs)
# ============================================================================

"""
3DPS Borehole API Models

Domain values are frozen pydantic models so that they can be written to the
cache store as JSON and read back unchanged. Scene payloads hold raw bytes
and are plain dataclasses.

References:
- OGC 3D Portrayal Service 1.0: https://docs.ogc.org/is/15-001r4/15-001r4.html
- glTF 2.0: https://registry.khronos.org/glTF/specs/2.0/glTF-2.0.html
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Model registry
# ============================================================================

class ListingConnection(BaseModel):
    """
    Where a model's boreholes are listed.

    A plain descriptor, reconnected per call; no live client is stored.
    """
    model_config = ConfigDict(frozen=True)

    url: str = Field(description="WFS endpoint URL")
    version: str = Field(default="1.1.0", description="WFS protocol version")
    type_name: str = Field(default="gsmlp:BoreholeView", description="Feature type to list")


class ModelParameters(BaseModel):
    """Per-model coordinate and conversion parameters."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Model name as used in the URL path")
    provider: str = Field(default="", description="Data provider the model belongs to")
    crs: str = Field(description="Coordinate reference system code, e.g. EPSG:28352")
    conversion: Dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque conversion parameters from the model's config file"
    )
    listing: Optional[ListingConnection] = Field(
        default=None,
        description="Upstream borehole listing endpoint, if the model has boreholes"
    )


class ModelRegistry(BaseModel):
    """Immutable map of model name to parameters, built once at startup."""
    model_config = ConfigDict(frozen=True)

    models: Dict[str, ModelParameters] = Field(default_factory=dict)

    def lookup(self, name: str) -> Optional[ModelParameters]:
        return self.models.get(name)

    def names(self) -> List[str]:
        return sorted(self.models)

    def __contains__(self, name: str) -> bool:
        return name in self.models

    def __len__(self) -> int:
        return len(self.models)


# ============================================================================
# Boreholes
# ============================================================================

AttributeValue = Union[str, int, float, bool, None]


class BoreholeRecord(BaseModel):
    """One upstream borehole; nvcl_id is the upstream id, not the resource id."""
    model_config = ConfigDict(frozen=True)

    nvcl_id: str
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)


@dataclass(frozen=True)
class NotFound:
    """Explicit miss returned by lookups instead of raising."""
    key: str = ""

    def __bool__(self) -> bool:
        return False


class BoreholeIndex(BaseModel):
    """
    Boreholes of one model, built from a single listing call.

    ``records`` maps resource id to record; ``ids`` keeps the upstream order
    as ``{"borehole:id": <resource id>}`` entries for ValueCollection output.
    """
    model_config = ConfigDict(frozen=True)

    records: Dict[str, BoreholeRecord] = Field(default_factory=dict)
    ids: List[Dict[str, str]] = Field(default_factory=list)

    def lookup(self, resource_id: str) -> Union[BoreholeRecord, NotFound]:
        record = self.records.get(resource_id)
        if record is None:
            return NotFound(resource_id)
        return record

    @classmethod
    def from_records(cls, ordered: List[Tuple[str, BoreholeRecord]]) -> "BoreholeIndex":
        """Build both structures from one ordered (resource id, record) sequence."""
        records: Dict[str, BoreholeRecord] = {}
        ids: List[Dict[str, str]] = []
        for resource_id, record in ordered:
            if resource_id in records:
                continue
            records[resource_id] = record
            ids.append({"borehole:id": resource_id})
        return cls(records=records, ids=ids)

    def __len__(self) -> int:
        return len(self.records)


# ============================================================================
# Scene payloads
# ============================================================================

DOCUMENT_TAG = ""
BINARY_TAG = "bin"

# Path segment serving cached binary parts: /<model>/$blobfile.bin?id=<resourceId>
BLOB_FILE_NAME = "$blobfile.bin"


class ScenePayloadError(ValueError):
    """Scene payload does not hold exactly one document and one binary part."""


@dataclass(frozen=True)
class ScenePart:
    tag: str
    data: bytes


@dataclass(frozen=True)
class ScenePayload:
    """
    The two-part output of the scene generator.

    Exactly two parts: tag "" holds the UTF-8 glTF JSON document, tag "bin"
    holds the binary buffer it references.
    """
    parts: Tuple[ScenePart, ScenePart]

    def __post_init__(self):
        if len(self.parts) != 2:
            raise ScenePayloadError(f"Expected 2 scene parts, got {len(self.parts)}")
        tags = sorted(part.tag for part in self.parts)
        if tags != [DOCUMENT_TAG, BINARY_TAG]:
            raise ScenePayloadError(f"Unexpected scene part tags: {tags}")

    @classmethod
    def from_parts(cls, parts) -> "ScenePayload":
        """Build from any iterable of ScenePart or (tag, bytes) pairs."""
        converted = []
        for part in parts:
            if not isinstance(part, ScenePart):
                tag, data = part
                part = ScenePart(tag=tag, data=bytes(data))
            converted.append(part)
        return cls(parts=tuple(converted))

    def part(self, tag: str) -> ScenePart:
        return next(p for p in self.parts if p.tag == tag)


@dataclass(frozen=True)
class CachedBlob:
    model_name: str
    resource_id: str
    data: bytes

    @property
    def byte_length(self) -> int:
        return len(self.data)


# ============================================================================
# OGC response documents
# ============================================================================

class FeatureAttribute(BaseModel):
    type: Literal["FeatureAttribute"] = "FeatureAttribute"
    name: str
    # Attribute groups are JSONB, so lists and objects pass through as-is
    value: Any


class FeatureInfo(BaseModel):
    type: Literal["FeatureInfo"] = "FeatureInfo"
    objectIds: List[str]
    featureId: str
    featureAttributeList: List[FeatureAttribute]


class FeatureInfoList(BaseModel):
    """3DPS GetFeatureInfoByObjectId response (always one FeatureInfo here)."""
    type: Literal["FeatureInfoList"] = "FeatureInfoList"
    totalFeatureInfo: int
    featureInfos: List[FeatureInfo]


class ValueCollection(BaseModel):
    """WFS 2.0 GetPropertyValue response, JSON encoding."""
    type: Literal["ValueCollection"] = "ValueCollection"
    totalValues: int
    values: List[Dict[str, str]]


class ExceptionItem(BaseModel):
    code: str
    locator: str = "noLocator"
    text: str


class ExceptionReport(BaseModel):
    """OWS exception report, JSON encoding. Always served with HTTP 200."""
    version: str
    exceptions: List[ExceptionItem]


# ============================================================================
# Transport-neutral response
# ============================================================================

@dataclass
class ServiceResponse:
    """What a response builder hands to the HTTP trigger."""
    body: bytes
    mimetype: str
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
