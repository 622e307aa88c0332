# ============================================================================
# CLAUDE CONTEXT - 3DPS SERVICE
# ============================================================================
# STATUS: Standalone Service - 3DPS / WFS response builders
# PURPOSE: Build capabilities, feature info, resource, property value and binary responses
# LAST_REVIEWED: Current
# EXPORTS: Ogc3dpsService, get_3dps_service, LAYER_NAME, PROPERTY_NAME
# DEPENDENCIES: pydantic, xml.sax.saxutils, infrastructure.cache_store, util_logger
# SOURCE: ModelRegistry, BoreholeIndexBuilder, PayloadSplitter, AttributeQuery
# PATTERNS: Service Layer, Facade Pattern
# ENTRY_POINTS: service = get_3dps_service(); service.get_resource_by_id(model, kvp)
# INDEX: Ogc3dpsService:103, get_capabilities:180, get_feature_info_by_object_id:194,
#        get_resource_by_id:232, split_resource:243, get_property_value:279, get_blob:300
# ============================================================================

"""
3DPS Service - Response Builders

One builder per supported operation. Builders validate their own
operation-specific parameters (raising OWS exceptions that the router turns
into exception reports) and otherwise always produce a 200 response:
missing resources and infrastructure failures degrade to empty bodies.
"""

from typing import Optional
from xml.sax.saxutils import escape

from infrastructure.cache_store import (
    CacheStore,
    CacheStoreError,
    MemoryCacheStore,
    PostgresCacheStore,
    blob_key,
)
from services.wfs_client import WFSListingClient
from util_logger import LoggerFactory, ComponentType, log_exceptions
from .borehole_index import BoreholeIndexBuilder
from .config import Ogc3dpsConfig, get_3dps_config
from .exceptions import WFS_VERSION, MissingParameterValue, OperationProcessingFailed
from .models import (
    CachedBlob,
    FeatureAttribute,
    FeatureInfo,
    FeatureInfoList,
    ModelParameters,
    ModelRegistry,
    NotFound,
    ServiceResponse,
    ValueCollection,
)
from .registry import load_registry
from .repository import (
    AttributeQuery,
    BoreholeAttributeQuery,
    ChainedAttributeQuery,
    FeatureAttributeRepository,
)
from .responses import JSON_MIMETYPE, XML_MIMETYPE, empty_json_response, empty_response, json_response
from .router import KVP, first_value, require_value
from .scene import SceneGenerator, load_scene_generator
from .splitter import BINARY_MIMETYPE, GLTF_MIMETYPE, PayloadSplitter, SplitResult

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "Ogc3dpsService")

LAYER_NAME = "boreholes"
PROPERTY_NAME = "borehole:id"

CAPABILITIES_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<Capabilities xmlns="http://www.opengis.net/3dp/1.0"
    xmlns:ows="http://www.opengis.net/ows/2.0"
    xmlns:xlink="http://www.w3.org/1999/xlink"
    service="3DPS" version="1.0">
  <ows:ServiceIdentification>
    <ows:Title>3D Portrayal Service for {model}</ows:Title>
    <ows:Abstract>Borehole 3D scene fragments for geological model {model}</ows:Abstract>
    <ows:ServiceType codeSpace="OGC">3DPS</ows:ServiceType>
    <ows:ServiceTypeVersion>1.0</ows:ServiceTypeVersion>
  </ows:ServiceIdentification>
  <ows:OperationsMetadata>
{operations}
  </ows:OperationsMetadata>
  <Contents>
    <Layer>
      <ows:Identifier>{layer}</ows:Identifier>
      <ows:Title>Boreholes</ows:Title>
      <AvailableCRS>{crs}</AvailableCRS>
    </Layer>
  </Contents>
</Capabilities>
"""

OPERATION_TEMPLATE = """    <ows:Operation name="{name}">
      <ows:DCP>
        <ows:HTTP>
          <ows:Get xlink:href="{href}"/>
        </ows:HTTP>
      </ows:DCP>
    </ows:Operation>"""

CAPABILITIES_OPERATIONS = ("GetCapabilities", "GetResourceById", "GetFeatureInfoByObjectId")


class Ogc3dpsService:
    """
    Business logic service for the 3DPS / WFS borehole API.

    All collaborators are injected; ``from_config`` wires the production set.
    The registry is read-only after construction.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        cache_store: CacheStore,
        index_builder: BoreholeIndexBuilder,
        splitter: PayloadSplitter,
        scene_generator: SceneGenerator,
        attribute_query: AttributeQuery,
        config: Optional[Ogc3dpsConfig] = None
    ):
        self.registry = registry
        self.cache_store = cache_store
        self.index_builder = index_builder
        self.splitter = splitter
        self.scene_generator = scene_generator
        self.attribute_query = attribute_query
        self.config = config or get_3dps_config()
        logger.info(f"Ogc3dpsService initialized with {len(registry)} models")

    @classmethod
    @log_exceptions(logger=logger)
    def from_config(cls, config: Optional[Ogc3dpsConfig] = None) -> "Ogc3dpsService":
        """
        Wire the production collaborators.

        Raises:
            RegistryConfigError: provider configuration missing (fatal)
        """
        config = config or get_3dps_config()

        if config.cache_backend == "memory":
            cache_store = MemoryCacheStore()
        else:
            cache_store = PostgresCacheStore(
                schema_name=config.cache_schema,
                table_name=config.cache_table
            )

        registry = load_registry(config, cache_store)
        index_builder = BoreholeIndexBuilder(
            cache_store,
            WFSListingClient(timeout=config.listing_timeout_seconds),
            max_features=config.max_boreholes
        )

        queries = [BoreholeAttributeQuery(registry, index_builder)]
        if config.cache_backend == "postgres":
            queries.append(FeatureAttributeRepository(
                schema_name=config.cache_schema,
                table_name=config.attribute_table
            ))

        return cls(
            registry=registry,
            cache_store=cache_store,
            index_builder=index_builder,
            splitter=PayloadSplitter(cache_store),
            scene_generator=load_scene_generator(config.scene_generator),
            attribute_query=ChainedAttributeQuery(queries),
            config=config
        )

    def lookup_model(self, name: str) -> Optional[ModelParameters]:
        return self.registry.lookup(name)

    # ========================================================================
    # 3DPS
    # ========================================================================

    def get_capabilities(self, model: ModelParameters, base_url: str) -> ServiceResponse:
        """Fixed capabilities document naming the boreholes layer and model CRS."""
        href = escape(f"{base_url.rstrip('/')}/api/{model.name}?")
        operations = "\n".join(
            OPERATION_TEMPLATE.format(name=name, href=href) for name in CAPABILITIES_OPERATIONS
        )
        document = CAPABILITIES_TEMPLATE.format(
            model=escape(model.name),
            operations=operations,
            layer=LAYER_NAME,
            crs=escape(model.crs)
        )
        return ServiceResponse(body=document.encode("utf-8"), mimetype=XML_MIMETYPE)

    def get_feature_info_by_object_id(self, model: ModelParameters, kvp: KVP) -> ServiceResponse:
        """
        Attributes of one object as a FeatureInfoList.

        Segment, part, model and user attribute groups are merged in that
        order, later groups overriding earlier ones. A failed lookup answers
        with the single-space body.
        """
        object_id = first_value(kvp, "objectid")
        if not object_id:
            raise MissingParameterValue("Missing 'objectid' parameter", locator="objectid")
        require_value(kvp, "format", JSON_MIMETYPE)
        require_value(kvp, "layers", LAYER_NAME)

        result = self.attribute_query.query(object_id, model.name)
        if not result.ok:
            logger.info(f"No attributes for '{object_id}' in '{model.name}'")
            return empty_response()

        merged = {}
        for group in result.groups():
            merged.update(group)

        feature_info = FeatureInfoList(
            totalFeatureInfo=1,
            featureInfos=[
                FeatureInfo(
                    objectIds=[object_id],
                    featureId=object_id,
                    featureAttributeList=[
                        FeatureAttribute(name=name, value=value)
                        for name, value in merged.items()
                    ]
                )
            ]
        )
        return json_response(feature_info)

    def get_resource_by_id(self, model: ModelParameters, kvp: KVP) -> ServiceResponse:
        """
        glTF document for one borehole; its binary buffer goes to the cache.

        Unknown resources and generator failures answer ``{}``.
        """
        result = self.split_resource(model, kvp)
        if result is None or result.document_response is None:
            return empty_json_response()
        return result.document_response

    def split_resource(self, model: ModelParameters, kvp: KVP) -> Optional[SplitResult]:
        """
        Generate and split the scene for one borehole.

        Returns both response variants: the rewritten document, and the
        binary part as an inline octet-stream response for in-process
        callers. HTTP clients only receive the document and fetch the binary
        part through ``$blobfile.bin``. None when the resource is unknown or
        the generator produced nothing.
        """
        require_value(kvp, "outputformat", GLTF_MIMETYPE)
        resource_id = first_value(kvp, "resourceid")
        if not resource_id:
            raise MissingParameterValue("Missing 'resourceid' parameter", locator="resourceid")

        index, _ = self.index_builder.get_index(model)
        record = index.lookup(resource_id)
        if isinstance(record, NotFound):
            logger.info(f"Resource '{resource_id}' not in '{model.name}' borehole index")
            return None

        try:
            payload = self.scene_generator.generate(record, model, resource_id)
        except Exception as e:
            # The generator is external code; any failure means "no scene"
            logger.error(f"Scene generation failed for {model.name}/{resource_id}: {e}", exc_info=True)
            return None

        if payload is None:
            return None
        return self.splitter.split(model.name, resource_id, payload)

    # ========================================================================
    # WFS
    # ========================================================================

    def get_property_value(self, model: ModelParameters, kvp: KVP) -> ServiceResponse:
        """Ordered borehole ids of the model as a ValueCollection."""
        for key, expected in (
            ("outputformat", JSON_MIMETYPE),
            ("typename", LAYER_NAME),
            ("valuereference", PROPERTY_NAME),
        ):
            require_value(
                kvp, key, expected,
                version=WFS_VERSION,
                missing=OperationProcessingFailed,
                invalid=OperationProcessingFailed
            )

        _, ids = self.index_builder.get_index(model)
        return json_response(ValueCollection(totalValues=len(ids), values=ids))

    # ========================================================================
    # Binary companion
    # ========================================================================

    def get_blob(self, model_name: str, kvp: KVP) -> ServiceResponse:
        """Cached glTF binary buffer, or the single-space body on any miss."""
        resource_id = first_value(kvp, "id")
        if not resource_id:
            return empty_response()

        try:
            data = self.cache_store.get(blob_key(model_name, resource_id))
        except CacheStoreError as e:
            logger.error(f"Binary fetch failed for {model_name}/{resource_id}: {e}")
            return empty_response()

        if data is None:
            logger.info(f"No cached binary for {model_name}/{resource_id}")
            return empty_response()

        blob = CachedBlob(model_name=model_name, resource_id=resource_id, data=data)
        return ServiceResponse(
            body=blob.data,
            mimetype=BINARY_MIMETYPE,
            headers={"Content-Length": str(blob.byte_length)}
        )


_service: Optional[Ogc3dpsService] = None


def get_3dps_service() -> Ogc3dpsService:
    """Get singleton service, built from configuration on first use."""
    global _service

    if _service is None:
        _service = Ogc3dpsService.from_config()

    return _service
