# ============================================================================
# CLAUDE CONTEXT - MODEL REGISTRY
# ============================================================================
# STATUS: Standalone Module - Per-model parameters and listing connections
# PURPOSE: Build the immutable ModelRegistry once at startup, from cache or config files
# LAST_REVIEWED: Current
# EXPORTS: load_registry, build_registry_from_files, MODEL_PARAMS_KEY, LISTING_CONNECTIONS_KEY
# DEPENDENCIES: pydantic, json, pathlib, infrastructure.cache_store
# SOURCE: ProviderModelInfo.json + one conversion parameter file per model
# PATTERNS: Cache-aside with insert-if-absent population
# ============================================================================

"""
Model Registry Loader

Provider configuration (``ProviderModelInfo.json``)::

    {
        "GSSA": {
            "NorthGawler": {"configFile": "NorthGawlerConvParam.json",
                            "modelUrlPath": "northgawler"}
        }
    }

Conversion parameter file::

    {
        "ModelProperties": {"crs": "EPSG:28353", ...},
        "BoreholeData": {"WFS_URL": "https://...", "WFS_VERSION": "1.1.0"}
    }

The finished registry is written to the cache store as two entries, the
parameter map and the listing-connection map, so that later cold starts can
skip reading every model file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from infrastructure.cache_store import CacheStore, CacheStoreError, registry_key
from .config import Ogc3dpsConfig
from .exceptions import RegistryConfigError
from .models import ListingConnection, ModelParameters, ModelRegistry

logger = logging.getLogger(__name__)

MODEL_PARAMS_KEY = registry_key("model_parameters")
LISTING_CONNECTIONS_KEY = registry_key("listing_connections")

_params_adapter = TypeAdapter(Dict[str, ModelParameters])
_connections_adapter = TypeAdapter(Dict[str, ListingConnection])


def _read_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RegistryConfigError(f"Cannot read configuration file {path}: {e}") from e


def _listing_from_params(borehole_data: Dict[str, Any]) -> Optional[ListingConnection]:
    url = borehole_data.get("WFS_URL")
    if not url:
        return None
    return ListingConnection(
        url=url,
        version=borehole_data.get("WFS_VERSION", "1.1.0"),
        type_name=borehole_data.get("WFS_TYPE_NAME", "gsmlp:BoreholeView")
    )


def build_registry_from_files(config: Ogc3dpsConfig) -> ModelRegistry:
    """
    Read the provider index and every model's conversion parameter file.

    Raises:
        RegistryConfigError: input dir, provider file or a model file is missing
            or malformed
    """
    input_dir = Path(config.input_dir)
    provider_path = config.provider_config_path

    if not input_dir.is_dir():
        raise RegistryConfigError(f"Input directory does not exist: {input_dir}")
    if not provider_path.is_file():
        raise RegistryConfigError(f"Provider configuration file does not exist: {provider_path}")

    providers = _read_json(provider_path)
    if not isinstance(providers, dict):
        raise RegistryConfigError(f"{provider_path} must hold an object of providers")

    models: Dict[str, ModelParameters] = {}
    for provider, provider_models in providers.items():
        if not isinstance(provider_models, dict):
            raise RegistryConfigError(f"Provider '{provider}' must map model keys to model info")

        for model_key, model_info in provider_models.items():
            config_file = model_info.get("configFile") if isinstance(model_info, dict) else None
            if not config_file:
                raise RegistryConfigError(f"Model '{model_key}' of '{provider}' has no configFile")

            name = model_info.get("modelUrlPath") or model_key
            params = _read_json(input_dir / config_file)
            properties = params.get("ModelProperties", {})
            if "crs" not in properties:
                raise RegistryConfigError(f"{config_file}: ModelProperties.crs is required")

            models[name] = ModelParameters(
                name=name,
                provider=provider,
                crs=properties["crs"],
                conversion=params,
                listing=_listing_from_params(params.get("BoreholeData", {}))
            )
            logger.info(f"Registered model '{name}' ({provider})")

    return ModelRegistry(models=models)


def _split_for_cache(registry: ModelRegistry):
    params = {
        name: model.model_copy(update={"listing": None})
        for name, model in registry.models.items()
    }
    connections = {
        name: model.listing
        for name, model in registry.models.items()
        if model.listing is not None
    }
    return _params_adapter.dump_json(params), _connections_adapter.dump_json(connections)


def _join_from_cache(params_blob: bytes, connections_blob: bytes) -> ModelRegistry:
    params = _params_adapter.validate_json(params_blob)
    connections = _connections_adapter.validate_json(connections_blob)
    return ModelRegistry(models={
        name: model.model_copy(update={"listing": connections.get(name)})
        for name, model in params.items()
    })


def load_registry(config: Ogc3dpsConfig, cache_store: CacheStore) -> ModelRegistry:
    """
    Load the model registry, preferring the cached copy.

    A miss (or unreadable cached copy) rebuilds from the config files and adds
    both cache entries; another worker winning that race is fine. Cache
    failures are logged and the registry is still built from files.

    Raises:
        RegistryConfigError: configuration directory or file is absent
    """
    if not Path(config.input_dir).is_dir():
        raise RegistryConfigError(f"Input directory does not exist: {config.input_dir}")
    if not config.provider_config_path.is_file():
        raise RegistryConfigError(
            f"Provider configuration file does not exist: {config.provider_config_path}"
        )

    try:
        params_blob = cache_store.get(MODEL_PARAMS_KEY)
        connections_blob = cache_store.get(LISTING_CONNECTIONS_KEY)
    except CacheStoreError as e:
        logger.error(f"Registry cache unavailable, building from files: {e}")
        return build_registry_from_files(config)

    if params_blob is not None and connections_blob is not None:
        try:
            registry = _join_from_cache(params_blob, connections_blob)
            logger.info(f"Model registry loaded from cache ({len(registry)} models)")
            return registry
        except ValidationError as e:
            logger.warning(f"Cached model registry unreadable, rebuilding: {e}")

    registry = build_registry_from_files(config)
    params_blob, connections_blob = _split_for_cache(registry)
    try:
        cache_store.add(MODEL_PARAMS_KEY, params_blob)
        cache_store.add(LISTING_CONNECTIONS_KEY, connections_blob)
    except CacheStoreError as e:
        logger.error(f"Could not cache model registry: {e}")

    logger.info(f"Model registry built from files ({len(registry)} models)")
    return registry
