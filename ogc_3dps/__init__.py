# ============================================================================
# CLAUDE CONTEXT - 3DPS BOREHOLE API MODULE
# ============================================================================
# STATUS: Standalone Module - OGC 3DPS / WFS borehole API
# PURPOSE: Serve 3D borehole resources of named geological models to the 3D viewer
# LAST_REVIEWED: Current
# EXPORTS: Ogc3dpsService, Ogc3dpsConfig, get_3dps_triggers, get_3dps_config
# PYDANTIC_MODELS: ModelRegistry, BoreholeIndex, FeatureInfoList, ValueCollection, ExceptionReport
# DEPENDENCIES: azure-functions, pydantic, psycopg, httpx
# SOURCE: Provider/model config files, upstream WFS, PostgreSQL cache store
# PATTERNS: Service Layer, Repository Pattern, Standalone Module
# ENTRY_POINTS: from ogc_3dps import get_3dps_triggers
# ============================================================================

"""
OGC 3DPS / WFS Borehole API

Supports a narrow profile of two protocols:
- 3DPS 1.0: GetCapabilities, GetFeatureInfoByObjectId, GetResourceById
- WFS 2.0: GetPropertyValue (borehole ids)
plus the ``$blobfile.bin`` endpoint serving cached glTF binary buffers.

Architecture:
    ogc_3dps/
    ├── config.py          # Environment-based configuration
    ├── models.py          # Domain values and OGC response documents
    ├── exceptions.py      # OWS exception taxonomy
    ├── registry.py        # Model registry (cache or config files)
    ├── borehole_index.py  # Per-model borehole index (cache or upstream WFS)
    ├── scene.py           # Scene generator plug-in interface
    ├── splitter.py        # glTF document / binary buffer split
    ├── repository.py      # Feature attribute queries
    ├── responses.py       # Response helpers
    ├── router.py          # Path/KVP parsing and dispatch
    ├── service.py         # Response builders
    └── triggers.py        # Azure Functions HTTP handler
"""

from .config import Ogc3dpsConfig, get_3dps_config
from .service import Ogc3dpsService
from .triggers import get_3dps_triggers

__version__ = "1.0.0"
__all__ = [
    "Ogc3dpsConfig",
    "Ogc3dpsService",
    "get_3dps_triggers",
    "get_3dps_config"
]
