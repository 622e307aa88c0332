# ============================================================================
# CLAUDE CONTEXT - SCENE GENERATOR INTERFACE
# ============================================================================
# STATUS: Standalone Module - Pluggable glTF scene generation
# PURPOSE: Interface to the external routine turning a borehole record into a ScenePayload
# LAST_REVIEWED: Current
# EXPORTS: SceneGenerator, NullSceneGenerator, load_scene_generator
# DEPENDENCIES: importlib
# PATTERNS: Plugin loaded by import path
# ============================================================================

"""
Scene Generator

The generator itself lives outside this app (it wraps a native mesh
exporter). It is plugged in with ``OGC3DPS_SCENE_GENERATOR`` set to
``package.module:factory``; the factory is called once with no arguments
and must return an object with::

    generate(record, model, resource_id) -> ScenePayload | None
"""

import importlib
import logging
from typing import Optional

from .models import BoreholeRecord, ModelParameters, ScenePayload

logger = logging.getLogger(__name__)


class SceneGenerator:
    """Interface for scene generators."""

    def generate(self, record: BoreholeRecord, model: ModelParameters,
                 resource_id: str) -> Optional[ScenePayload]:
        raise NotImplementedError


class NullSceneGenerator(SceneGenerator):
    """Used when no generator is configured; every resource is empty."""

    def generate(self, record: BoreholeRecord, model: ModelParameters,
                 resource_id: str) -> Optional[ScenePayload]:
        logger.warning(f"No scene generator configured, '{resource_id}' has no scene")
        return None


def load_scene_generator(import_path: Optional[str]) -> SceneGenerator:
    """
    Resolve 'package.module:factory' and call the factory.

    Raises:
        ImportError / AttributeError: the import path does not resolve
    """
    if not import_path:
        return NullSceneGenerator()

    module_name, _, attribute = import_path.partition(":")
    factory = getattr(importlib.import_module(module_name), attribute)
    generator = factory()
    logger.info(f"Scene generator loaded from {import_path}")
    return generator
