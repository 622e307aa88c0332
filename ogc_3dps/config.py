# ============================================================================
# CLAUDE CONTEXT - 3DPS CONFIGURATION
# ============================================================================
# STATUS: Standalone Configuration - 3DPS / WFS borehole API
# PURPOSE: Environment-driven settings for registry, cache, listing and scene generation
# LAST_REVIEWED: Current
# EXPORTS: Ogc3dpsConfig, get_3dps_config
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: Ogc3dpsConfig
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables
# PATTERNS: Settings Pattern, Singleton via cached function
# ENTRY_POINTS: from ogc_3dps.config import get_3dps_config
# ============================================================================

"""
3DPS API Configuration

Environment Variables (all optional):
    - OGC3DPS_INPUT_DIR: Directory holding provider and model config files (default: "input")
    - OGC3DPS_PROVIDER_CONFIG: Provider/model index file name (default: "ProviderModelInfo.json")
    - OGC3DPS_CACHE_BACKEND: "postgres" or "memory" (default: "postgres")
    - OGC3DPS_CACHE_SCHEMA: Schema for the cache table (default: "geomodels")
    - OGC3DPS_CACHE_TABLE: Cache table name (default: "cache_entries")
    - OGC3DPS_ATTRIBUTE_TABLE: Feature attribute table name (default: "feature_attributes")
    - OGC3DPS_MAX_BOREHOLES: Max features per listing call (default: 9999)
    - OGC3DPS_LISTING_TIMEOUT: Listing call timeout in seconds (default: 60)
    - OGC3DPS_SCENE_GENERATOR: "package.module:factory" returning a scene generator
    - OGC3DPS_BASE_URL: Base URL for capabilities links (default: auto-detect)

PostgreSQL credentials come from the application config (config.py).
"""

import os
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator


class Ogc3dpsConfig(BaseModel):
    """Configuration for the 3DPS / WFS borehole API."""

    input_dir: str = Field(
        default_factory=lambda: os.getenv("OGC3DPS_INPUT_DIR", "input"),
        description="Directory holding provider and model configuration files"
    )
    provider_config: str = Field(
        default_factory=lambda: os.getenv("OGC3DPS_PROVIDER_CONFIG", "ProviderModelInfo.json"),
        description="Provider/model index file, relative to input_dir"
    )

    # Cache store
    cache_backend: Literal["postgres", "memory"] = Field(
        default_factory=lambda: os.getenv("OGC3DPS_CACHE_BACKEND", "postgres").lower(),
        description="Cache store backend"
    )
    cache_schema: str = Field(
        default_factory=lambda: os.getenv("OGC3DPS_CACHE_SCHEMA", "geomodels"),
        description="PostgreSQL schema for the cache and attribute tables"
    )
    cache_table: str = Field(
        default_factory=lambda: os.getenv("OGC3DPS_CACHE_TABLE", "cache_entries"),
        description="Cache table name"
    )
    attribute_table: str = Field(
        default_factory=lambda: os.getenv("OGC3DPS_ATTRIBUTE_TABLE", "feature_attributes"),
        description="Feature attribute table name"
    )

    # Upstream listing
    max_boreholes: int = Field(
        default_factory=lambda: int(os.getenv("OGC3DPS_MAX_BOREHOLES", "9999")),
        ge=1,
        description="Maximum boreholes requested per listing call"
    )
    listing_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("OGC3DPS_LISTING_TIMEOUT", "60")),
        gt=0,
        le=600,
        description="Hard timeout for the upstream listing call"
    )

    # Scene generation
    scene_generator: Optional[str] = Field(
        default_factory=lambda: os.getenv("OGC3DPS_SCENE_GENERATOR") or None,
        description="Import path 'package.module:factory' of the scene generator"
    )

    base_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("OGC3DPS_BASE_URL") or None,
        description="Base URL for capabilities links (auto-detected if not set)"
    )

    @field_validator("scene_generator")
    @classmethod
    def validate_import_path(cls, v: Optional[str]) -> Optional[str]:
        """Import path must look like 'module:attribute'."""
        if v and ":" not in v:
            raise ValueError("OGC3DPS_SCENE_GENERATOR must be 'package.module:factory'")
        return v

    @property
    def provider_config_path(self) -> Path:
        return Path(self.input_dir) / self.provider_config

    def get_base_url(self, request_url: Optional[str] = None) -> str:
        """
        Get base URL for capabilities links.

        Args:
            request_url: Current request URL for auto-detection
        """
        if self.base_url:
            return self.base_url.rstrip("/")

        if request_url:
            scheme, _, rest = request_url.partition("://")
            host = rest.split("/", 1)[0]
            if scheme and host:
                return f"{scheme}://{host}"

        return "http://localhost:7071"


_config_cache: Optional[Ogc3dpsConfig] = None


def get_3dps_config() -> Ogc3dpsConfig:
    """Get singleton 3DPS configuration instance."""
    global _config_cache

    if _config_cache is None:
        _config_cache = Ogc3dpsConfig()

    return _config_cache
