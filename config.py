# ============================================================================
# CLAUDE CONTEXT - APPLICATION CONFIGURATION
# ============================================================================
# STATUS: Core Infrastructure - Configuration Management
# PURPOSE: PostgreSQL connection settings for the cache store and attribute store
# LAST_REVIEWED: Current
# EXPORTS: AppConfig, get_app_config, get_postgres_connection_string
# DEPENDENCIES: pydantic-settings, azure-identity
# SOURCE: Environment variables, Azure managed identity
# PATTERNS: Singleton pattern for config
# ============================================================================

"""
Application Configuration Module

PostgreSQL backs two things in this app: the shared cache store (model
registry, borehole indices, glTF binary buffers) and the feature attribute
table queried by GetFeatureInfoByObjectId. Only the `postgres` cache
backend and the attribute query read these settings.

Environment:
    POSTGIS_HOST, POSTGIS_PORT (5432), POSTGIS_DATABASE, POSTGIS_USER
    POSTGIS_PASSWORD        required unless USE_MANAGED_IDENTITY=true
    USE_MANAGED_IDENTITY    sign in with an Entra ID token instead of a password
"""

import logging
from typing import Optional
from functools import lru_cache
from urllib.parse import quote_plus

from azure.identity import DefaultAzureCredential
from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Entra ID resource for Azure Database for PostgreSQL
POSTGRES_TOKEN_SCOPE = "https://ossrdbms-aad.database.windows.net/.default"


class AppConfig(BaseSettings):
    """PostgreSQL server and credentials, read from POSTGIS_* variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    postgis_host: str = Field(..., description="Server hostname")
    postgis_port: int = Field(default=5432, description="Server port")
    postgis_database: str = Field(..., description="Database holding cache_entries and feature_attributes")
    postgis_user: str = Field(..., description="Login role (or managed identity name)")

    # Declared before the password so the validator can see it
    use_managed_identity: bool = Field(default=False, description="Authenticate with an Entra ID token")
    postgis_password: Optional[str] = Field(default=None, description="Login password")

    @field_validator('postgis_password')
    @classmethod
    def require_password_without_identity(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if not v and not info.data.get('use_managed_identity', False):
            raise ValueError("POSTGIS_PASSWORD must be set unless USE_MANAGED_IDENTITY=true")
        return v

    @property
    def auth_mode(self) -> str:
        return "managed_identity" if self.use_managed_identity else "password"


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Process-wide settings; raises ValidationError when POSTGIS_* is incomplete."""
    return AppConfig()


# ============================================================================
# Connection strings
# ============================================================================

def get_postgres_connection_string() -> str:
    """
    psycopg connection string for the configured server.

    With managed identity the password is a fresh access token (valid for
    about an hour), so callers ask again for every connection rather than
    holding on to the result.
    """
    config = get_app_config()
    logger.info(f"Connecting to {config.postgis_host} ({config.auth_mode})")
    return _dsn(config, _resolve_secret(config))


def _resolve_secret(config: AppConfig) -> str:
    if not config.use_managed_identity:
        # Passwords may contain '@' or ':'
        return quote_plus(config.postgis_password)

    token = DefaultAzureCredential().get_token(POSTGRES_TOKEN_SCOPE)
    logger.info("Acquired managed identity token")
    return token.token


def _dsn(config: AppConfig, secret: str) -> str:
    # Azure PostgreSQL refuses non-TLS connections
    return (
        f"postgresql://{config.postgis_user}:{secret}"
        f"@{config.postgis_host}:{config.postgis_port}"
        f"/{config.postgis_database}?sslmode=require"
    )
