"""
Configuration models for cloud_data.

This module defines all configuration data models with validation and defaults.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..version import __version__


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CloudEnvironment(str, Enum):
    """Remote service environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


DEFAULT_REMOTE_URLS: Dict[CloudEnvironment, str] = {
    CloudEnvironment.STAGING: "https://dashboard-staging.cypress.io",
    CloudEnvironment.DEVELOPMENT: "http://localhost:3000",
    CloudEnvironment.PRODUCTION: "https://dashboard.cypress.io",
}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Default logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    enable_console: bool = Field(default=True, description="Enable console logging")
    enable_structured: bool = Field(
        default=False, description="Enable structured JSON logging"
    )
    mask_credentials: bool = Field(
        default=True, description="Mask bearer tokens and authorization values"
    )

    # Component-specific log levels
    component_levels: Dict[str, LogLevel] = Field(
        default_factory=dict, description="Per-component log levels"
    )


class CloudDataConfig(BaseModel):
    """Configuration for the cloud data source."""

    environment: CloudEnvironment = Field(
        default=CloudEnvironment.DEVELOPMENT,
        description="Remote environment the data source talks to",
    )
    remote_urls: Dict[CloudEnvironment, str] = Field(
        default_factory=lambda: dict(DEFAULT_REMOTE_URLS),
        description="Base URL of the remote service per environment",
    )
    graphql_path: str = Field(
        default="/test-runner-graphql", description="GraphQL endpoint path"
    )
    client_version: str = Field(
        default=__version__, description="Value of the client version header"
    )
    version_header: str = Field(
        default="x-cloud-data-version", description="Header carrying the client version"
    )

    # Transport
    request_timeout: float = Field(
        default=30.0, ge=1.0, description="Transport timeout in seconds"
    )

    # Reconciliation
    divergence_recovery_limit: int = Field(
        default=3,
        ge=0,
        description="Cache/server divergence recoveries allowed per fingerprint",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @field_validator("graphql_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value

    @property
    def endpoint(self) -> str:
        """Full GraphQL endpoint URL for the configured environment."""
        base = self.remote_urls.get(self.environment)
        if base is None:
            base = DEFAULT_REMOTE_URLS[self.environment]
        return f"{base.rstrip('/')}{self.graphql_path}"
