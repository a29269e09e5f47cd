"""Credential loader configuration."""

import os
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AZURE_IMDS_URL = "http://169.254.169.254/metadata/identity/oauth2/token"
AZURE_API_VERSION = "2018-02-01"
AZURE_RESOURCE = "https://vault.azure.net"
GCE_METADATA_HOST = "http://169.254.169.254"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # Deadline for a single metadata/identity request, in seconds
    http_timeout: float = 10.0

    # Azure Instance Metadata Service
    azure_imds_url: str = AZURE_IMDS_URL
    azure_api_version: str = AZURE_API_VERSION
    azure_resource: str = AZURE_RESOURCE
    # Tokens expiring within this window are refreshed before use
    azure_refresh_margin_ms: int = 60_000

    # GCP metadata server; read from the same variables the Google libraries use
    gce_metadata_host: str = Field(
        default=GCE_METADATA_HOST,
        validation_alias=AliasChoices("GCE_METADATA_HOST", "GCE_METADATA_IP"),
    )

    # Capability flags. AWS additionally requires boto3 to be importable.
    aws_enabled: bool = True
    gcp_enabled: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="KMS_CREDENTIALS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("http_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("http_timeout must be positive")
        return value

    @field_validator("azure_refresh_margin_ms")
    @classmethod
    def _non_negative_margin(cls, value: int) -> int:
        if value < 0:
            raise ValueError("azure_refresh_margin_ms must not be negative")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def gce_metadata_base_url(self) -> str:
        """Metadata host with a scheme, without trailing slash."""
        return normalize_host(self.gce_metadata_host)


def normalize_host(host: str) -> str:
    """Add an http:// scheme to a bare host and drop any trailing slash."""
    host = host.strip().rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"http://{host}"
    return host


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def gce_metadata_base_url() -> str:
    """Metadata server base URL, re-reading the environment on every call.

    GCE_METADATA_HOST wins over GCE_METADATA_IP. With neither set, the
    cached settings value applies.
    """
    for variable in ("GCE_METADATA_HOST", "GCE_METADATA_IP"):
        if host := os.environ.get(variable):
            return normalize_host(host)
    return get_settings().gce_metadata_base_url
