"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import ssl
from functools import lru_cache
from typing import Any

import certifi
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from discoverycore.exceptions import SettingsError


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "discoverycore"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )

    solr_url: str | None = Field(
        default=None,
        validation_alias="SOLR_URL",
        description="Base URL of the Solr core used for schema reflection.",
    )
    cert_path: str | None = Field(
        default=None,
        validation_alias="CERT_PATH",
        description="Path to SSL certificate.",
    )
    timeout: float = Field(
        default=30.0,
        validation_alias="TIMEOUT",
        description="Request timeout in seconds.",
    )

    reflection_enabled: bool = Field(
        default=True,
        validation_alias="REFLECTION_ENABLED",
        description="Query the index schema to expand wildcard fields.",
    )
    reflection_ttl_seconds: float = Field(
        default=3600.0,
        validation_alias="REFLECTION_TTL_SECONDS",
        description="Lifetime of cached schema reflection results.",
    )
    facet_default_limit: int = Field(
        default=10,
        validation_alias="FACET_DEFAULT_LIMIT",
        description="Facet limit used when a facet field sets `limit=True`.",
    )

    @field_validator("reflection_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, value: float) -> float:
        """Reject negative reflection TTLs.

        Args:
            value (float): Configured TTL.

        Raises:
            ValueError: If the TTL is negative.

        Returns:
            float: Validated TTL.
        """
        if value < 0:
            raise ValueError("REFLECTION_TTL_SECONDS must be positive or zero")
        return value


def build_ssl_context(settings: Settings) -> ssl.SSLContext:
    """Build a strict SSL context from settings.

    Args:
        settings (Settings): Runtime settings.

    Returns:
        ssl.SSLContext: Configured TLS context.
    """
    ssl_context = ssl.create_default_context(cafile=settings.cert_path)
    if settings.cert_path is None and not _cert_store_has_ca(ssl_context):
        ssl_context = ssl.create_default_context(cafile=_get_certifi_cafile())
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.minimum_version = ssl.TLSVersion.TLSv1_2
    return ssl_context


def _cert_store_has_ca(ssl_context: ssl.SSLContext) -> bool:
    """Return whether the context loaded at least one CA certificate."""
    return bool(ssl_context.cert_store_stats().get("x509_ca"))


def _get_certifi_cafile() -> str:
    return certifi.where()


def build_httpx_client_kwargs(settings: Settings) -> dict[str, Any]:
    """Build kwargs used for `httpx.Client`.

    Args:
        settings (Settings): Runtime settings.

    Returns:
        dict[str, Any]: Arguments for client constructors.
    """
    return {
        "verify": build_ssl_context(settings),
        "timeout": settings.timeout,
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        raise SettingsError(exc=exc) from exc
