"""
Orthanc API Client — Configuration Settings.

Type-safe, immutable configuration using pydantic-settings.
Connection values can be overridden via ``ORTHANC_*`` environment
variables, client-wide values via ``ORTHANC_API_*``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrthancSettings(BaseSettings):
    """Connection settings for one Orthanc server."""

    model_config = SettingsConfigDict(env_prefix="ORTHANC_", frozen=True)

    scheme: Literal["http", "https"] = Field(default="http", description="URL scheme of the REST API")
    host: str = Field(default="localhost", description="Orthanc hostname")
    http_port: int = Field(default=8042, description="Orthanc REST API port")
    url: str | None = Field(default=None, description="Full REST API URL; overrides scheme, host and port")
    username: str | None = Field(default=None, description="Basic-auth username (auth needs both credentials)")
    password: str | None = Field(default=None, description="Basic-auth password")
    timeout: float | None = Field(default=None, description="Transport timeout in seconds (unset = wait)")

    @property
    def base_url(self) -> str:
        """Return the fully-qualified Orthanc REST API base URL."""
        if self.url:
            return self.url.rstrip("/")
        return f"{self.scheme}://{self.host}:{self.http_port}"


class Settings(BaseSettings):
    """Top-level client settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORTHANC_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    log_level: str = Field(default="INFO", description="Logging verbosity (DEBUG, INFO, WARNING, ERROR)")
    log_format: Literal["console", "json"] = Field(default="console", description="Log output format")

    orthanc: OrthancSettings = Field(default_factory=OrthancSettings)


def get_settings() -> Settings:
    """Factory function to create a validated settings instance."""
    return Settings()
