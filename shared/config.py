"""
Shared configuration management for the Sheets Gateway.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CACHE_TTL_SECONDS = 7 * 60


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)

    # Response cache
    cache_ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)

    # CORS
    use_whitelist: bool = Field(default=False)
    whitelist_origin: str = Field(default="")

    # Google
    google_service_account: Optional[str] = Field(default=None)
    google_service_mode: str = Field(default="spreadsheets.readonly")
    sheets_api_url: str = Field(default="https://sheets.googleapis.com/v4")
    google_token_url: str = Field(default="https://oauth2.googleapis.com/token")
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)

    readme_url: str = Field(default="https://github.com/hrz8/opensheet#readme")

    @property
    def whitelist_origins(self) -> List[str]:
        """Origins allowed when the whitelist is enabled."""
        return [origin.strip() for origin in self.whitelist_origin.split(",") if origin.strip()]

    @property
    def google_scopes(self) -> List[str]:
        return [f"https://www.googleapis.com/auth/{self.google_service_mode}"]


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
