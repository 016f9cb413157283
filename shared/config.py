"""
Shared configuration management for the CodyVerse API client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CODYVERSE_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class ClientSettings(BaseConfig):
    """Settings for the API client."""

    # API location
    api_origin: str = Field(default="http://localhost:5000")
    api_base_path: str = Field(default="/api")

    # Cache
    cache_ttl_seconds: float = Field(default=300.0, gt=0)

    # Transport; no timeout unless configured
    request_timeout: Optional[float] = Field(default=None, gt=0)
    user_agent: str = Field(default="codyverse-client")

    @property
    def api_base_url(self) -> str:
        """Absolute API root, origin joined with the base path."""
        base_path = self.api_base_path.strip("/")
        origin = self.api_origin.rstrip("/")
        return f"{origin}/{base_path}" if base_path else origin


def get_settings(**overrides) -> ClientSettings:
    """Get client configuration, environment first, then explicit overrides."""
    return ClientSettings(**overrides)
