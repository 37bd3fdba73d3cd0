"""
Shared configuration management for the tier entitlements engine.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="TIERS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Ruleset
    ruleset_path: Optional[str] = Field(
        default=None,
        description="YAML ruleset overriding the embedded default"
    )

    # Observability
    enable_metrics: bool = Field(default=True)


class EngineConfig(BaseConfig):
    """Engine-specific configuration."""

    service_name: str = "entitlements"


def get_config(service_name: str = "entitlements") -> EngineConfig:
    """Get configuration for the engine."""
    return EngineConfig(service_name=service_name)
