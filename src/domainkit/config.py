"""Library configuration using pydantic-settings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class DispatchSettings(BaseSettings):
    """Domain event dispatch configuration."""

    enabled: bool = Field(default=True, alias="DISPATCH_ENABLED")
    stop_on_first_error: bool = Field(default=False, alias="DISPATCH_STOP_ON_FIRST_ERROR")
    require_dispatchable: bool = Field(default=True, alias="DISPATCH_REQUIRE_DISPATCHABLE")
    clear_events_after_dispatch: bool = Field(
        default=True, alias="DISPATCH_CLEAR_EVENTS_AFTER_DISPATCH"
    )
    max_rounds: int = Field(default=10, ge=1, alias="DISPATCH_MAX_ROUNDS")

    model_config = {"env_prefix": "DISPATCH_", "extra": "ignore", "populate_by_name": True}


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    service_name: str = Field(default="domainkit", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(default=True, alias="JSON_LOGS")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    tracing_enabled: bool = Field(default=True, alias="TRACING_ENABLED")

    model_config = {"env_prefix": "OBS_", "extra": "ignore", "populate_by_name": True}


class Settings(BaseSettings):
    """Main settings."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
