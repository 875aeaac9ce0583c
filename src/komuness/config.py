"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


def _env(key: str, default: str = "") -> str:
    """Read an environment variable, falling back to a default."""
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    """Read an integer environment variable, falling back to a default."""
    raw = _env(key)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_bool(key: str, *, default: bool = False) -> bool:
    """Read a boolean environment variable."""
    raw = _env(key)
    if not raw:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class CosmosConfig:
    """Cosmos DB connection settings."""

    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "komuness"))


@dataclass(frozen=True)
class StorageConfig:
    """Blob storage settings for uploaded publication images."""

    connection_string: str = field(
        default_factory=lambda: _env("AZURE_STORAGE_CONNECTION_STRING")
    )
    container: str = field(
        default_factory=lambda: _env("AZURE_STORAGE_CONTAINER", "uploads")
    )
    public_base_url: str = field(default_factory=lambda: _env("PUBLIC_BASE_URL"))
    upload_ttl_minutes: int = field(
        default_factory=lambda: _env_int("UPLOAD_TTL_MINUTES", 60)
    )
    sweep_interval_seconds: int = field(
        default_factory=lambda: _env_int("UPLOAD_SWEEP_SECONDS", 300)
    )


@dataclass(frozen=True)
class ServiceBusConfig:
    """Service Bus settings for publishing domain events."""

    connection_string: str = field(
        default_factory=lambda: _env("AZURE_SERVICEBUS_CONNECTION_STRING")
    )
    topic_name: str = field(
        default_factory=lambda: _env("AZURE_SERVICEBUS_TOPIC", "komuness-events")
    )


@dataclass(frozen=True)
class ModerationConfig:
    """Edit-request moderation policy."""

    max_edits: int = field(default_factory=lambda: _env_int("MODERATION_MAX_EDITS", 3))
    strict_fields: bool = field(
        default_factory=lambda: _env_bool("MODERATION_STRICT_FIELDS")
    )


@dataclass(frozen=True)
class AppConfig:
    """General application settings."""

    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    secret_key: str = field(default_factory=lambda: _env("APP_SECRET_KEY"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@dataclass(frozen=True)
class Settings:
    """Top-level settings container."""

    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    servicebus: ServiceBusConfig = field(default_factory=ServiceBusConfig)
    moderation: ModerationConfig = field(default_factory=ModerationConfig)
    app: AppConfig = field(default_factory=AppConfig)


def load_settings() -> Settings:
    """Load `.env` (if present) and build the settings tree."""
    load_dotenv()
    return Settings()
