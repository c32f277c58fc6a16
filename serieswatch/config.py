"""
Configuration management using pydantic-settings.
Loads from config.yaml, .env, and environment variables.
"""

import logging
from pathlib import Path
from typing import Any

import pytz
import yaml
from croniter import croniter
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog.regions import normalize_region

# Load .env file at module import
load_dotenv()

logger = logging.getLogger(__name__)


class CatalogSettings(BaseSettings):
    """Catalog provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        extra="ignore",
    )

    provider: str = Field(default="audible", description="Catalog provider tag")
    default_region: str = Field(default="us", description="Region used when a follow names none")
    timeout: float = Field(default=10.0, description="Per-request timeout in seconds")
    audnexus_url: str = Field(default="https://api.audnex.us", description="Audnexus API base URL")
    cache_ttl_hours: float = Field(default=12.0, description="TTL for cached book lookups")

    @field_validator("default_region")
    @classmethod
    def _known_region(cls, value: str) -> str:
        return normalize_region(value)


class SchedulerSettings(BaseSettings):
    """Daily sweep settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        extra="ignore",
    )

    cron: str = Field(default="0 4 * * *", description="Cron expression of the daily sweep")
    batch_size: int = Field(default=100, gt=0, description="Maximum series checked per sweep")
    stale_hours: float = Field(default=24.0, ge=0, description="Hours after which a series is due again")
    item_delay: float = Field(default=2.0, ge=0, description="Pause between two series of a sweep (seconds)")
    timezone: str | None = Field(default=None, description="Timezone of the cron expression (None = local)")

    @field_validator("cron")
    @classmethod
    def _valid_cron(cls, value: str) -> str:
        if not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is not None and value not in pytz.all_timezones_set:
            raise ValueError(f"unknown timezone: {value!r}")
        return value


class StoreSettings(BaseSettings):
    """Tracking database settings."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore",
    )

    db_path: Path = Field(default=Path("./data/serieswatch.db"), description="SQLite database path")


class CacheSettings(BaseSettings):
    """Catalog response cache settings (SQLite backend)."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enable caching of catalog lookups")
    db_path: Path = Field(default=Path("./data/cache/cache.db"), description="SQLite database path")
    max_memory_entries: int = Field(default=500, description="Max entries in memory cache layer")


class ABSSettings(BaseSettings):
    """Audiobookshelf API settings."""

    model_config = SettingsConfigDict(
        env_prefix="ABS_",
        extra="ignore",
    )

    host: str = Field(default="http://localhost:13378", description="ABS server URL")
    api_key: str = Field(default="", description="ABS API key/token")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    rate_limit_delay: float = Field(default=0.1, description="Minimum delay between requests")


class NotifySettings(BaseSettings):
    """Release notification settings."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        extra="ignore",
    )

    webhook_url: str | None = Field(default=None, description="URL receiving one POST per new release")
    timeout: float = Field(default=10.0, description="Webhook timeout in seconds")
    log_releases: bool = Field(default=True, description="Log every new release")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    abs: ABSSettings = Field(default_factory=ABSSettings)
    notify: NotifySettings = Field(default_factory=NotifySettings)

    verbose: bool = Field(default=False)
    debug: bool = Field(default=False)
    log_file: Path | None = Field(default=None)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from config.yaml and environment."""
        config_data: dict[str, Any] = {}

        if config_path is None:
            config_path = Path("config.yaml")

        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                yaml_content: Any = yaml.safe_load(f)
                yaml_config: dict[str, Any] = yaml_content or {}

            sections: dict[str, type[BaseSettings]] = {
                "catalog": CatalogSettings,
                "scheduler": SchedulerSettings,
                "store": StoreSettings,
                "cache": CacheSettings,
                "abs": ABSSettings,
                "notify": NotifySettings,
            }
            for name, section_cls in sections.items():
                if name in yaml_config:
                    config_data[name] = section_cls(**(yaml_config[name] or {}))

            for key in ("verbose", "debug", "log_file"):
                if key in yaml_config:
                    config_data[key] = yaml_config[key]

            unknown = set(yaml_config) - set(sections) - {"verbose", "debug", "log_file"}
            if unknown:
                logger.warning("Ignoring unknown config.yaml keys: %s", ", ".join(sorted(unknown)))

        return cls(**config_data)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Path | None = None) -> Settings:
    """Reload settings from config."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
