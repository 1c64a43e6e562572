"""
Configuration Management for Bookd

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all configuration is validated at startup.

The Google Maps API key is OPTIONAL. Without it the mileage service
runs in heuristic-only mode.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleMapsSettings(BaseSettings):
    """Google Maps Distance Matrix configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_MAPS_",
        extra="ignore"
    )

    api_key: str = Field(
        default="",
        description="Google Maps API key (empty = heuristic estimation only)"
    )
    base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/distancematrix/json",
        description="Distance Matrix endpoint"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a lookup that fails at the transport level"
    )

    @field_validator('api_key')
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        return v.strip()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class MileageSettings(BaseSettings):
    """Distance cache and mileage estimation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MILEAGE_",
        extra="ignore"
    )

    cache_ttl_hours: float = Field(
        default=24,
        gt=0,
        description="How long a measured distance stays cached"
    )
    cache_sweep_interval_minutes: float = Field(
        default=60,
        gt=0,
        description="How often expired cache entries are swept"
    )
    cache_max_entries: int = Field(
        default=5000,
        ge=1,
        description="Cache capacity before least-recently-used eviction"
    )
    minutes_per_mile: float = Field(
        default=2.5,
        gt=0,
        description="Rough travel time estimate"
    )
    irs_rate_per_mile: float = Field(
        default=0.70,
        ge=0,
        description="IRS standard mileage rate (2025)"
    )

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 60 * 60

    @property
    def cache_sweep_interval_seconds(self) -> float:
        return self.cache_sweep_interval_minutes * 60


class TaxSettings(BaseSettings):
    """Tax estimation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TAX_",
        extra="ignore"
    )

    default_tax_percentage: int = Field(
        default=23,
        ge=0,
        le=100,
        description="Rate used when neither the gig nor the user sets one"
    )


class BackupSettings(BaseSettings):
    """Daily backup configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        extra="ignore"
    )

    backup_dir: str = Field(
        default="backups",
        description="Root directory for backups (daily files go in <dir>/daily)"
    )
    retention_days: int = Field(
        default=90,
        ge=1,
        description="Backups older than this are deleted"
    )

    @property
    def daily_dir(self) -> Path:
        return Path(self.backup_dir) / "daily"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_maps(self) -> GoogleMapsSettings:
        return GoogleMapsSettings()

    @property
    def mileage(self) -> MileageSettings:
        return MileageSettings()

    @property
    def tax(self) -> TaxSettings:
        return TaxSettings()

    @property
    def backup(self) -> BackupSettings:
        return BackupSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks. A missing Google Maps key is
    valid configuration but is reported separately.
    """
    results = {}

    settings = get_settings()

    sections = {
        "google_maps": lambda: settings.google_maps,
        "mileage": lambda: settings.mileage,
        "tax": lambda: settings.tax,
        "backup": lambda: settings.backup,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            section = load()
            results[name] = True
            if name == "google_maps":
                results["google_maps_api_key"] = section.is_configured
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
