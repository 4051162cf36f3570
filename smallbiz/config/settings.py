"""
Configuration Management for SmallBiz BookKeeping

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage location, license probe tuning and display options are
validated once at startup and shared by the whole session.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SBKP_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Storage backend: 'file' persists to JSON, 'memory' is per-process"
    )
    data_dir: Path = Field(
        default=Path.home() / ".smallbiz-bookkeeping",
        description="Directory holding the local storage file"
    )
    file_name: str = Field(
        default="local_storage.json",
        min_length=1,
        description="Name of the JSON file used as local storage"
    )

    @property
    def storage_path(self) -> Path:
        """Full path of the storage file."""
        return self.data_dir / self.file_name


class LicenseSettings(BaseSettings):
    """License gate and device fingerprint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SBKP_LICENSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    audio_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="How long the audio probe may wait for its buffer callback"
    )
    webgl_renderer: Optional[str] = Field(
        default=None,
        description="Graphics renderer string reported by the client, if known"
    )
    webgl_vendor: Optional[str] = Field(
        default=None,
        description="Graphics vendor string reported by the client, if known"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Display
    company_name: str = Field(
        default="SmallBiz BookKeeping Pro",
        description="Title printed on reports and exports"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=3,
        description="Currency symbol used when formatting amounts"
    )
    chart_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Length of the trailing monthly income/expense window"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def license(self) -> LicenseSettings:
        return LicenseSettings()

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

    Returns a dict of {setting_name: is_valid} plus
    "<name>_error" entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "license", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
