"""
Configuration Management for Home Budgeting

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself only needs to know where the ledger lives on disk,
how hard to try when writing it, and a few prediction knobs.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Durable snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="HOMEBUDGET_STORAGE_",
        extra="ignore"
    )

    data_dir: str = Field(
        default="~/.homebudget",
        description="Directory holding the ledger snapshot"
    )
    file_name: str = Field(
        default="budget_local_v1.json",
        description="File name of the ledger snapshot"
    )

    # Write retries
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a snapshot write is attempted"
    )
    retry_wait_min_seconds: float = Field(
        default=0.1,
        ge=0.0,
        description="Minimum back-off between write attempts"
    )
    retry_wait_max_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Maximum back-off between write attempts"
    )

    @field_validator('file_name')
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """The snapshot must be a plain file name, not a path."""
        v = v.strip()
        if not v or Path(v).name != v:
            raise ValueError(f"Snapshot file name must be a bare file name: {v!r}")
        return v

    @model_validator(mode='after')
    def validate_wait_bounds(self) -> 'StorageSettings':
        """Back-off bounds must be ordered."""
        if self.retry_wait_max_seconds < self.retry_wait_min_seconds:
            raise ValueError("retry_wait_max_seconds cannot be below retry_wait_min_seconds")
        return self

    @property
    def snapshot_path(self) -> Path:
        """Full path of the snapshot file."""
        return Path(self.data_dir).expanduser() / self.file_name


class PredictionSettings(BaseSettings):
    """Prediction knobs."""

    model_config = SettingsConfigDict(
        env_prefix="HOMEBUDGET_PREDICTION_",
        extra="ignore"
    )

    suggestion_limit: int = Field(
        default=4,
        ge=1,
        le=50,
        description="Default number of description suggestions"
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
        description="Minimum level for the stdlib logger behind structlog"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def prediction(self) -> PredictionSettings:
        return PredictionSettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the sections that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "prediction", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
