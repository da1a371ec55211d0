"""
Configuration Management for Accounter

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Environment settings only carry defaults and thresholds.
Everything that changes per run (database, input file, user, mode) lives in
an explicit RunConfig that the CLI builds and hands to the pipeline, so no
process-wide mutable state is needed.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """SQLite ledger storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTER_DB_",
        extra="ignore"
    )

    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=120,
        description="How long to wait on a locked database before failing"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events to the audit_log table"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Input parsing
    csv_delimiter: str = Field(
        default=",",
        min_length=1,
        max_length=1,
        description="Field delimiter of the item price file"
    )
    default_user: Optional[str] = Field(
        default=None,
        description="User to attribute items to when --user is not given"
    )

    # Logging
    log_level: str = Field(
        default="WARNING",
        description="Log level for the structured run log"
    )

    # Validation thresholds
    max_item_amount_minor: int = Field(
        default=1_000_000,
        ge=0,
        description="Item cost (in minor units) above which a warning is raised"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept stdlib logging level names."""
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
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
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


class RunConfig(BaseModel):
    """
    Everything one pipeline run needs to know.

    Built once from the command line and passed down explicitly.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    database: Path = Field(
        ...,
        description="SQLite ledger database file"
    )
    filename: Path = Field(
        ...,
        description="Item price file to load"
    )
    user: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="User the items of this batch are attributed to"
    )
    validate_only: bool = Field(
        default=False,
        description="Parse and validate the file, then stop without touching storage"
    )
    markdown: Optional[Path] = Field(
        default=None,
        description="Write the full ledger as a markdown table to this file"
    )
    csv_delimiter: str = Field(
        default=",",
        min_length=1,
        max_length=1,
    )
