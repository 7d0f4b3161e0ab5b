"""
Configuration Management for LedgerFlow

Uses pydantic-settings for type-safe configuration from environment variables.

All tunable engine constants live here: the balance tolerance, the account
path separator and depth ceiling, the recurrence marker and catch-up policy.
Engine functions accept explicit overrides; these settings only provide the
defaults.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Ledger engine defaults."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERFLOW_",
        extra="ignore"
    )

    balance_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Largest absolute split sum still treated as balanced"
    )
    path_separator: str = Field(
        default=":",
        min_length=1,
        description="Separator between account names in a full path"
    )
    max_path_depth: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Maximum number of ancestors walked when building a path"
    )
    recurrence_marker: str = Field(
        default=" (Recurring)",
        description="Suffix appended to descriptions of generated transactions"
    )
    catch_up_policy: str = Field(
        default="single",
        pattern="^(single|all)$",
        description="How many overdue periods one recurrence run materializes"
    )
    max_catch_up_periods: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on emissions per rule under the 'all' policy"
    )


class LoggingSettings(BaseSettings):
    """structlog configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERFLOW_LOG_",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines instead of console output"
    )

    @field_validator('level')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept any casing of the standard level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

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

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each group that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("engine", "logging", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
