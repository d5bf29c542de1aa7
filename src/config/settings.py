"""
Configuration Management for SmartBudget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet for the user registry"
    )
    budget_sheet_name: str = Field(
        default="BudgetData",
        description="Name of the sheet for monthly budget documents"
    )
    otp_sheet_name: str = Field(
        default="OTPStore",
        description="Name of the (hidden) sheet for pending one-time codes"
    )
    bills_sheet_name: str = Field(
        default="Bills",
        description="Name of the sheet for recurring bills"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class EmailSettings(BaseSettings):
    """AWS SES configuration for OTP delivery."""

    model_config = SettingsConfigDict(
        env_prefix="SES_",
        extra="ignore"
    )

    region: str = Field(
        default="us-east-2",
        description="AWS region of the SES endpoint"
    )
    # Left empty to fall back to the default boto3 credential chain
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    sender_email: str = Field(
        ...,
        description="Verified SES sender address"
    )
    sender_name: str = Field(
        default="SmartBudget Pro",
        description="Display name on outgoing mail"
    )


class OTPSettings(BaseSettings):
    """One-time code configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OTP_",
        extra="ignore"
    )

    lifetime_minutes: int = Field(
        default=10,
        ge=1,
        le=60,
        description="How long a code stays valid"
    )
    cleanup_interval_seconds: int = Field(
        default=600,
        ge=10,
        description="How often the expired-code sweep runs"
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
        description="Minimum level for structured logs"
    )

    storage_backend: Literal["google_sheets", "memory"] = Field(
        default="google_sheets",
        description="Table store implementation"
    )
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def email(self) -> EmailSettings:
        return EmailSettings()

    @property
    def otp(self) -> OTPSettings:
        return OTPSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "email", "otp", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
