"""Configuration package."""

from src.config.settings import (
    AppSettings,
    EmailSettings,
    GoogleSheetsSettings,
    OTPSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "EmailSettings",
    "GoogleSheetsSettings",
    "OTPSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
