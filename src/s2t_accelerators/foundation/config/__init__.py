"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    API_KEY_PURCHASE_URL,
    DEFAULT_API_URL,
    SERVER_NAME,
    SERVER_VERSION,
    LoggingSettings,
    S2TSettings,
    load_settings,
)

__all__ = [
    "API_KEY_PURCHASE_URL",
    "DEFAULT_API_URL",
    "SERVER_NAME",
    "SERVER_VERSION",
    "LoggingSettings",
    "S2TSettings",
    "load_settings",
]
