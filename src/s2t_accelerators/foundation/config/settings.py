"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from s2t_accelerators.foundation.config import load_settings
    >>> settings = load_settings()
    >>> settings.port
    3001
    >>> settings.logging.format
    'json'

    # Or with environment variables:
    # S2T_API_KEY=sk_live_...
    # S2T_API_URL=https://staging.example.com/v1
    # PORT=8080
    # S2T_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import AliasChoices, Field, PositiveFloat, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigurationError

SERVER_NAME = "s2t-accelerators"
SERVER_VERSION = "1.4.2"

DEFAULT_API_URL = "https://mh873houvh.execute-api.us-east-1.amazonaws.com/v1"
API_KEY_PURCHASE_URL = "https://dev.s2tconsulting.com/ai-sales/purchase.html"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="S2T_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "console", "none"] = "json"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class S2TSettings(BaseSettings):
    """Root settings for the S2T accelerator server.

    Loads configuration from environment variables with the S2T_ prefix.
    The listen port also honours the conventional bare ``PORT`` variable.

    Example environment variables:
        S2T_API_KEY=sk_live_abc
        S2T_API_URL=https://api.example.com/v1
        S2T_CORS_ORIGINS=https://app.example.com,https://admin.example.com
        S2T_API_TIMEOUT=15
        PORT=3001
    """

    model_config = SettingsConfigDict(
        env_prefix="S2T_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        validate_default=True,
    )

    api_key: SecretStr = Field(description="API key for the S2T accelerator platform")
    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the accelerator API")
    api_timeout: PositiveFloat = Field(default=30.0, description="Per-call timeout in seconds")

    host: str = "0.0.0.0"
    port: Annotated[int, Field(ge=1, le=65535)] = Field(
        default=3001,
        validation_alias=AliasChoices("PORT", "S2T_PORT", "port"),
    )
    cors_origins: str = Field(default="", description="Comma-separated list of allowed origins")
    shutdown_timeout: PositiveFloat = Field(default=10.0, description="Seconds before a stalled shutdown is forced")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("api_key")
    @classmethod
    def _require_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("api_key must not be empty")
        return v

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def allowed_origins(self) -> frozenset[str]:
        """Parsed CORS allow-list. Empty means unrestricted."""
        return frozenset(o.strip() for o in self.cors_origins.split(",") if o.strip())


def load_settings(**overrides: object) -> S2TSettings:
    """Build settings, converting a missing or blank API key into ConfigurationError."""
    try:
        return S2TSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        if any(err["loc"] and err["loc"][0] == "api_key" for err in e.errors()):
            raise ConfigurationError(
                "S2T_API_KEY environment variable is required",
                hint=f"Get your API key at: {API_KEY_PURCHASE_URL}",
            ) from e
        raise

