"""
Application configuration using Pydantic Settings.

This module provides typed and validated settings for the pricing engine,
with support for environment variables and .env files.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    # DATABASE_URL wins over the individual parameters
    url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full database URL (takes precedence over individual params)",
    )

    name: str = Field(default="crossborder_pricing", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: SecretStr = Field(default=SecretStr("postgres"), description="Database password")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port", ge=1, le=65535)

    @property
    def connection_url(self) -> str:
        """Get the database connection URL."""
        if self.url:
            return self.url
        return (
            f"postgresql://{self.user}:{self.password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    @property
    def safe_url(self) -> str:
        """Get the database URL without password, for logging."""
        if self.url:
            parsed = urlparse(self.url)
            if parsed.password:
                return self.url.replace(f":{parsed.password}@", ":***@")
            return self.url
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")


class PricingSettings(BaseSettings):
    """
    Quote pricing and reconciliation settings.

    Defaults reproduce the production behaviour; every value can be
    overridden through ``PRICING_*`` environment variables.
    """

    model_config = SettingsConfigDict(env_prefix="PRICING_")

    exchange_rate_cache_ttl: int = Field(
        default=900,
        ge=0,
        description="Seconds a resolved exchange rate stays cached",
    )
    default_shipping_cost: Decimal = Field(
        default=Decimal("25.00"),
        ge=0,
        description="Shipping cost used when no route or settings can be read",
    )
    default_carrier: str = Field(default="Standard", description="Carrier for default shipping")
    default_delivery_days: str = Field(
        default="7-14", description="Delivery window for default shipping"
    )
    payment_tolerance_usd: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="USD tolerance absorbing floating-point noise in payment status",
    )
    no_decimal_currencies: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["NPR", "INR", "JPY", "KRW", "VND", "IDR"],
        description="Currencies rounded to whole units",
    )

    @field_validator("no_decimal_currencies", mode="before")
    @classmethod
    def parse_currencies(cls, v: str | list[str]) -> list[str]:
        """Parse currencies from a comma-separated string or list."""
        if isinstance(v, str):
            return [c.strip().upper() for c in v.split(",") if c.strip()]
        return [c.upper() for c in v]


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides environment-specific
    settings loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    secret_key: SecretStr = Field(
        default=SecretStr("django-insecure-change-me-in-production"),
        description="Django secret key",
    )
    allowed_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        description="Allowed hosts",
    )
    log_json: bool = Field(default=False, description="Render logs as JSON")
    log_level: str = Field(default="INFO", description="Minimum log level")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: str | list[str]) -> list[str]:
        """Parse allowed hosts from comma-separated string or list."""
        if isinstance(v, str):
            return [h.strip() for h in v.split(",") if h.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()
