"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
The STORAGE_BACKEND variable decides where menu and order state is mirrored:

    - local: no remote backend, menu state lives only in process memory
    - mock: in-memory remote store with simulated latency and failures
    - postgres: PostgreSQL tables plus Redis pub/sub change feed

Usage:
    from carta.core.config import get_settings
    from carta.services.storage import create_remote_store

    settings = get_settings()
    remote = create_remote_store(settings)  # None when STORAGE_BACKEND=local
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing, simulation endpoints enabled
        PRODUCTION: Live restaurant deployment
        STAGING: Pre-production testing
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class StorageBackend(str, Enum):
    """Where menu and order rows are mirrored."""
    LOCAL = "local"
    MOCK = "mock"
    POSTGRES = "postgres"


class CleanupBackend(str, Enum):
    """How delivered orders are purged after the grace delay."""
    INLINE = "inline"
    CELERY = "celery"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Remote storage
        storage_backend: local, mock or postgres
        database_url: PostgreSQL connection string (postgres backend)
        redis_url: Redis connection string for realtime feed and Celery

        # Sync behaviour
        bulk_sync_idle_seconds: Quiet period before a coalesced menu upsert
        order_cleanup_delay_seconds: Delay before a delivered order is deleted

        # Business Configuration
        restaurant_name: Display name for the restaurant
        currency_symbol: Prefix used in spoken and displayed prices
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Carta Digital",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )
    public_base_url: str = Field(
        default="http://localhost:8001",
        description="Base URL printed in QR codes and share links"
    )

    # ==========================================================================
    # REMOTE STORAGE
    # ==========================================================================

    storage_backend: StorageBackend = Field(
        default=StorageBackend.LOCAL,
        description="Remote mirror for menu and orders"
    )
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL (postgres backend only)"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )

    # ==========================================================================
    # REDIS / CELERY
    # ==========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    realtime_channel_prefix: str = Field(
        default="carta:changes",
        description="Redis pub/sub channel prefix for table change events"
    )

    # ==========================================================================
    # MOCK BACKEND
    # ==========================================================================

    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that a mock remote call fails"
    )
    mock_min_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum simulated latency in seconds"
    )
    mock_max_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Maximum simulated latency in seconds"
    )

    # ==========================================================================
    # SYNC & ORDERS
    # ==========================================================================

    bulk_sync_idle_seconds: float = Field(
        default=0.25,
        ge=0.0,
        description="Quiet period before bulk menu edits are upserted"
    )
    order_cleanup_delay_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Seconds a delivered order is kept before deletion"
    )
    order_cleanup_backend: CleanupBackend = Field(
        default=CleanupBackend.INLINE,
        description="Scheduler used for delivered-order cleanup"
    )
    notification_history_size: int = Field(
        default=50,
        ge=1,
        description="How many recent notifications the dashboard can poll"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    restaurant_name: str = Field(
        default="Sabor Limeño",
        description="Restaurant display name"
    )
    currency_symbol: str = Field(
        default="S/",
        description="Currency prefix for prices"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", "storage_backend", "order_cleanup_backend", mode="before")
    @classmethod
    def lowercase_choice(cls, v, info):
        """Enum choices are case-insensitive in the environment."""
        if isinstance(v, Enum):
            return v
        enum_type = cls.model_fields[info.field_name].annotation
        try:
            return enum_type(str(v).strip().lower())
        except ValueError:
            valid = [e.value for e in enum_type]
            raise ValueError(f"Invalid {info.field_name}. Must be one of: {valid}")

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_backend_config(self) -> list[str]:
        """
        Validate that the selected storage backend has what it needs.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.storage_backend == StorageBackend.POSTGRES:
            if not self.database_url:
                missing.append("DATABASE_URL")
            if not self.redis_url:
                missing.append("REDIS_URL")

        if self.order_cleanup_backend == CleanupBackend.CELERY:
            if self.storage_backend != StorageBackend.POSTGRES:
                missing.append("STORAGE_BACKEND=postgres (required by celery cleanup)")

        if self.mock_max_latency < self.mock_min_latency:
            missing.append("MOCK_MAX_LATENCY >= MOCK_MIN_LATENCY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once per process.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.storage_backend)
        StorageBackend.LOCAL
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("carta")
