"""
Configuration settings for ormlet.

Uses Pydantic Settings to load the connection URL, driver, credentials and pool
sizing from ``ORM_*`` environment variables (or a ``.env`` file). The engine
only consumes a resolved Settings value; ``connect()`` accepts one explicitly.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ormlet.errors import ConfigurationError


class Driver(str, Enum):
    """Reference dialects: embedded file engine and networked engine."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class Settings(BaseSettings):
    # Connection
    url: str = Field("sqlite:///ormlet.db", alias="ORM_URL")
    driver: Optional[Driver] = Field(None, alias="ORM_DRIVER")
    username: Optional[str] = Field(None, alias="ORM_USERNAME")
    password: Optional[str] = Field(None, alias="ORM_PASSWORD")

    # Pool sizing
    init_size: int = Field(30, ge=0, alias="ORM_INIT_SIZE")
    max_size: int = Field(200, ge=1, alias="ORM_MAX_SIZE")
    min_idle: int = Field(10, ge=0, alias="ORM_MIN_IDLE")
    max_idle: int = Field(20, ge=0, alias="ORM_MAX_IDLE")
    pool_timeout: float = Field(30.0, gt=0, alias="ORM_POOL_TIMEOUT")
    connect_attempts: int = Field(3, ge=1, alias="ORM_CONNECT_ATTEMPTS")

    # Application
    log_level: str = Field("INFO", alias="ORM_LOG_LEVEL")
    json_logs: bool = Field(False, alias="ORM_JSON_LOGS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_pool_sizing(self) -> "Settings":
        if self.min_idle > self.max_idle:
            raise ValueError(f"min_idle ({self.min_idle}) exceeds max_idle ({self.max_idle})")
        if self.init_size > self.max_size:
            raise ValueError(f"init_size ({self.init_size}) exceeds max_size ({self.max_size})")
        if self.max_idle > self.max_size:
            raise ValueError(f"max_idle ({self.max_idle}) exceeds max_size ({self.max_size})")
        return self

    def resolved_driver(self) -> Driver:
        """
        Return the configured driver, inferring it from the URL scheme when unset.

        Raises
        ------
        ConfigurationError
            If the URL is empty or its scheme matches no supported driver.
        """
        if self.driver is not None:
            return self.driver
        url = (self.url or "").strip()
        if not url:
            raise ConfigurationError("No database URL configured (set ORM_URL).")
        if url.startswith(("postgresql://", "postgres://")):
            return Driver.POSTGRESQL
        if url.startswith("sqlite:") or url == ":memory:" or "://" not in url:
            return Driver.SQLITE
        raise ConfigurationError(f"Cannot infer a driver from URL '{url}'.")

    def masked_url(self) -> str:
        """URL with any inline password replaced, for display."""
        scheme, sep, rest = self.url.partition("://")
        if not sep or "@" not in rest:
            return self.url
        credentials, _, host = rest.rpartition("@")
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Driver", "Settings", "get_settings"]
