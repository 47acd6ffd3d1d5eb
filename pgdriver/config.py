"""
Configuration settings for the Postgres driver.

Uses Pydantic Settings to load environment variables for the database
connection, pooling and logging. `Settings.driver_options()` turns them into
the immutable `DriverOptions` consumed by the driver.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgdriver.domain.models import DriverOptions


class Settings(BaseSettings):
    # Database
    db_url: Optional[str] = Field(None, alias="DB_URL")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("postgres", alias="DB_NAME")

    # Client / pooling
    db_client: str = Field("psycopg", alias="DB_CLIENT")
    db_use_pool: Optional[bool] = Field(None, alias="DB_USE_POOL")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_pool_timeout: float = Field(30.0, alias="DB_POOL_TIMEOUT")
    db_connect_attempts: int = Field(3, alias="DB_CONNECT_ATTEMPTS")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    db_log_queries: bool = Field(False, alias="DB_LOG_QUERIES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def driver_options(self) -> DriverOptions:
        """
        Build driver options from the settings.

        Pool sizing goes into the `extra` map, which the transport adapter reads
        when it creates a pool.
        """
        extra = {
            "min_size": self.db_pool_min_size,
            "max_size": self.db_pool_max_size,
            "timeout": self.db_pool_timeout,
        }
        # url wins over the individual DB_* values, which always carry defaults
        if self.db_url:
            return DriverOptions(url=self.db_url, use_pool=self.db_use_pool, extra=extra)

        return DriverOptions(
            host=self.db_host,
            port=self.db_port,
            username=self.db_user,
            password=self.db_password,
            database=self.db_name,
            use_pool=self.db_use_pool,
            extra=extra,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
