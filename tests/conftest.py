"""
Pytest configuration for the Postgres driver.

Provides fixtures for:
- In-memory fake client factories (pool and single connection) for unit tests
- A recording query logger
- Settings and database availability checks for integration tests
"""

from __future__ import annotations

import os

import pytest

from pgdriver.config import Settings
from pgdriver.domain.models import DriverOptions
from tests.fakes import FakeClientFactory, RecordingQueryLogger


@pytest.fixture
def driver_options() -> DriverOptions:
    return DriverOptions(
        host="localhost",
        port=5432,
        username="test",
        password="secret",
        database="test_db",
    )


@pytest.fixture
def single_options(driver_options: DriverOptions) -> DriverOptions:
    return driver_options.model_copy(update={"use_pool": False})


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def query_logger() -> RecordingQueryLogger:
    return RecordingQueryLogger()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        import psycopg

        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except Exception:
        return False
