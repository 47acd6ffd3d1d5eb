"""
pgdriver - asyncio Postgres driver core.

This package provides the driver layer a persistence library sits on:

- Pooled or single-connection lifecycle with explicit retrieve/release
- Per-connection transaction state (begin / commit / rollback)
- INSERT / UPDATE / DELETE and closure-table statement building
- Conversion of column values to and from their stored representation
- Rewriting of `:name` parameters into Postgres `$n` placeholders

The client library (psycopg 3 by default) is reached through a small
capability interface so it can be swapped or faked in tests.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pgdriver.config import Settings, get_settings
from pgdriver.domain.models import ColumnMetadata, ColumnType, DatabaseConnection, DriverOptions
from pgdriver.driver import NativeInterface, PostgresDriver
from pgdriver.errors import (
    ConnectionNotSetError,
    DriverConnectionError,
    DriverError,
    DriverOptionNotSetError,
    DriverPackageLoadError,
    DriverPackageNotInstalledError,
    MarshallingError,
    MissingConditionsError,
    TransactionAlreadyStartedError,
    TransactionNotStartedError,
)
from pgdriver.logger import DriverLogger, QueryLogger
from pgdriver.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Driver
    "NativeInterface",
    "PostgresDriver",
    # Domain
    "ColumnMetadata",
    "ColumnType",
    "DatabaseConnection",
    "DriverOptions",
    # Errors
    "ConnectionNotSetError",
    "DriverConnectionError",
    "DriverError",
    "DriverOptionNotSetError",
    "DriverPackageLoadError",
    "DriverPackageNotInstalledError",
    "MarshallingError",
    "MissingConditionsError",
    "TransactionAlreadyStartedError",
    "TransactionNotStartedError",
    # Logging
    "DriverLogger",
    "QueryLogger",
    "configure_logging",
    "get_logger",
]
