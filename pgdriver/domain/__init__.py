"""
Domain package for the Postgres driver.

Exports the data definitions shared by the connection manager, the query
executor and the marshaller. Keep this package free of I/O.
"""

from pgdriver.domain.models import (
    ColumnMetadata,
    ColumnType,
    DatabaseConnection,
    DriverOptions,
    ReleaseCallback,
)

__all__ = [
    "ColumnMetadata",
    "ColumnType",
    "DatabaseConnection",
    "DriverOptions",
    "ReleaseCallback",
]
