"""
Error taxonomy for the Postgres driver.

Every error raised by the driver itself derives from `DriverError`. Transport
errors raised by the client library (e.g. `psycopg.Error`) are not wrapped when
a query fails; they are logged and propagated unchanged.
"""

from __future__ import annotations


class DriverError(Exception):
    """Base class for all driver errors."""


class ConnectionNotSetError(DriverError):
    """Raised when an operation needs a connection or pool and none is established."""

    def __init__(self, driver_name: str) -> None:
        super().__init__(
            f"Connection with database for the '{driver_name}' driver is not established. "
            "Call connect() before using the driver."
        )
        self.driver_name = driver_name


class DriverConnectionError(DriverError, ConnectionError):
    """Raised when a single (non-pooled) connection cannot be opened."""


class TransactionAlreadyStartedError(DriverError):
    """Raised when a transaction is started on a connection that already has one."""

    def __init__(self) -> None:
        super().__init__("Transaction is already started on this connection.")


class TransactionNotStartedError(DriverError):
    """Raised when commit/rollback is requested without an active transaction."""

    def __init__(self) -> None:
        super().__init__("Transaction is not started on this connection.")


class DriverPackageNotInstalledError(DriverError):
    """Raised when the client library backing the driver cannot be imported."""

    def __init__(self, driver_name: str, package_name: str) -> None:
        super().__init__(
            f"{driver_name} package has not been found installed. "
            f"Try to install it: pip install {package_name}"
        )
        self.driver_name = driver_name
        self.package_name = package_name


class DriverPackageLoadError(DriverError):
    """Raised when a client library is present but cannot be loaded."""

    def __init__(self, message: str = "Cannot load the client package for the driver.") -> None:
        super().__init__(message)


class DriverOptionNotSetError(DriverError):
    """Raised at construction time when a required driver option is missing."""

    def __init__(self, option_name: str) -> None:
        super().__init__(f"Driver option ({option_name}) is not set. Please set it to perform connection to the database.")
        self.option_name = option_name


class MarshallingError(DriverError, ValueError):
    """Raised when a value cannot be converted to or from its storage form."""


class MissingConditionsError(DriverError, ValueError):
    """Raised when a DELETE is requested without any condition."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"Refusing to delete from '{table_name}' without conditions.")
        self.table_name = table_name


__all__ = [
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
]
