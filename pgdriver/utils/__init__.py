"""
Utilities package for the Postgres driver.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of driver-specific logic.
"""

from pgdriver.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
