"""
Infrastructure package for the Postgres driver.

Centralizes connectivity concerns (client capability, transport adapters,
pooling and the connection lifecycle). Keep this layer focused on I/O and
resource management, decoupled from statement building.
"""

from pgdriver.infrastructure.client import (
    ClientConnection,
    ClientFactory,
    ClientPool,
    available_clients,
    resolve_client_factory,
)
from pgdriver.infrastructure.connection_manager import ConnectionManager

__all__ = [
    "ClientConnection",
    "ClientFactory",
    "ClientPool",
    "ConnectionManager",
    "available_clients",
    "resolve_client_factory",
]
