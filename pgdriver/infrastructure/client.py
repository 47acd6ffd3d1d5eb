"""
Capability interfaces the driver expects from a Postgres client library.

The driver never talks to a client library directly. It receives a
`ClientFactory` (or resolves one by name) and only uses the `connect` /
`query` / `end` surface defined here. Adapters for concrete libraries live in
sibling modules and are imported lazily so a missing library is reported as a
driver error instead of an import failure at package import time.
"""

from __future__ import annotations

import importlib
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from pgdriver.domain.models import ReleaseCallback
from pgdriver.errors import DriverPackageLoadError, DriverPackageNotInstalledError
from pgdriver.utils.logging import get_logger

log = get_logger(__name__)

Row = Dict[str, Any]


@runtime_checkable
class ClientConnection(Protocol):
    """A single physical connection handle."""

    async def connect(self) -> None:
        """Open the connection."""
        ...

    async def query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> List[Row]:
        """Run a statement and return its rows (empty for statements without a result set)."""
        ...

    async def end(self) -> None:
        """Close the connection."""
        ...


@runtime_checkable
class ClientPool(Protocol):
    """A pool of physical connections."""

    async def connect(self) -> Tuple[ClientConnection, ReleaseCallback]:
        """
        Acquire a connection, waiting for one to become available.

        Returns the handle and a callback returning it to the pool. The same
        physical connection is always returned as the same handle object.
        """
        ...

    async def end(self) -> None:
        """Close the pool and every connection it owns."""
        ...


@runtime_checkable
class ClientFactory(Protocol):
    """Creates pools and single connections from a merged parameter map."""

    name: str

    def create_pool(self, params: Mapping[str, Any]) -> ClientPool:
        ...

    def create_connection(self, params: Mapping[str, Any]) -> ClientConnection:
        ...


# client name -> (adapter module, factory attribute, package to install)
_ADAPTERS: Dict[str, Tuple[str, str, str]] = {
    "psycopg": ("pgdriver.infrastructure.psycopg_client", "PsycopgClientFactory", "psycopg[binary] psycopg-pool"),
}


def available_clients() -> List[str]:
    """Return the client names `resolve_client_factory` understands."""
    return sorted(_ADAPTERS)


def resolve_client_factory(name: str = "psycopg", **kwargs: Any) -> ClientFactory:
    """
    Load the adapter registered under `name` and instantiate its factory.

    Raises
    ------
    DriverPackageNotInstalledError
        If the client library behind the adapter is not installed.
    DriverPackageLoadError
        If `name` is not registered, or the library is present but fails to load.
    """
    try:
        module_name, attribute, package = _ADAPTERS[name]
    except KeyError:
        raise DriverPackageLoadError(
            f"No client adapter registered for '{name}'. Available: {', '.join(available_clients())}"
        ) from None

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        log.debug("client adapter %s could not be imported: %s", module_name, exc)
        raise DriverPackageNotInstalledError("Postgres", package) from exc
    except Exception as exc:
        raise DriverPackageLoadError(f"Client package for '{name}' failed to load: {exc}") from exc

    factory_cls = getattr(module, attribute)
    return factory_cls(**kwargs)


__all__ = [
    "ClientConnection",
    "ClientFactory",
    "ClientPool",
    "ReleaseCallback",
    "Row",
    "available_clients",
    "resolve_client_factory",
]
