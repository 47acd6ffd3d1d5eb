"""
Connection lifecycle for the Postgres driver.

`ConnectionManager` owns either a pool or a single persistent connection,
depending on the driver options, and keeps track of the pooled connections
currently handed out so they can be released on disconnect.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Dict, List, Optional

from pgdriver.domain.models import DatabaseConnection, DriverOptions
from pgdriver.errors import ConnectionNotSetError, DriverConnectionError
from pgdriver.infrastructure.client import ClientConnection, ClientFactory, ClientPool
from pgdriver.utils.logging import get_logger

log = get_logger(__name__)

DRIVER_NAME = "postgres"


class ConnectionManager:
    """
    Owns the pool or single connection and the records of pooled connections in use.

    Mutations of the tracked-connection list are serialized with an asyncio lock,
    so concurrent retrievals of the same physical connection never create two
    records. Callers must release every connection they retrieve; the
    `PostgresDriver.connection()` context manager does so on every exit path.
    """

    def __init__(self, options: DriverOptions, client_factory: ClientFactory) -> None:
        self.options = options
        self.client_factory = client_factory
        self.pool: Optional[ClientPool] = None
        self.database_connection: Optional[DatabaseConnection] = None
        self._pooled_connections: List[DatabaseConnection] = []
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """True once a pool or a single connection exists."""
        return self.pool is not None or self.database_connection is not None

    @property
    def pooled_connections(self) -> List[DatabaseConnection]:
        """Snapshot of the pooled connections currently handed out."""
        return list(self._pooled_connections)

    def connection_params(self) -> Dict[str, Any]:
        """Connection parameters for the client; the `extra` map wins on key collisions."""
        params: Dict[str, Any] = {
            "host": self.options.host,
            "user": self.options.username,
            "password": self.options.password,
            "database": self.options.database,
            "port": self.options.port,
        }
        params.update(self.options.extra)
        return params

    async def connect(self) -> None:
        """
        Create the pool, or open the single connection when pooling is disabled.

        Creating a pool does not open any physical connection; they are opened as
        they are retrieved.

        Raises
        ------
        DriverConnectionError
            If the single connection cannot be opened.
        """
        params = self.connection_params()
        if self.options.pooling_enabled:
            self.pool = self.client_factory.create_pool(params)
            log.info("connection pool created for %s:%s", self.options.host, self.options.port)
            return

        client: ClientConnection = self.client_factory.create_connection(params)
        try:
            await client.connect()
        except Exception as exc:
            raise DriverConnectionError(
                f"Failed to connect to {self.options.host}:{self.options.port}/{self.options.database}: {exc}"
            ) from exc
        self.database_connection = DatabaseConnection(id=next(self._ids), connection=client)
        log.info("connected to %s:%s", self.options.host, self.options.port)

    async def disconnect(self) -> None:
        """
        Close the single connection or the pool.

        Every pooled connection still handed out is released before the pool is
        closed. Calling it again without a new `connect()` fails.

        Raises
        ------
        ConnectionNotSetError
            If there is nothing to disconnect.
        """
        if not self.is_connected:
            raise ConnectionNotSetError(DRIVER_NAME)

        if self.database_connection is not None:
            connection = self.database_connection
            self.database_connection = None
            await connection.connection.end()

        if self.pool is not None:
            pool = self.pool
            self.pool = None
            async with self._lock:
                tracked = self._pooled_connections
                self._pooled_connections = []
            try:
                for db_connection in tracked:
                    callback = db_connection.release_callback
                    if callback is not None:
                        db_connection.release_callback = None
                        await callback()
            finally:
                await pool.end()
        log.info("disconnected from %s:%s", self.options.host, self.options.port)

    async def retrieve(self) -> DatabaseConnection:
        """
        Return a connection to run statements on.

        With pooling, a connection is acquired from the pool (waiting while the
        pool is exhausted) and matched against the tracked records by handle
        identity. The release callback is re-attached on every retrieval because
        the pool hands out a new one each time. Without pooling, the single
        persistent connection is returned.

        Raises
        ------
        ConnectionNotSetError
            If neither a pool nor a single connection exists.
        """
        if self.pool is not None:
            handle, release = await self.pool.connect()
            async with self._lock:
                db_connection = next(
                    (tracked for tracked in self._pooled_connections if tracked.connection is handle),
                    None,
                )
                if db_connection is None:
                    db_connection = DatabaseConnection(id=next(self._ids), connection=handle)
                    self._pooled_connections.append(db_connection)
                db_connection.release_callback = release
            log.debug("retrieved pooled connection %s", db_connection.id)
            return db_connection

        if self.database_connection is not None:
            return self.database_connection

        raise ConnectionNotSetError(DRIVER_NAME)

    async def release(self, db_connection: DatabaseConnection) -> None:
        """
        Return a pooled connection to the pool.

        The release callback runs at most once per retrieval: it is detached
        before being awaited, so releasing the same connection twice is a no-op.
        Connections that do not come from a pool are never released.
        """
        if self.pool is None or db_connection.release_callback is None:
            return

        callback = db_connection.release_callback
        db_connection.release_callback = None
        async with self._lock:
            if db_connection in self._pooled_connections:
                self._pooled_connections.remove(db_connection)
        await callback()
        log.debug("released pooled connection %s", db_connection.id)


__all__ = ["ConnectionManager", "DRIVER_NAME"]
