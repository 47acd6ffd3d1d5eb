"""
Postgres driver facade.

`PostgresDriver` composes the connection manager, the query executor, the
transaction coordinator, the marshaller and the SQL helpers behind the surface
the persistence layer uses.

Usage:
    driver = PostgresDriver(DriverOptions(host="localhost", username="app", database="app"))
    await driver.connect()
    async with driver.connection() as conn:
        async with driver.transaction(conn):
            user_id = await driver.insert(conn, "users", {"name": "Ann"}, "id")
    await driver.disconnect()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Mapping, Optional, Sequence, Tuple, Union

from pgdriver import marshalling
from pgdriver.config import Settings, get_settings
from pgdriver.domain.models import ColumnMetadata, DatabaseConnection, DriverOptions
from pgdriver.errors import ConnectionNotSetError
from pgdriver.executor import QueryExecutor, Row
from pgdriver.infrastructure.client import ClientConnection, ClientFactory, ClientPool, resolve_client_factory
from pgdriver.infrastructure.connection_manager import DRIVER_NAME, ConnectionManager
from pgdriver.logger import DriverLogger, QueryLogger
from pgdriver.schema_builder import PostgresSchemaBuilder
from pgdriver.sql import escaping
from pgdriver.sql.parameters import rewrite_named_parameters
from pgdriver.transactions import TransactionCoordinator
from pgdriver.utils.logging import configure_logging

_SELECT_DROP_QUERIES = (
    "SELECT 'DROP TABLE IF EXISTS \"' || tablename || '\" CASCADE;' as query "
    "FROM pg_tables WHERE schemaname = 'public'"
)


@dataclass(frozen=True)
class NativeInterface:
    """Raw transport objects for code that needs to bypass the driver."""

    driver: ClientFactory
    connection: Optional[ClientConnection]
    pool: Optional[ClientPool]


class PostgresDriver:
    """
    This driver organizes work with a Postgres database.

    The client library is injected as a `ClientFactory`; when none is given it is
    resolved by name (`"psycopg"` by default) at construction time, so a missing
    library fails before any connection is attempted.
    """

    def __init__(
        self,
        options: Union[DriverOptions, Mapping[str, Any]],
        logger: Optional[QueryLogger] = None,
        client_factory: Optional[ClientFactory] = None,
        client_name: str = "psycopg",
    ) -> None:
        self.options = options if isinstance(options, DriverOptions) else DriverOptions(**options)
        self.logger: QueryLogger = logger or DriverLogger()
        self.client_factory: ClientFactory = client_factory or resolve_client_factory(client_name)
        self.connections = ConnectionManager(self.options, self.client_factory)
        self.executor = QueryExecutor(self.connections, self.logger)
        self.transactions = TransactionCoordinator(self.executor)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        logger: Optional[QueryLogger] = None,
        client_factory: Optional[ClientFactory] = None,
        configure_logs: bool = False,
    ) -> "PostgresDriver":
        """
        Build a driver from environment settings (cached `get_settings()` by default).

        With `configure_logs`, logging is also set up from `LOG_LEVEL` and
        `LOG_JSON`, unless the application already configured it.
        """
        settings = settings or get_settings()
        if configure_logs:
            configure_logging(settings.log_level, settings.log_json, force=False)
        if client_factory is None:
            client_factory = resolve_client_factory(
                settings.db_client, connect_attempts=settings.db_connect_attempts
            )
        return cls(
            settings.driver_options(),
            logger=logger or DriverLogger(log_queries=settings.db_log_queries),
            client_factory=client_factory,
        )

    # connection lifecycle

    async def connect(self) -> None:
        """
        Performs connection to the database.

        With pooling (the default) only the pool is created; connections are
        opened as they are retrieved. Otherwise a single connection is opened now.
        """
        await self.connections.connect()

    async def disconnect(self) -> None:
        """Closes the connection or the pool, releasing pooled connections first."""
        await self.connections.disconnect()

    async def retrieve_connection(self) -> DatabaseConnection:
        """
        Retrieves a database connection: one from the pool when pooling is on,
        the single persistent connection otherwise.
        """
        return await self.connections.retrieve()

    async def release_connection(self, db_connection: DatabaseConnection) -> None:
        """Releases a pooled connection. Non-pooled connections are left open."""
        await self.connections.release(db_connection)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[DatabaseConnection]:
        """
        Context manager for obtaining a connection that is always released.

        Example
        -------
            async with driver.connection() as conn:
                rows = await driver.query(conn, "SELECT 1")
        """
        db_connection = await self.retrieve_connection()
        try:
            yield db_connection
        finally:
            await self.release_connection(db_connection)

    def create_schema_builder(self, db_connection: DatabaseConnection) -> PostgresSchemaBuilder:
        """Creates a schema builder bound to the given connection."""
        return PostgresSchemaBuilder(self, db_connection)

    async def clear_database(self, db_connection: DatabaseConnection) -> None:
        """Drops every table of the public schema."""
        if not self.connections.is_connected:
            raise ConnectionNotSetError(DRIVER_NAME)

        drop_queries = await self.query(db_connection, _SELECT_DROP_QUERIES)
        await asyncio.gather(*(self.query(db_connection, row["query"]) for row in drop_queries))

    # transactions

    async def begin_transaction(self, db_connection: DatabaseConnection) -> None:
        await self.transactions.begin(db_connection)

    async def commit_transaction(self, db_connection: DatabaseConnection) -> None:
        await self.transactions.commit(db_connection)

    async def rollback_transaction(self, db_connection: DatabaseConnection) -> None:
        await self.transactions.rollback(db_connection)

    @asynccontextmanager
    async def transaction(self, db_connection: DatabaseConnection) -> AsyncIterator[DatabaseConnection]:
        """Run the block in a transaction: commit on success, rollback and re-raise on error."""
        await self.begin_transaction(db_connection)
        try:
            yield db_connection
        except BaseException:
            await self.rollback_transaction(db_connection)
            raise
        await self.commit_transaction(db_connection)

    # statements

    async def query(
        self, db_connection: DatabaseConnection, sql: str, parameters: Optional[Sequence[Any]] = None
    ) -> List[Row]:
        """Executes a given SQL query and returns its rows."""
        return await self.executor.query(db_connection, sql, parameters)

    async def insert(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        key_values: Mapping[str, Any],
        id_column_name: Optional[str] = None,
    ) -> Any:
        """Insert a new row into given table."""
        return await self.executor.insert(db_connection, table_name, key_values, id_column_name)

    async def update(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        values_map: Mapping[str, Any],
        conditions: Mapping[str, Any],
    ) -> None:
        """Updates rows that match given conditions in the given table."""
        await self.executor.update(db_connection, table_name, values_map, conditions)

    async def delete(
        self, db_connection: DatabaseConnection, table_name: str, conditions: Mapping[str, Any]
    ) -> None:
        """Deletes from the given table by a given conditions."""
        await self.executor.delete(db_connection, table_name, conditions)

    async def insert_into_closure_table(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        new_entity_id: Any,
        parent_id: Any,
        has_level: bool,
    ) -> int:
        """Inserts rows into closure table. Ids are interpolated, see `QueryExecutor`."""
        return await self.executor.insert_into_closure_table(
            db_connection, table_name, new_entity_id, parent_id, has_level
        )

    # values and escaping

    def prepare_persistent_value(self, value: Any, column: ColumnMetadata) -> Any:
        return marshalling.prepare_persistent_value(value, column)

    def prepare_hydrated_value(self, value: Any, column: ColumnMetadata) -> Any:
        return marshalling.prepare_hydrated_value(value, column)

    def escape_query_with_parameters(
        self, sql: str, parameters: Optional[Mapping[str, Any]]
    ) -> Tuple[str, List[Any]]:
        """Replaces `:name` parameters with `$n` placeholders and returns the bound values."""
        return rewrite_named_parameters(sql, parameters)

    def escape_column_name(self, column_name: str) -> str:
        return escaping.escape_column_name(column_name)

    def escape_alias_name(self, alias_name: str) -> str:
        return escaping.escape_alias_name(alias_name)

    def escape_table_name(self, table_name: str) -> str:
        return escaping.escape_table_name(table_name)

    def native_interface(self) -> NativeInterface:
        """Access to the native implementation of the database."""
        single = self.connections.database_connection
        return NativeInterface(
            driver=self.client_factory,
            connection=single.connection if single is not None else None,
            pool=self.connections.pool,
        )


__all__ = ["NativeInterface", "PostgresDriver"]
