"""
Statement execution and the INSERT / UPDATE / DELETE / closure-table helpers
built on top of it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pgdriver.domain.models import DatabaseConnection
from pgdriver.errors import ConnectionNotSetError, MissingConditionsError
from pgdriver.infrastructure.connection_manager import DRIVER_NAME, ConnectionManager
from pgdriver.logger import QueryLogger
from pgdriver.sql.escaping import escape_column_name, escape_table_name
from pgdriver.sql.parameters import parameter_values, parametrize

Row = Dict[str, Any]


class QueryExecutor:
    """
    Runs statements on a `DatabaseConnection` and logs them.

    Statements on one connection run in the order they are awaited; nothing is
    pipelined or reordered here.
    """

    def __init__(self, connections: ConnectionManager, logger: QueryLogger) -> None:
        self.connections = connections
        self.logger = logger

    def _ensure_connected(self) -> None:
        if not self.connections.is_connected:
            raise ConnectionNotSetError(DRIVER_NAME)

    async def query(
        self,
        db_connection: DatabaseConnection,
        sql: str,
        parameters: Optional[Sequence[Any]] = None,
    ) -> List[Row]:
        """
        Execute `sql` and return its rows.

        A failed statement is logged together with its error, then the transport
        error propagates unchanged.
        """
        self._ensure_connected()
        self.logger.log_query(sql, parameters)
        try:
            return await db_connection.connection.query(sql, parameters)
        except Exception as exc:
            self.logger.log_failed_query(sql, parameters)
            self.logger.log_query_error(exc)
            raise

    async def insert(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        key_values: Mapping[str, Any],
        id_column_name: Optional[str] = None,
    ) -> Union[Any, List[Row]]:
        """
        Insert one row.

        Returns the value of `id_column_name` from the first returned row when it
        is given, otherwise all returned rows.
        """
        self._ensure_connected()
        returning = f" RETURNING {escape_column_name(id_column_name)}" if id_column_name else ""
        if key_values:
            columns = ", ".join(escape_column_name(key) for key in key_values)
            values = ",".join(f"${index}" for index in range(1, len(key_values) + 1))
            sql = f"INSERT INTO {escape_table_name(table_name)}({columns}) VALUES ({values}){returning}"
        else:
            sql = f"INSERT INTO {escape_table_name(table_name)} DEFAULT VALUES{returning}"

        rows = await self.query(db_connection, sql, parameter_values(key_values))
        if id_column_name:
            return rows[0][id_column_name] if rows else None
        return rows

    async def update(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        values_map: Mapping[str, Any],
        conditions: Mapping[str, Any],
    ) -> None:
        """
        Update rows matching `conditions`.

        SET placeholders come first, condition placeholders continue the
        numbering. Empty `conditions` update every row in the table.
        """
        self._ensure_connected()
        update_values = ", ".join(parametrize(values_map))
        condition_string = " AND ".join(parametrize(conditions, len(values_map)))
        sql = f"UPDATE {escape_table_name(table_name)} SET {update_values}"
        if condition_string:
            sql += f" WHERE {condition_string}"
        parameters = parameter_values(values_map) + parameter_values(conditions)
        await self.query(db_connection, sql, parameters)

    async def delete(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        conditions: Mapping[str, Any],
    ) -> None:
        """Delete rows matching `conditions`, which must not be empty."""
        self._ensure_connected()
        if not conditions:
            raise MissingConditionsError(table_name)
        condition_string = " AND ".join(parametrize(conditions))
        sql = f'DELETE FROM "{table_name}" WHERE {condition_string}'
        await self.query(db_connection, sql, parameter_values(conditions))

    async def insert_into_closure_table(
        self,
        db_connection: DatabaseConnection,
        table_name: str,
        new_entity_id: Any,
        parent_id: Any,
        has_level: bool,
    ) -> int:
        """
        Link a new node into a closure table and return its level.

        `new_entity_id` and `parent_id` are written into the SQL text, not bound
        as parameters: they must be ids the persistence layer generated itself
        (e.g. returned by a previous insert), never external input.

        Every ancestor row of `parent_id` is copied for the new node, plus the
        node's own row. The returned level is the parent's highest level plus
        one, or 1 when the parent has no level.

        The level lookup runs whatever `has_level` says, so the table needs a
        `level` column even when the insert itself does not write one.
        """
        table = escape_table_name(table_name)
        if has_level:
            sql = (
                f"INSERT INTO {table}(ancestor, descendant, level) "
                f"SELECT ancestor, {new_entity_id}, level + 1 FROM {table} WHERE descendant = {parent_id} "
                f"UNION ALL SELECT {new_entity_id}, {new_entity_id}, 1"
            )
        else:
            sql = (
                f"INSERT INTO {table}(ancestor, descendant) "
                f"SELECT ancestor, {new_entity_id} FROM {table} WHERE descendant = {parent_id} "
                f"UNION ALL SELECT {new_entity_id}, {new_entity_id}"
            )
        await self.query(db_connection, sql)
        rows = await self.query(
            db_connection, f"SELECT MAX(level) as level FROM {table} WHERE descendant = {parent_id}"
        )
        if rows and rows[0].get("level"):
            return int(rows[0]["level"]) + 1
        return 1


__all__ = ["QueryExecutor"]
