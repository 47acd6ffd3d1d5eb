"""
Schema builder handed to schema synchronization code.

It holds one connection and issues every statement through the driver's
`query`, so statements are logged and checked like any other.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from pgdriver.domain.models import DatabaseConnection
from pgdriver.sql.escaping import escape_table_name

if TYPE_CHECKING:
    from pgdriver.driver import PostgresDriver


class PostgresSchemaBuilder:
    def __init__(self, driver: "PostgresDriver", db_connection: DatabaseConnection) -> None:
        self.driver = driver
        self.db_connection = db_connection

    async def query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        return await self.driver.query(self.db_connection, sql, parameters)

    async def create_table(self, table_name: str, column_definitions: Sequence[str]) -> None:
        """Create a table from ready-made column definitions, e.g. `'"id" SERIAL PRIMARY KEY'`."""
        columns = ", ".join(column_definitions)
        await self.query(f"CREATE TABLE {escape_table_name(table_name)} ({columns})")

    async def drop_table(self, table_name: str, cascade: bool = True) -> None:
        suffix = " CASCADE" if cascade else ""
        await self.query(f"DROP TABLE IF EXISTS {escape_table_name(table_name)}{suffix}")


__all__ = ["PostgresSchemaBuilder"]
