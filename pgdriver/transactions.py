"""Per-connection transaction state machine."""

from __future__ import annotations

from pgdriver.domain.models import DatabaseConnection
from pgdriver.errors import TransactionAlreadyStartedError, TransactionNotStartedError
from pgdriver.executor import QueryExecutor


class TransactionCoordinator:
    """
    Drives begin / commit / rollback on a connection.

    The state lives in `DatabaseConnection.is_transaction_active` and only flips
    after the statement succeeded, so a failed COMMIT leaves the connection
    marked as inside its transaction.
    """

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    async def begin(self, db_connection: DatabaseConnection) -> None:
        if db_connection.is_transaction_active:
            raise TransactionAlreadyStartedError()

        await self.executor.query(db_connection, "START TRANSACTION")
        db_connection.is_transaction_active = True

    async def commit(self, db_connection: DatabaseConnection) -> None:
        if not db_connection.is_transaction_active:
            raise TransactionNotStartedError()

        await self.executor.query(db_connection, "COMMIT")
        db_connection.is_transaction_active = False

    async def rollback(self, db_connection: DatabaseConnection) -> None:
        if not db_connection.is_transaction_active:
            raise TransactionNotStartedError()

        await self.executor.query(db_connection, "ROLLBACK")
        db_connection.is_transaction_active = False


__all__ = ["TransactionCoordinator"]
