"""
Query logger collaborator.

The driver reports every statement it runs, and every statement that failed,
through a `QueryLogger`. `DriverLogger` is the default implementation built on
the standard logging setup from `pgdriver.utils.logging`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from pgdriver.utils.logging import get_logger


@runtime_checkable
class QueryLogger(Protocol):
    """Receives query and error notifications from the driver."""

    def log_query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> None:
        ...

    def log_failed_query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> None:
        ...

    def log_query_error(self, error: BaseException) -> None:
        ...


class DriverLogger:
    """
    Logs queries on the `pgdriver.query` logger.

    Executed statements are logged at DEBUG only when `log_queries` is enabled;
    failed statements and their errors are logged at ERROR while
    `log_failed_queries` is enabled.
    """

    def __init__(
        self,
        log_queries: bool = False,
        log_failed_queries: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.log_queries = log_queries
        self.log_failed_queries = log_failed_queries
        self._log = logger or get_logger("pgdriver.query")

    def log_query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> None:
        if not self.log_queries:
            return
        self._log.debug("executing query: %s", sql, extra={"parameters": _render(parameters)})

    def log_failed_query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> None:
        if not self.log_failed_queries:
            return
        self._log.error("query failed: %s", sql, extra={"parameters": _render(parameters)})

    def log_query_error(self, error: BaseException) -> None:
        if not self.log_failed_queries:
            return
        self._log.error(
            "error during query execution: %s",
            error,
            extra={"error_type": type(error).__name__},
        )


def _render(parameters: Optional[Sequence[Any]]) -> list[str]:
    return [repr(value) for value in parameters] if parameters else []


__all__ = ["DriverLogger", "QueryLogger"]
