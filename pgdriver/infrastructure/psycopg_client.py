"""
psycopg 3 / psycopg_pool adapter for the driver's client capability.

Connections run in autocommit mode: transactions are driven by the explicit
START TRANSACTION / COMMIT / ROLLBACK statements the driver issues. Raw cursors
are used so the driver's `$n` placeholders reach the server unchanged, and rows
come back as dicts.
"""

from __future__ import annotations

import weakref
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from pgdriver.domain.models import ReleaseCallback
from pgdriver.utils.logging import get_logger

log = get_logger(__name__)

# keys of the merged parameter map that size the pool instead of the connection
_POOL_KEYS = ("min_size", "max_size", "timeout")


def _connection_kwargs(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate the driver's parameter map into psycopg connect() keywords."""
    kwargs: Dict[str, Any] = {}
    for key, value in params.items():
        if key in _POOL_KEYS or value is None:
            continue
        if key == "database":
            key = "dbname"
        kwargs[key] = value
    kwargs.update(
        autocommit=True,
        row_factory=dict_row,
        cursor_factory=psycopg.AsyncRawCursor,
    )
    return kwargs


def _to_wire(parameters: Optional[Sequence[Any]]) -> Optional[List[Any]]:
    """
    Send numbers as text so the server infers their type from the column, which
    lets the 1/0 produced for boolean columns land in a boolean column.
    """
    if not parameters:
        return None
    return [
        str(value) if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool) else value
        for value in parameters
    ]


class PsycopgConnection:
    """A psycopg `AsyncConnection`, opened on `connect()` or wrapped already open."""

    def __init__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        connect_attempts: int = 3,
        raw: Optional[psycopg.AsyncConnection] = None,
    ) -> None:
        self._params = dict(params or {})
        self._connect_attempts = max(1, connect_attempts)
        self.raw = raw

    async def connect(self) -> None:
        if self.raw is not None:
            return
        kwargs = _connection_kwargs(self._params)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._connect_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(psycopg.OperationalError),
            reraise=True,
        ):
            with attempt:
                self.raw = await psycopg.AsyncConnection.connect(**kwargs)
        log.debug("opened connection to %s", kwargs.get("host"))

    async def query(self, sql: str, parameters: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        if self.raw is None:
            raise psycopg.InterfaceError("connection is not open")
        async with self.raw.cursor() as cur:
            await cur.execute(sql, _to_wire(parameters))
            if cur.description is None:
                return []
            return await cur.fetchall()

    async def end(self) -> None:
        if self.raw is not None:
            await self.raw.close()


class PsycopgPool:
    """
    `AsyncConnectionPool` wrapper, created closed and opened on first acquisition.

    Handles are cached per physical connection so the same connection handed out
    twice is the same `PsycopgConnection` object. The cache only holds handles
    weakly: once the driver drops its record of a connection the entry goes
    away, so connections the pool replaces are not pinned in memory.
    """

    def __init__(self, params: Mapping[str, Any]) -> None:
        self._pool = AsyncConnectionPool(
            conninfo="",
            kwargs=_connection_kwargs(params),
            min_size=int(params.get("min_size", 1)),
            max_size=int(params.get("max_size", 10)),
            timeout=float(params.get("timeout", 30.0)),
            open=False,
        )
        self._opened = False
        # keyed by id(raw): a live handle keeps its raw connection alive, so the id is not reused
        self._handles: "weakref.WeakValueDictionary[int, PsycopgConnection]" = weakref.WeakValueDictionary()

    @property
    def raw(self) -> AsyncConnectionPool:
        return self._pool

    async def connect(self) -> Tuple[PsycopgConnection, ReleaseCallback]:
        if not self._opened:
            await self._pool.open()
            self._opened = True
        raw = await self._pool.getconn()
        handle = self._handles.get(id(raw))
        if handle is None:
            handle = PsycopgConnection(raw=raw)
            self._handles[id(raw)] = handle

        async def release() -> None:
            await self._pool.putconn(raw)

        return handle, release

    async def end(self) -> None:
        await self._pool.close()
        self._handles.clear()


class PsycopgClientFactory:
    """Client factory backed by psycopg 3 and psycopg_pool."""

    name: str = "psycopg"

    def __init__(self, connect_attempts: int = 3) -> None:
        self.connect_attempts = connect_attempts

    def create_pool(self, params: Mapping[str, Any]) -> PsycopgPool:
        return PsycopgPool(params)

    def create_connection(self, params: Mapping[str, Any]) -> PsycopgConnection:
        return PsycopgConnection(params, connect_attempts=self.connect_attempts)


__all__ = ["PsycopgClientFactory", "PsycopgConnection", "PsycopgPool"]
