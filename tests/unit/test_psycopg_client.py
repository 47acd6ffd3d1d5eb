from __future__ import annotations

import gc
from decimal import Decimal

import pytest

pytest.importorskip("psycopg_pool")

import psycopg  # noqa: E402

from pgdriver.infrastructure.psycopg_client import (  # noqa: E402
    PsycopgClientFactory,
    PsycopgConnection,
    PsycopgPool,
    _connection_kwargs,
    _to_wire,
)


def test_connection_kwargs_map_database_and_drop_pool_keys() -> None:
    kwargs = _connection_kwargs(
        {
            "host": "db",
            "user": "app",
            "password": None,
            "database": "appdb",
            "port": 5432,
            "max_size": 4,
            "min_size": 1,
            "timeout": 5.0,
            "application_name": "svc",
        }
    )

    assert kwargs["dbname"] == "appdb"
    assert "database" not in kwargs
    assert "password" not in kwargs
    assert "max_size" not in kwargs and "min_size" not in kwargs and "timeout" not in kwargs
    assert kwargs["application_name"] == "svc"
    assert kwargs["autocommit"] is True
    assert kwargs["cursor_factory"] is psycopg.AsyncRawCursor


def test_numbers_are_sent_as_text() -> None:
    assert _to_wire([1, 2.5, Decimal("3.10"), True, "x", None]) == ["1", "2.5", "3.10", True, "x", None]
    assert _to_wire([]) is None
    assert _to_wire(None) is None


@pytest.mark.asyncio
async def test_query_on_unopened_connection_fails() -> None:
    connection = PsycopgClientFactory().create_connection({"host": "db"})

    assert isinstance(connection, PsycopgConnection)
    with pytest.raises(psycopg.InterfaceError):
        await connection.query("SELECT 1")


class _RawConnection:
    pass


class _CyclingPool:
    """Pool stand-in: hands out `reuse` when set, otherwise a fresh connection each time."""

    def __init__(self) -> None:
        self.reuse = None
        self.returned = []

    async def getconn(self):
        return self.reuse if self.reuse is not None else _RawConnection()

    async def putconn(self, conn) -> None:
        self.returned.append(id(conn))


def _pool_with(fake: _CyclingPool) -> PsycopgPool:
    pool = PsycopgPool({"host": "db"})
    pool._pool = fake
    pool._opened = True
    return pool


@pytest.mark.asyncio
async def test_pool_handle_cache_does_not_grow_with_replaced_connections() -> None:
    pool = _pool_with(_CyclingPool())

    for _ in range(50):
        handle, release = await pool.connect()
        await release()
    del handle, release
    gc.collect()

    assert len(pool._handles) == 0


@pytest.mark.asyncio
async def test_pool_hands_back_the_same_handle_while_it_is_held() -> None:
    fake = _CyclingPool()
    fake.reuse = _RawConnection()
    pool = _pool_with(fake)

    first, release_first = await pool.connect()
    second, release_second = await pool.connect()

    assert first is second
    assert first.raw is fake.reuse
    assert len(pool._handles) == 1
    await release_first()
    await release_second()
    assert fake.returned == [id(fake.reuse), id(fake.reuse)]
