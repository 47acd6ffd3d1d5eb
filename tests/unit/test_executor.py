from __future__ import annotations

import pytest

from pgdriver.domain.models import DatabaseConnection, DriverOptions
from pgdriver.driver import PostgresDriver
from pgdriver.errors import ConnectionNotSetError, DriverError, MissingConditionsError
from tests.fakes import FakeClientConnection, FakeClientFactory, RecordingQueryLogger


async def _connected(
    options: DriverOptions, factory: FakeClientFactory, logger: RecordingQueryLogger
) -> tuple[PostgresDriver, DatabaseConnection, FakeClientConnection]:
    driver = PostgresDriver(options, logger=logger, client_factory=factory)
    await driver.connect()
    conn = await driver.retrieve_connection()
    return driver, conn, conn.connection


@pytest.mark.asyncio
async def test_query_returns_rows_and_logs(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    handle.responses["FROM users"] = [{"id": 1}, {"id": 2}]

    rows = await driver.query(conn, "SELECT id FROM users WHERE id > $1", [0])

    assert rows == [{"id": 1}, {"id": 2}]
    assert handle.statements == [("SELECT id FROM users WHERE id > $1", [0])]
    assert query_logger.queries == ["SELECT id FROM users WHERE id > $1"]
    assert query_logger.failed == []


@pytest.mark.asyncio
async def test_failed_query_is_logged_and_reraised_unchanged(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    error = RuntimeError("relation does not exist")
    handle.failures["missing"] = error

    with pytest.raises(RuntimeError) as excinfo:
        await driver.query(conn, "SELECT * FROM missing")

    assert excinfo.value is error
    assert query_logger.failed == ["SELECT * FROM missing"]
    assert query_logger.errors == [error]


@pytest.mark.asyncio
async def test_query_requires_a_connection(
    driver_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver = PostgresDriver(driver_options, logger=query_logger, client_factory=client_factory)
    orphan = DatabaseConnection(id=99, connection=FakeClientConnection())

    with pytest.raises(ConnectionNotSetError):
        await driver.query(orphan, "SELECT 1")
    with pytest.raises(ConnectionNotSetError):
        await driver.insert(orphan, "users", {"name": "Ann"})

    assert orphan.connection.statements == []
    assert query_logger.queries == []


@pytest.mark.asyncio
async def test_insert_returns_generated_id(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    handle.responses["RETURNING"] = [{"id": 42}]

    result = await driver.insert(conn, "users", {"name": "Ann", "age": 30}, "id")

    assert result == 42
    assert handle.statements == [
        ('INSERT INTO "users"("name", "age") VALUES ($1,$2) RETURNING "id"', ["Ann", 30])
    ]


@pytest.mark.asyncio
async def test_insert_without_id_column_returns_rows(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    handle.responses["INSERT"] = [{"id": 1, "name": "Ann"}]

    result = await driver.insert(conn, "users", {"name": "Ann"})

    assert result == [{"id": 1, "name": "Ann"}]
    assert handle.statements == [('INSERT INTO "users"("name") VALUES ($1)', ["Ann"])]


@pytest.mark.asyncio
async def test_insert_with_no_values_uses_default_values(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    result = await driver.insert(conn, "counters", {}, "id")

    assert result is None
    assert handle.sql == ['INSERT INTO "counters" DEFAULT VALUES RETURNING "id"']


@pytest.mark.asyncio
async def test_update_numbers_conditions_after_values(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    await driver.update(conn, "users", {"name": "Bob", "age": 31}, {"id": 7, "tenant": "t1"})

    assert handle.statements == [
        (
            'UPDATE "users" SET "name"=$1, "age"=$2 WHERE "id"=$3 AND "tenant"=$4',
            ["Bob", 31, 7, "t1"],
        )
    ]


@pytest.mark.asyncio
async def test_update_without_conditions_has_no_where_clause(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    await driver.update(conn, "users", {"name": "Bob"}, {})

    assert handle.statements == [('UPDATE "users" SET "name"=$1', ["Bob"])]


@pytest.mark.asyncio
async def test_delete_builds_conditions(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    await driver.delete(conn, "users", {"id": 7, "tenant": "t1"})

    assert handle.statements == [('DELETE FROM "users" WHERE "id"=$1 AND "tenant"=$2', [7, "t1"])]


@pytest.mark.asyncio
async def test_delete_refuses_empty_conditions(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    with pytest.raises(MissingConditionsError) as excinfo:
        await driver.delete(conn, "users", {})

    assert isinstance(excinfo.value, DriverError)
    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.table_name == "users"

    assert handle.statements == []


@pytest.mark.asyncio
async def test_closure_table_insert_with_level(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    handle.responses["MAX(level)"] = [{"level": 2}]

    level = await driver.insert_into_closure_table(conn, "category_closure", 10, 4, True)

    assert level == 3
    assert handle.sql == [
        'INSERT INTO "category_closure"(ancestor, descendant, level) '
        'SELECT ancestor, 10, level + 1 FROM "category_closure" WHERE descendant = 4 '
        "UNION ALL SELECT 10, 10, 1",
        'SELECT MAX(level) as level FROM "category_closure" WHERE descendant = 4',
    ]


@pytest.mark.asyncio
async def test_closure_table_insert_without_level(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)

    level = await driver.insert_into_closure_table(conn, "category_closure", 10, 4, False)

    assert level == 1
    assert handle.sql[0] == (
        'INSERT INTO "category_closure"(ancestor, descendant) '
        'SELECT ancestor, 10 FROM "category_closure" WHERE descendant = 4 '
        "UNION ALL SELECT 10, 10"
    )
    assert handle.sql[1] == 'SELECT MAX(level) as level FROM "category_closure" WHERE descendant = 4'


@pytest.mark.asyncio
async def test_closure_table_level_defaults_to_one_for_null_level(
    single_options: DriverOptions, client_factory: FakeClientFactory, query_logger: RecordingQueryLogger
) -> None:
    driver, conn, handle = await _connected(single_options, client_factory, query_logger)
    handle.responses["MAX(level)"] = [{"level": None}]

    assert await driver.insert_into_closure_table(conn, "tree_closure", 2, 1, True) == 1
