"""Dialect dispatch of execute_script, with the driver mocked out."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from schemaledger_common.exceptions import ExecutionFault
from schemaledger.schema_migrations import execute_script

from fixtures.catalog_fixtures import make_migration


def _session(dialect: str):
    driver = MagicMock()
    driver.execute = AsyncMock()
    driver.executescript = AsyncMock()
    driver.rollback = AsyncMock()
    raw = MagicMock(driver_connection=driver)
    conn = MagicMock()
    conn.dialect.name = dialect
    conn.get_raw_connection = AsyncMock(return_value=raw)
    conn.exec_driver_sql = AsyncMock()
    session = MagicMock()
    session.connection = AsyncMock(return_value=conn)
    return session, conn, driver


@pytest.mark.asyncio
async def test_postgresql_runs_whole_script_through_driver():
    session, conn, driver = _session("postgresql")
    migration = make_migration("001.sql", "CREATE TABLE a (id int);\nCREATE TABLE b (id int);")

    await execute_script(session, migration)

    driver.execute.assert_awaited_once_with(migration.script)
    conn.exec_driver_sql.assert_awaited_once_with("SELECT 1")


@pytest.mark.asyncio
async def test_sqlite_uses_executescript():
    session, conn, driver = _session("sqlite")
    migration = make_migration("001.sql", "CREATE TABLE a (id int);")

    await execute_script(session, migration)

    driver.executescript.assert_awaited_once_with(f"BEGIN;\n{migration.script}\n;")
    conn.exec_driver_sql.assert_not_awaited()
    driver.rollback.assert_not_awaited()


@pytest.mark.asyncio
async def test_sqlite_rolls_back_partial_script():
    session, conn, driver = _session("sqlite")
    driver.executescript.side_effect = RuntimeError("no such table: audit_log")

    with pytest.raises(ExecutionFault):
        await execute_script(session, make_migration("001.sql", "CREATE TABLE a (id int);"))

    driver.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_other_dialects_use_exec_driver_sql():
    session, conn, driver = _session("mysql")
    migration = make_migration("001.sql", "CREATE TABLE a (id int)")

    await execute_script(session, migration)

    conn.exec_driver_sql.assert_awaited_once_with(migration.script)
    conn.get_raw_connection.assert_not_awaited()


@pytest.mark.asyncio
async def test_driver_error_is_wrapped():
    session, conn, driver = _session("postgresql")
    error = RuntimeError('relation "a" already exists')
    driver.execute.side_effect = error

    with pytest.raises(ExecutionFault) as excinfo:
        await execute_script(session, make_migration("001.sql"))

    assert excinfo.value.migration == "001.sql"
    assert excinfo.value.cause is error
