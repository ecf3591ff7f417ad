"""
Issue a migration's raw script text against the target store.

Scripts are opaque: they are handed to the driver as-is, so a single migration
may hold several statements.
"""

from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from schemaledger_common.exceptions import ExecutionFault
from schemaledger.schema_migrations.source import Migration

ScriptExecutor = Callable[[AsyncSession, Migration], Awaitable[None]]


async def execute_script(session: AsyncSession, migration: Migration) -> None:
    """
    Execute migration.script on the session's connection.

    asyncpg runs multi-statement text through the simple query protocol inside the
    current transaction; aiosqlite needs executescript, opened with an explicit BEGIN.
    Other dialects get a single exec_driver_sql call.

    Raises:
        ExecutionFault: Wrapping whatever the driver raised.
    """
    try:
        conn = await session.connection()
        dialect = conn.dialect.name
        if dialect in ("postgresql", "sqlite"):
            raw = await conn.get_raw_connection()
            driver = raw.driver_connection
            if dialect == "postgresql":
                # Opens the adapter's transaction first, so the script commits with the ledger write.
                await conn.exec_driver_sql("SELECT 1")
                await driver.execute(migration.script)
            else:
                # executescript autocommits statement by statement; the explicit BEGIN keeps the
                # script in one transaction that the session commits together with the ledger write.
                try:
                    await driver.executescript(f"BEGIN;\n{migration.script}\n;")
                except Exception:
                    await driver.rollback()
                    raise
        else:
            await conn.exec_driver_sql(migration.script)
    except Exception as exc:
        raise ExecutionFault(migration.name, exc) from exc
