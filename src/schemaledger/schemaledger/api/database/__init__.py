"""
Database setup/config/funcs.

The Database object is owned by whoever starts the process (the ASGI lifespan or
the CLI) and passed explicitly to the migration runner; there is no module level
engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import backoff
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from schemaledger_common.exceptions import DatabaseUnavailable
from schemaledger_common.settings import DatabaseSettings


class Database:
    """Async engine plus session factory for a single store."""

    def __init__(self, url: str, echo: bool = False, engine: AsyncEngine | None = None):
        self.url = url
        self.engine = engine or create_async_engine(url, echo=echo)
        self.SessionLocal = sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        return cls(settings.sqlalchemy, echo=settings.debug)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def wait_until_ready(self, max_time: int = 30) -> None:
        """
        Block until the store answers a trivial query, retrying on any error.

        Raises:
            DatabaseUnavailable: If the store is still unreachable after max_time seconds.
        """

        @backoff.on_exception(
            backoff.constant,
            Exception,
            jitter=None,
            interval=1,
            max_time=max_time,
            on_backoff=lambda details: logger.warning(
                f"Database not ready after {details['tries']} attempt(s), retrying..."
            ),
        )
        async def _probe():
            await self.ping()

        try:
            await _probe()
        except Exception as exc:
            raise DatabaseUnavailable(f"Database unreachable after {max_time}s: {exc}") from exc
        logger.info(f"Database ready ({self.dialect})")

    async def dispose(self) -> None:
        await self.engine.dispose()
