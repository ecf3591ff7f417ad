"""
Persisted migration history (the `migrations` table).
"""

from datetime import datetime
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schemaledger_common.schemas.migration_entry import LedgerEntry


class MigrationLedger:
    """Ledger operations bound to one session; the caller owns the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def ensure_table(self) -> None:
        """Create the ledger table on first use."""
        conn = await self.session.connection()
        await conn.run_sync(
            lambda sync_conn: LedgerEntry.__table__.create(sync_conn, checkfirst=True)
        )

    async def load_all(self) -> List[LedgerEntry]:
        result = await self.session.execute(select(LedgerEntry).order_by(LedgerEntry.name.asc()))
        return list(result.scalars().all())

    async def insert(
        self, name: str, fingerprint: int, successful: bool, applied_at: datetime
    ) -> LedgerEntry:
        """Add a new row; flushing surfaces a duplicate name as the store's IntegrityError."""
        entry = LedgerEntry(
            name=name,
            fingerprint=fingerprint,
            successful=successful,
            applied_at=applied_at,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def mark_outcome(self, name: str, successful: bool, applied_at: datetime) -> None:
        """Update outcome and timestamp of an existing row. The fingerprint is never touched."""
        result = await self.session.execute(
            update(LedgerEntry)
            .where(LedgerEntry.name == name)
            .values(successful=successful, applied_at=applied_at)
        )
        if result.rowcount == 0:
            raise LookupError(f"No ledger entry for migration {name}")
