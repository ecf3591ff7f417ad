"""
Migration runner: reconcile the declared catalog against the ledger.

1. Verify the ledger is a prefix of the catalog (same names, same fingerprints).
   Any mismatch raises IntegrityFault before anything executes.
2. Retry every ledger entry recorded as failed.
3. Apply every catalog entry past the end of the ledger, recording the outcome.

Execution failures in steps 2 and 3 are logged and persisted, and the run moves on
to the next migration. A later migration may therefore run even though one it
depends on just failed; the failed one is retried on every subsequent start.

Only one process may run this at a time against a given store; there is no
cross-instance locking.
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from loguru import logger

from schemaledger_common.constants import (
    STATE_APPLIED_FAILED,
    STATE_APPLIED_OK,
    STATE_PENDING,
    STATE_UNKNOWN,
)
from schemaledger_common.exceptions import ExecutionFault, IntegrityFault
from schemaledger_common.schemas.migration_entry import LedgerEntry

from schemaledger.api.database import Database
from schemaledger.schema_migrations.executor import ScriptExecutor, execute_script
from schemaledger.schema_migrations.ledger import MigrationLedger
from schemaledger.schema_migrations.source import Migration
from schemaledger.util import utcnow


@dataclass
class MigrationReport:
    """Outcome of a single run."""

    applied: List[str] = field(default_factory=list)
    retried: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class MigrationStatus:
    name: str
    state: str
    fingerprint: Optional[int] = None
    recorded_fingerprint: Optional[int] = None
    applied_at: Optional[datetime] = None

    @property
    def drifted(self) -> bool:
        return (
            self.fingerprint is not None
            and self.recorded_fingerprint is not None
            and self.fingerprint != self.recorded_fingerprint
        )


def check_integrity(catalog: Sequence[Migration], entries: Sequence[LedgerEntry]) -> None:
    """
    Raise IntegrityFault unless entries is a prefix of catalog (both sorted by name).
    """
    if len(entries) > len(catalog):
        raise IntegrityFault(
            IntegrityFault.COUNT,
            entries[len(catalog)].name,
            f"more migrations recorded than declared ({len(entries)} > {len(catalog)})",
        )
    for migration, entry in zip(catalog, entries):
        if migration.name != entry.name:
            raise IntegrityFault(
                IntegrityFault.NAME,
                migration.name,
                f"migration name mismatch: {migration.name} != {entry.name}",
            )
        if migration.fingerprint != entry.fingerprint:
            raise IntegrityFault(
                IntegrityFault.FINGERPRINT,
                migration.name,
                f"migration fingerprint mismatch: {migration.fingerprint} != {entry.fingerprint}",
            )


async def verify_migrations(
    database: Database, catalog: Sequence[Migration]
) -> List[LedgerEntry]:
    """Create the ledger if needed, read it and check it against the catalog."""
    catalog = sorted(catalog, key=lambda m: m.name)
    async with database.session() as session:
        ledger = MigrationLedger(session)
        await ledger.ensure_table()
        entries = await ledger.load_all()
        check_integrity(catalog, entries)
    return entries


async def _attempt(
    database: Database,
    migration: Migration,
    executor: ScriptExecutor,
    recorded: bool,
) -> bool:
    """
    Execute one migration and write its outcome. Returns True on success.

    Execution and the success write share a transaction. On failure that
    transaction is rolled back; a new row is then inserted as failed, while an
    existing (retried) row is left as it was.
    """
    try:
        async with database.session() as session:
            await executor(session, migration)
            ledger = MigrationLedger(session)
            if recorded:
                await ledger.mark_outcome(migration.name, True, utcnow())
            else:
                await ledger.insert(migration.name, migration.fingerprint, True, utcnow())
        logger.success(f"Applied migration {migration.name}")
        return True
    except ExecutionFault as exc:
        logger.error(
            f"Failed to apply migration {migration.name}: {exc.cause}\n{traceback.format_exc()}"
        )

    if not recorded:
        async with database.session() as session:
            await MigrationLedger(session).insert(
                migration.name, migration.fingerprint, False, utcnow()
            )
    return False


async def run_migrations(
    database: Database,
    catalog: Sequence[Migration],
    executor: ScriptExecutor = execute_script,
) -> MigrationReport:
    """
    Bring the ledger in line with the catalog.

    Raises:
        IntegrityFault: If the ledger is not a prefix of the catalog. Nothing is
            executed or written in that case.
    """
    catalog = sorted(catalog, key=lambda m: m.name)
    entries = await verify_migrations(database, catalog)
    report = MigrationReport()

    for migration, entry in zip(catalog, entries):
        if entry.successful:
            continue
        logger.warning(f"Retrying migration {migration.name}")
        if await _attempt(database, migration, executor, recorded=True):
            report.retried.append(migration.name)
        else:
            report.failed.append(migration.name)

    pending = catalog[len(entries):]
    if pending:
        logger.info(f"Found {len(pending)} pending migration(s)")
    for migration in pending:
        logger.info(f"Applying migration {migration.name}")
        if await _attempt(database, migration, executor, recorded=False):
            report.applied.append(migration.name)
        else:
            report.failed.append(migration.name)

    if report.failed:
        logger.error(
            f"Migrations finished with {len(report.failed)} failure(s): {', '.join(report.failed)}"
        )
    else:
        logger.info(
            f"Migrations up to date: {len(report.applied)} applied, {len(report.retried)} retried"
        )
    return report


async def migration_status(
    database: Database, catalog: Sequence[Migration]
) -> List[MigrationStatus]:
    """
    Per-migration view of catalog and ledger, joined by name. Never raises on drift.
    """
    async with database.session() as session:
        ledger = MigrationLedger(session)
        await ledger.ensure_table()
        entries = {entry.name: entry for entry in await ledger.load_all()}

    statuses = []
    for migration in sorted(catalog, key=lambda m: m.name):
        entry = entries.pop(migration.name, None)
        if entry is None:
            statuses.append(
                MigrationStatus(migration.name, STATE_PENDING, fingerprint=migration.fingerprint)
            )
            continue
        status = MigrationStatus(
            migration.name,
            STATE_APPLIED_OK if entry.successful else STATE_APPLIED_FAILED,
            fingerprint=migration.fingerprint,
            recorded_fingerprint=entry.fingerprint,
            applied_at=entry.applied_at,
        )
        if status.drifted:
            logger.warning(f"Migration {migration.name} changed since it was recorded")
        statuses.append(status)

    for name in sorted(entries):
        entry = entries[name]
        logger.warning(f"Ledger entry {name} has no declared migration")
        statuses.append(
            MigrationStatus(
                name,
                STATE_UNKNOWN,
                recorded_fingerprint=entry.fingerprint,
                applied_at=entry.applied_at,
            )
        )
    return statuses
