"""
Schema migrations: named SQL scripts applied once, in name order, at startup and
tracked in the `migrations` ledger table.

To add a migration, drop a new script into schemaledger/migrations/ and append its
name to MIGRATIONS. Never edit, rename or reorder a script once it has been applied.
"""

from schemaledger.schema_migrations.executor import ScriptExecutor, execute_script
from schemaledger.schema_migrations.ledger import MigrationLedger
from schemaledger.schema_migrations.runner import (
    MigrationReport,
    MigrationStatus,
    check_integrity,
    migration_status,
    run_migrations,
    verify_migrations,
)
from schemaledger.schema_migrations.source import (
    Migration,
    discover_migrations,
    fingerprint,
    load_migrations,
)

__all__ = [
    "Migration",
    "MigrationLedger",
    "MigrationReport",
    "MigrationStatus",
    "ScriptExecutor",
    "check_integrity",
    "discover_migrations",
    "execute_script",
    "fingerprint",
    "load_migrations",
    "migration_status",
    "run_migrations",
    "verify_migrations",
]
