LEDGER_TABLE = "migrations"
MIGRATIONS_RESOURCE_DIR = "migrations"
MIGRATION_SUFFIX = ".sql"

# Per-migration states reported by the status view.
STATE_PENDING = "PENDING"
STATE_APPLIED_OK = "APPLIED_OK"
STATE_APPLIED_FAILED = "APPLIED_FAILED"
STATE_UNKNOWN = "UNKNOWN"

# Environment variable names for CLI options (when not passed as flags)
DATABASE_ENVVAR = "POSTGRESQL"
MIGRATIONS_ENVVAR = "MIGRATIONS"
MIGRATIONS_DIR_ENVVAR = "SCHEMALEDGER_MIGRATIONS_DIR"

# Scripts bundled with the schemaledger package, applied when MIGRATIONS is unset.
DEFAULT_MIGRATIONS = [
    "0001_create_users.sql",
    "0002_index_users_email_address.sql",
]
