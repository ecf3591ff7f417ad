class CatalogError(Exception): ...


class DatabaseUnavailable(Exception): ...


class IntegrityFault(Exception):
    """
    Ledger and catalog disagree (count, name or fingerprint). Fatal: startup must halt
    until an operator resolves the drift.
    """

    COUNT = "count"
    NAME = "name"
    FINGERPRINT = "fingerprint"

    def __init__(self, kind: str, migration: str | None, detail: str):
        self.kind = kind
        self.migration = migration
        self.detail = detail
        super().__init__(
            f"Migration integrity fault (kind={kind}, migration={migration!r}): {detail}"
        )


class ExecutionFault(Exception):
    """Raised when a migration script fails against the target store."""

    def __init__(self, migration: str, cause: BaseException):
        self.migration = migration
        self.cause = cause
        super().__init__(f"Migration {migration} failed to execute: {cause}")
