"""
Operator CLI: migrate, status, verify.
"""

import asyncio
import json
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from schemaledger_common.constants import (
    DATABASE_ENVVAR,
    MIGRATIONS_DIR_ENVVAR,
    MIGRATIONS_ENVVAR,
    STATE_APPLIED_FAILED,
    STATE_APPLIED_OK,
    STATE_PENDING,
)
from schemaledger_common.exceptions import CatalogError, DatabaseUnavailable, IntegrityFault
from schemaledger_common.settings import Settings
from schemaledger.api.database import Database
from schemaledger.schema_migrations import (
    Migration,
    MigrationStatus,
    discover_migrations,
    load_migrations,
    migration_status,
    run_migrations,
    verify_migrations,
)

app = typer.Typer(
    help="Apply and inspect schema migrations.",
    no_args_is_help=True,
)
console = Console()

_STATE_STYLES = {
    STATE_APPLIED_OK: "green",
    STATE_APPLIED_FAILED: "red",
    STATE_PENDING: "yellow",
}

DatabaseOption = typer.Option(
    None, "--database", envvar=DATABASE_ENVVAR, help="Async SQLAlchemy database URL"
)
MigrationsOption = typer.Option(
    None,
    "--migrations",
    envvar=MIGRATIONS_ENVVAR,
    help="Comma separated (or JSON list of) migration names, in order",
)
MigrationsDirOption = typer.Option(
    None,
    "--migrations-dir",
    envvar=MIGRATIONS_DIR_ENVVAR,
    help="Directory holding migration scripts (default: bundled)",
)
DiscoverOption = typer.Option(
    False, "--discover", help="Use every *.sql file in the migrations directory"
)


def build_settings(
    database: Optional[str], migrations: Optional[str], migrations_dir: Optional[str]
) -> Settings:
    overrides = {}
    if database:
        overrides["sqlalchemy"] = database
    if migrations:
        overrides["migrations"] = migrations
    if migrations_dir:
        overrides["migrations_dir"] = migrations_dir
    return Settings(**overrides)


def load_catalog(settings: Settings, discover: bool) -> list[Migration]:
    names = discover_migrations(settings.migrations_dir) if discover else settings.migrations
    return load_migrations(names, settings.migrations_dir)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


async def _with_database(settings: Settings, action):
    database = Database.from_settings(settings)
    try:
        await database.wait_until_ready(settings.connect_timeout)
        return await action(database)
    finally:
        await database.dispose()


def _run(settings: Settings, discover: bool, action):
    """Load the catalog and run action(database, catalog), mapping fatal errors to exit 1."""
    try:
        catalog = load_catalog(settings, discover)
        return asyncio.run(_with_database(settings, lambda db: action(db, catalog)))
    except (CatalogError, DatabaseUnavailable, IntegrityFault) as exc:
        _fail(str(exc))


def display_statuses(statuses: list[MigrationStatus]) -> None:
    """Pretty-print catalog/ledger status."""
    if not statuses:
        console.print("No migrations declared.")
        return
    table = Table(title="Migrations", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("State")
    table.add_column("Fingerprint")
    table.add_column("Recorded")
    table.add_column("Applied at")
    for status in statuses:
        style = _STATE_STYLES.get(status.state)
        state = f"[{style}]{status.state}[/{style}]" if style else status.state
        recorded = "-" if status.recorded_fingerprint is None else str(status.recorded_fingerprint)
        if status.drifted:
            recorded = f"[red]{recorded} (drift)[/red]"
        table.add_row(
            status.name,
            state,
            "-" if status.fingerprint is None else str(status.fingerprint),
            recorded,
            status.applied_at.isoformat() if status.applied_at else "-",
        )
    console.print(table)


def _status_dict(status: MigrationStatus) -> dict:
    return {
        "name": status.name,
        "state": status.state,
        "fingerprint": status.fingerprint,
        "recorded_fingerprint": status.recorded_fingerprint,
        "drifted": status.drifted,
        "applied_at": status.applied_at.isoformat() if status.applied_at else None,
    }


@app.command()
def migrate(
    database: Optional[str] = DatabaseOption,
    migrations: Optional[str] = MigrationsOption,
    migrations_dir: Optional[str] = MigrationsDirOption,
    discover: bool = DiscoverOption,
):
    """
    Verify the ledger, retry failed migrations and apply pending ones.
    Exits 1 on an integrity fault, 2 if any migration failed to execute.
    """
    settings = build_settings(database, migrations, migrations_dir)
    report = _run(settings, discover, run_migrations)
    console.print(
        f"Applied: {len(report.applied)}  Retried: {len(report.retried)}  Failed: {len(report.failed)}"
    )
    for name in report.failed:
        console.print(f"[red]failed[/red] {name}")
    if not report.success:
        raise typer.Exit(2)


@app.command()
def status(
    database: Optional[str] = DatabaseOption,
    migrations: Optional[str] = MigrationsOption,
    migrations_dir: Optional[str] = MigrationsDirOption,
    discover: bool = DiscoverOption,
    raw_json: bool = typer.Option(False, "--raw-json", help="Print raw JSON"),
):
    """Show each declared migration with its ledger state."""
    settings = build_settings(database, migrations, migrations_dir)
    statuses = _run(settings, discover, migration_status)
    if raw_json:
        typer.echo(json.dumps([_status_dict(s) for s in statuses], indent=2))
        return
    display_statuses(statuses)


@app.command()
def verify(
    database: Optional[str] = DatabaseOption,
    migrations: Optional[str] = MigrationsOption,
    migrations_dir: Optional[str] = MigrationsDirOption,
    discover: bool = DiscoverOption,
):
    """Check the ledger against the catalog without executing anything."""
    settings = build_settings(database, migrations, migrations_dir)
    entries = _run(settings, discover, verify_migrations)
    console.print(f"[green]Ledger consistent[/green] ({len(entries)} recorded)")


if __name__ == "__main__":
    app()
