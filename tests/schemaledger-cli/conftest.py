import pytest

SCRIPTS = {
    "001_create_accounts.sql": "CREATE TABLE accounts (id INTEGER PRIMARY KEY, email TEXT NOT NULL);",
    "002_create_orders.sql": "CREATE TABLE orders (id INTEGER PRIMARY KEY, account_id INTEGER);",
}


@pytest.fixture
def migrations_dir(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    for name, script in SCRIPTS.items():
        (directory / name).write_text(script, encoding="utf-8")
    return directory


@pytest.fixture
def cli_env(tmp_path, migrations_dir, monkeypatch):
    """Point every command at a temporary SQLite ledger and the test scripts."""
    monkeypatch.setenv("POSTGRESQL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("SCHEMALEDGER_MIGRATIONS_DIR", str(migrations_dir))
    monkeypatch.setenv("MIGRATIONS", ",".join(SCRIPTS))
    monkeypatch.setenv("DB_CONNECT_TIMEOUT", "1")
    return migrations_dir
