"""Unit tests for catalog loading and fingerprints."""

import pytest

from schemaledger_common.constants import DEFAULT_MIGRATIONS
from schemaledger_common.exceptions import CatalogError
from schemaledger.schema_migrations import discover_migrations, fingerprint, load_migrations

from fixtures.catalog_fixtures import *  # noqa


def test_fingerprint_is_crc32_of_utf8():
    # Published CRC-32 check value.
    assert fingerprint("123456789") == 0xCBF43926
    assert fingerprint("") == 0


def test_fingerprint_is_unsigned_32_bit():
    value = fingerprint("CREATE TABLE users (id UUID PRIMARY KEY);")
    assert 0 <= value < 2**32
    assert value == fingerprint("CREATE TABLE users (id UUID PRIMARY KEY);")


def test_fingerprint_detects_whitespace_change():
    assert fingerprint("SELECT 1;") != fingerprint("SELECT 1; ")


def test_load_migrations_sorts_by_name(migrations_dir):
    names = ["003_add_accounts_name.sql", "001_create_accounts.sql", "002_create_orders.sql"]
    catalog = load_migrations(names, migrations_dir)

    assert [m.name for m in catalog] == sorted(names)
    for migration in catalog:
        assert migration.script == (migrations_dir / migration.name).read_text(encoding="utf-8")
        assert migration.fingerprint == fingerprint(migration.script)


def test_load_migrations_accepts_string_root(migrations_dir):
    catalog = load_migrations(["001_create_accounts.sql"], str(migrations_dir))
    assert catalog[0].name == "001_create_accounts.sql"


def test_load_migrations_only_loads_configured_names(migrations_dir):
    catalog = load_migrations(["002_create_orders.sql"], migrations_dir)
    assert [m.name for m in catalog] == ["002_create_orders.sql"]


def test_load_migrations_empty_list(migrations_dir):
    assert load_migrations([], migrations_dir) == []


def test_missing_resource_is_fatal(migrations_dir):
    with pytest.raises(CatalogError, match="004_missing.sql"):
        load_migrations(["001_create_accounts.sql", "004_missing.sql"], migrations_dir)


def test_duplicate_names_rejected(migrations_dir):
    with pytest.raises(CatalogError, match="Duplicate"):
        load_migrations(["001_create_accounts.sql", "001_create_accounts.sql"], migrations_dir)


def test_discover_migrations(migrations_dir):
    (migrations_dir / "README.md").write_text("notes")
    assert discover_migrations(migrations_dir) == [
        "001_create_accounts.sql",
        "002_create_orders.sql",
        "003_add_accounts_name.sql",
    ]


def test_discover_missing_directory(tmp_path):
    with pytest.raises(CatalogError):
        discover_migrations(tmp_path / "nope")


def test_bundled_migrations_load():
    catalog = load_migrations(DEFAULT_MIGRATIONS)
    assert [m.name for m in catalog] == sorted(DEFAULT_MIGRATIONS)
    assert "CREATE TABLE users" in catalog[0].script
