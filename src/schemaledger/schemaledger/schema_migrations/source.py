"""
Migration catalog: named SQL resources, ordered by name, each with a content
fingerprint.

The fingerprint is CRC-32 over the UTF-8 encoded script, so it is stable across
processes, platforms and reimplementations. Once a migration has a ledger row its
script must never change; the runner compares fingerprints on every start.
"""

import zlib
from collections import Counter
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Iterable, List, Optional, Union

from loguru import logger

from schemaledger_common.constants import MIGRATION_SUFFIX, MIGRATIONS_RESOURCE_DIR
from schemaledger_common.exceptions import CatalogError

MigrationRoot = Union[str, Path, Traversable]


@dataclass(frozen=True)
class Migration:
    name: str
    script: str
    fingerprint: int


def fingerprint(script: str) -> int:
    """CRC-32 of the script body, as an unsigned 32-bit integer."""
    return zlib.crc32(script.encode("utf-8")) & 0xFFFFFFFF


def bundled_root() -> Traversable:
    """The migrations directory shipped inside the schemaledger package."""
    return resources.files("schemaledger") / MIGRATIONS_RESOURCE_DIR


def _resolve_root(root: Optional[MigrationRoot]) -> Traversable:
    if root is None:
        return bundled_root()
    if isinstance(root, str):
        return Path(root)
    return root


def load_migrations(
    names: Iterable[str], root: Optional[MigrationRoot] = None
) -> List[Migration]:
    """
    Load the named migration scripts and return them sorted by name.

    Args:
        names: Resource names as configured (e.g. "0001_create_users.sql").
        root: Directory holding the scripts; defaults to the bundled resources.

    Raises:
        CatalogError: On a duplicate name or a missing/unreadable resource.
    """
    names = list(names)
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise CatalogError(f"Duplicate migration names configured: {', '.join(duplicates)}")

    base = _resolve_root(root)
    migrations = []
    for name in names:
        resource = base.joinpath(name)
        try:
            script = resource.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CatalogError(f"Unable to read migration {name} from {base}: {exc}") from exc
        migrations.append(Migration(name=name, script=script, fingerprint=fingerprint(script)))

    migrations.sort(key=lambda m: m.name)
    logger.info(f"Loaded {len(migrations)} migration(s) from {base}")
    return migrations


def discover_migrations(root: Optional[MigrationRoot] = None) -> List[str]:
    """Return the sorted names of all *.sql resources in a migrations directory."""
    base = _resolve_root(root)
    if not base.is_dir():
        raise CatalogError(f"Migrations directory not found: {base}")
    return sorted(
        entry.name
        for entry in base.iterdir()
        if entry.is_file() and entry.name.endswith(MIGRATION_SUFFIX)
    )
