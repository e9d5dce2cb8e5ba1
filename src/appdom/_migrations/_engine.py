"""Forward-only migration of documents to the current schema version."""

import logging
from collections.abc import Sequence

from appdom._dom import CURRENT_VERSION, Document
from appdom._errors import MigrationVersionError

from . import _v1, _v2, _v3, _v4
from ._base import Migration

logger = logging.getLogger(__name__)

MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "Assign fractional parent indexes", _v1.up),
    Migration(2, "Fold queryState nodes into query nodes", _v2.up),
    Migration(3, "Turn page urlQuery into parameters", _v3.up),
    Migration(4, "Replace Typography elements with Text", _v4.up),
)
"""Append-only. Migration ``i`` upgrades a document from version ``i`` to ``i + 1``."""


def check_migrations(migrations: Sequence[Migration], current_version: int) -> None:
    """Check that the migration list matches the declared current version.

    Raises:
        RuntimeError: If the list length or the target versions do not line up.

    """
    if len(migrations) != current_version:
        msg = f"{len(migrations)} migrations are registered but the current document version is {current_version}"
        raise RuntimeError(msg)
    for position, migration in enumerate(migrations):
        if migration.to_version != position + 1:
            msg = f"Migration #{position} targets v{migration.to_version}, expected v{position + 1}"
            raise RuntimeError(msg)


check_migrations(MIGRATIONS, CURRENT_VERSION)


def migrate_up(document: Document, to_version: int = CURRENT_VERSION) -> Document:
    """Upgrade ``document`` to ``to_version``.

    Args:
        document: The document to upgrade. It is never modified.
        to_version: Target version, the current one by default.

    Returns:
        A document whose ``version`` equals ``to_version``; ``document`` itself
        when it already is at that version.

    Raises:
        MigrationVersionError: If ``to_version`` is older than the document
            (downgrades are not supported), or if either version is newer
            than any known version.

    """
    from_version = document.version
    if from_version > len(MIGRATIONS):
        msg = f"Cannot read a v{from_version} document, the latest known version is v{len(MIGRATIONS)}"
        raise MigrationVersionError(msg, from_version=from_version, to_version=to_version)
    if to_version < from_version:
        msg = f"Cannot migrate a v{from_version} document down to v{to_version}"
        raise MigrationVersionError(msg, from_version=from_version, to_version=to_version)
    if to_version > len(MIGRATIONS):
        msg = f"Cannot migrate to v{to_version}, the latest known version is v{len(MIGRATIONS)}"
        raise MigrationVersionError(msg, from_version=from_version, to_version=to_version)

    result = document
    for migration in MIGRATIONS[from_version:to_version]:
        logger.debug(f"Migrating v{migration.from_version} -> v{migration.to_version}: {migration.description}")
        result = migration.up(result)
    return result


def pending_migrations(document: Document, to_version: int = CURRENT_VERSION) -> list[Migration]:
    """Migrations ``migrate_up`` would apply, without applying them."""
    if to_version < document.version:
        return []
    return list(MIGRATIONS[document.version : to_version])
