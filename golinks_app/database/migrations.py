"""
Forward-only schema migrations tracked by SQLite's user_version.

MIGRATIONS[i] upgrades the schema from version i to version i + 1.
Released entries are never edited or renumbered; new ones are appended.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class MigrationError(RuntimeError):
    """A migration batch failed; the schema is left at the previous version."""


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    statements: Tuple[str, ...]

    def apply(self, conn: Connection) -> None:
        for statement in self.statements:
            conn.execute(text(statement))


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(1, "initial schema", (
        """CREATE TABLE IF NOT EXISTS urls (
            code             TEXT PRIMARY KEY,
            long_url         TEXT NOT NULL,
            public_enabled   INTEGER NOT NULL DEFAULT 1,
            internal_enabled INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL
        )""",
    )),
    Migration(2, "settings table for configurable hostnames", (
        """CREATE TABLE IF NOT EXISTS settings (
            key   TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )""",
    )),
    Migration(3, "redirect type and OpenGraph/Twitter meta fields", (
        "ALTER TABLE urls ADD COLUMN redirect_type  TEXT NOT NULL DEFAULT 'redirect'",
        "ALTER TABLE urls ADD COLUMN og_title       TEXT NOT NULL DEFAULT ''",
        "ALTER TABLE urls ADD COLUMN og_description TEXT NOT NULL DEFAULT ''",
        "ALTER TABLE urls ADD COLUMN og_image       TEXT NOT NULL DEFAULT ''",
    )),
    Migration(4, "optional password protection for JS redirects", (
        "ALTER TABLE urls ADD COLUMN password_hash TEXT NOT NULL DEFAULT ''",
    )),
    Migration(5, "user-facing description", (
        "ALTER TABLE urls ADD COLUMN description TEXT NOT NULL DEFAULT ''",
    )),
    Migration(6, "optional expiry timestamp (RFC 3339, empty = no expiry)", (
        "ALTER TABLE urls ADD COLUMN expires_at TEXT NOT NULL DEFAULT ''",
    )),
    Migration(7, "use-count limiting (max_uses = 0 means unlimited)", (
        "ALTER TABLE urls ADD COLUMN max_uses  INTEGER NOT NULL DEFAULT 0",
        "ALTER TABLE urls ADD COLUMN use_count INTEGER NOT NULL DEFAULT 0",
    )),
)


def current_version(engine: Engine) -> int:
    with engine.connect() as conn:
        return conn.exec_driver_sql("PRAGMA user_version").scalar()


def migrate(engine: Engine, migrations: Sequence[Migration] = MIGRATIONS) -> int:
    """
    Apply every pending migration, each batch in its own transaction.

    The version bump is part of the batch's transaction, so a failed batch
    leaves neither its statements nor the new version behind.

    Args:
        engine: Engine for the SQLite store
        migrations: Ordered migration list (defaults to MIGRATIONS)

    Returns:
        The schema version after migrating

    Raises:
        MigrationError: If a batch fails
    """
    version = current_version(engine)

    for migration in migrations[version:]:
        try:
            with engine.begin() as conn:
                migration.apply(conn)
                # PRAGMA user_version cannot take a bound parameter
                conn.exec_driver_sql(f"PRAGMA user_version = {int(migration.version)}")
        except Exception as e:
            raise MigrationError(
                f"migration to v{migration.version} ({migration.description}) failed: {e}"
            ) from e
        version = migration.version
        logger.info("db: migrated to schema v%d", version)

    return version
