"""Document migrations.

The migration list is checked against ``CURRENT_VERSION`` when this package is
imported, so a mismatch fails at startup rather than on first use.
"""

from ._base import Migration, expect_version
from ._engine import MIGRATIONS, check_migrations, migrate_up, pending_migrations

__all__ = ["MIGRATIONS", "Migration", "check_migrations", "expect_version", "migrate_up", "pending_migrations"]
