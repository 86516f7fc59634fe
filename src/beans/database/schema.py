"""Schema creation and in-place upgrades for ledger files.

Version history:
    1 - entries, tags and entry_tags tables
    2 - entries.seq insertion counter used to order entries sharing a date
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from beans.database.models import SCHEMA_VERSION, Base, SchemaMeta

logger = logging.getLogger(__name__)


def column_exists(engine: Engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    if table_name not in inspector.get_table_names():
        return False
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def get_schema_version(engine: Engine) -> int:
    """Return the recorded schema version, or 0 for an empty store."""
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    if "schema_meta" not in tables:
        # A store written before schema_meta existed is version 1
        return 1 if "entries" in tables else 0
    with engine.connect() as conn:
        row = conn.execute(text("SELECT MAX(version) FROM schema_meta")).scalar()
    return int(row) if row is not None else 1


def _upgrade_to_v2(engine: Engine) -> None:
    """Add entries.seq and number existing rows in insertion (rowid) order."""
    if column_exists(engine, "entries", "seq"):
        return
    with engine.begin() as conn:
        conn.execute(text("ALTER TABLE entries ADD COLUMN seq INTEGER NOT NULL DEFAULT 0"))
        conn.execute(text("UPDATE entries SET seq = rowid"))
    logger.info("Added column entries.seq")


_UPGRADES = {
    2: _upgrade_to_v2,
}


def initialize_schema(engine: Engine) -> int:
    """Create missing tables and upgrade an older store to the current version.

    Safe to call on a store that is already current.

    Returns:
        The schema version after initialization
    """
    version = get_schema_version(engine)

    for target in sorted(_UPGRADES):
        if version and version < target <= SCHEMA_VERSION:
            logger.info("Upgrading ledger schema from version %d to %d", version, target)
            _UPGRADES[target](engine)
            version = target

    Base.metadata.create_all(engine)

    with engine.begin() as conn:
        current = conn.execute(text("SELECT MAX(version) FROM schema_meta")).scalar()
        if current is None or current < SCHEMA_VERSION:
            conn.execute(
                SchemaMeta.__table__.insert().values(
                    version=SCHEMA_VERSION,
                    upgraded_at=datetime.now(timezone.utc),
                )
            )
    return SCHEMA_VERSION
