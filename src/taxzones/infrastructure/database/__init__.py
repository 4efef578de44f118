"""SQLite database engine, schema, and migrations via SQLAlchemy Core."""

from taxzones.infrastructure.database.engine import (
    create_db_engine,
    db_path_for,
    init_database,
)
from taxzones.infrastructure.database.schema import (
    countries,
    metadata,
    states,
    zone_members,
    zones,
)

__all__ = [
    "countries",
    "create_db_engine",
    "db_path_for",
    "init_database",
    "metadata",
    "states",
    "zone_members",
    "zones",
]
