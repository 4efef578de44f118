"""Alembic migration infrastructure for the zone catalog.

Provides programmatic Alembic configuration — no alembic.ini needed.
The migration scripts live alongside this module.
"""

from __future__ import annotations

from pathlib import Path

from alembic.config import Config


def build_config(db_url: str) -> Config:
    """Build an Alembic Config pointing at our migration scripts."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def stamp_head(db_url: str) -> None:
    """Stamp a database as at the current head revision.

    Called by ``init_database`` so freshly created catalogs start at the
    correct Alembic version without running migrations.
    """
    from alembic import command

    command.stamp(build_config(db_url), "head")


def upgrade_head(db_url: str) -> None:
    """Apply every pending migration to the database at *db_url*."""
    from alembic import command

    command.upgrade(build_config(db_url), "head")


def current_revision(db_url: str) -> str | None:
    """Revision the database at *db_url* is stamped at, or None."""
    from alembic.runtime.migration import MigrationContext
    from sqlalchemy import create_engine

    engine = create_engine(db_url)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()
