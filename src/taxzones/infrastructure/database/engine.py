"""Database engine setup for SQLite with WAL mode.

The catalog is stored at ``{catalog_root}/.taxzones/{db_filename}``.
SQLAlchemy Core (not ORM) is used: the resolver reads whole zones in a
handful of queries and the save path issues explicit statements.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine

from taxzones.infrastructure.database.schema import metadata

DATA_DIR = ".taxzones"
DEFAULT_DB_FILENAME = "zones.db"


def db_path_for(catalog_root: Path, db_filename: str = DEFAULT_DB_FILENAME) -> Path:
    """Location of the catalog database under *catalog_root*."""
    return catalog_root / DATA_DIR / db_filename


def create_db_engine(db_path: Path, *, busy_timeout: float = 30.0, echo: bool = False) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    *busy_timeout* (seconds) is how long a writer waits for another
    writer's ``BEGIN IMMEDIATE`` transaction to finish.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=echo,
        connect_args={"timeout": busy_timeout},
    )
    install_pragmas(engine)
    return engine


def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def install_pragmas(engine: Engine) -> None:
    """Enable WAL and foreign keys on every new DBAPI connection of *engine*."""
    event.listen(engine, "connect", _set_sqlite_pragma)


def init_database(
    catalog_root: Path,
    *,
    db_filename: str = DEFAULT_DB_FILENAME,
    busy_timeout: float = 30.0,
    echo: bool = False,
) -> Engine:
    """Initialize the catalog database under *catalog_root*.

    Creates the ``.taxzones/`` directory and all tables from
    :data:`schema.metadata`. A freshly created database is stamped at the
    Alembic head revision so later upgrades start from the right place.

    Idempotent — safe to call on an existing catalog.

    Returns the engine ready for use.
    """
    db_path = db_path_for(catalog_root, db_filename)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(db_path, busy_timeout=busy_timeout, echo=echo)
    fresh = "zones" not in inspect(engine).get_table_names()

    metadata.create_all(engine)

    if fresh:
        from taxzones.infrastructure.database.migrations import stamp_head

        stamp_head(f"sqlite:///{db_path}")
    return engine
