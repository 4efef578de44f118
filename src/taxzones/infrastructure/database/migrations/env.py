"""Alembic environment for the zone catalog.

Invoked by :func:`taxzones.infrastructure.database.migrations.build_config`
callers; the database URL is always set programmatically.
"""

from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, pool

from taxzones.infrastructure.database.engine import install_pragmas
from taxzones.infrastructure.database.schema import metadata


def _url() -> str:
    url = context.config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("sqlalchemy.url must be set on the Alembic config")
    return url


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=_url(),
        target_metadata=metadata,
        literal_binds=True,
        render_as_batch=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # SQLite cannot ALTER most constraints in place, so batch mode
    # rebuilds tables (zone_members carries a CHECK and a UNIQUE).
    engine = create_engine(_url(), poolclass=pool.NullPool)
    install_pragmas(engine)

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
