"""Catalog — repository object owning the zone database.

The Catalog is the single dependency injected into every service. It
owns the SQLAlchemy engine and exposes two units of work:

- :meth:`snapshot`: a read transaction giving a point-in-time view for the
  duration of one resolver query.
- :meth:`transaction`: a write transaction opened with
  ``BEGIN IMMEDIATE`` on SQLite, so concurrent saves serialize instead of
  interleaving their clear-then-set of the default-tax flag.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from taxzones.infrastructure.database.engine import db_path_for, init_database
from taxzones.infrastructure.repositories.geography import GeographyRepository
from taxzones.infrastructure.repositories.zones import ZoneRepository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from taxzones.config.settings import ZoneSettings

logger = logging.getLogger(__name__)


@dataclass
class CatalogSession:
    """Active unit of work: a connection plus repositories bound to it."""

    conn: Connection

    @property
    def zones(self) -> ZoneRepository:
        return ZoneRepository(self.conn)

    @property
    def geography(self) -> GeographyRepository:
        return GeographyRepository(self.conn)


class Catalog:
    """Repository encapsulating database access for zones and geography.

    Constructed once from :class:`ZoneSettings`. Services receive the
    Catalog via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: ZoneSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            self.root,
            db_filename=settings.catalog.db_filename,
            busy_timeout=settings.catalog.busy_timeout,
            echo=settings.catalog.echo,
        )

    @property
    def root(self) -> Path:
        """The catalog root directory."""
        return self._settings.catalog_root

    @property
    def db_path(self) -> Path:
        return db_path_for(self.root, self._settings.catalog.db_filename)

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> ZoneSettings:
        """The resolved settings for this catalog."""
        return self._settings

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    @contextmanager
    def snapshot(self) -> Iterator[CatalogSession]:
        """Read-only unit of work on a single connection.

        On SQLite an explicit ``BEGIN`` pins every query in the block to
        the database state seen by its first read; the driver would
        otherwise run each SELECT against the latest commit.
        """
        with self._engine.connect() as conn:
            if self._engine.dialect.name == "sqlite":
                conn.exec_driver_sql("BEGIN")
            try:
                yield CatalogSession(conn=conn)
            finally:
                conn.rollback()

    @contextmanager
    def transaction(self) -> Iterator[CatalogSession]:
        """All-or-nothing write unit of work.

        Commits when the block exits normally and rolls back on any
        exception, so no reader ever observes half of a save.

        Usage::

            with catalog.transaction() as txn:
                zone_id = txn.zones.insert_zone(...)
                txn.zones.clear_default_tax(except_zone_id=zone_id)
        """
        with self._engine.connect() as conn:
            if self._engine.dialect.name == "sqlite":
                # Take the write lock up front; reads inside the save path
                # then see the state the writes are applied to.
                conn.exec_driver_sql("BEGIN IMMEDIATE")
            try:
                yield CatalogSession(conn=conn)
            except BaseException:
                conn.rollback()
                logger.debug("Catalog transaction rolled back", exc_info=True)
                raise
            conn.commit()
