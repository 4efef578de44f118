"""Tests for Catalog — snapshots and all-or-nothing transactions."""

from pathlib import Path

import pytest
from sqlalchemy import select, text

from taxzones.config.settings import ZoneSettings
from taxzones.infrastructure.catalog import Catalog
from taxzones.infrastructure.database.schema import countries
from taxzones.services.zones import ZoneService


class TestCatalogInit:
    def test_creates_database(self, catalog: Catalog) -> None:
        assert catalog.db_path.exists()
        assert catalog.db_path == catalog.root / ".taxzones" / "zones.db"

    def test_existing_db_reused(self, tmp_path: Path) -> None:
        settings = ZoneSettings.load(catalog_root=tmp_path)
        c1 = Catalog(settings)
        c2 = Catalog(settings)
        with c1.transaction() as txn:
            txn.geography.insert_country("US")
        with c2.snapshot() as snap:
            assert [c.iso for c in snap.geography.list_countries()] == ["US"]
        c1.close()
        c2.close()

    def test_settings_property(self, catalog: Catalog, tmp_path: Path) -> None:
        assert catalog.root == tmp_path
        assert catalog.settings.catalog.db_filename == "zones.db"


class TestTransaction:
    def test_commit_on_success(self, catalog: Catalog) -> None:
        with catalog.transaction() as txn:
            txn.geography.insert_country("US", "United States")
        with catalog.engine.connect() as conn:
            rows = conn.execute(select(countries.c.iso)).fetchall()
        assert [r.iso for r in rows] == ["US"]

    def test_rollback_on_error(self, catalog: Catalog) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            with catalog.transaction() as txn:
                txn.geography.insert_country("US")
                raise RuntimeError("boom")
        with catalog.snapshot() as snap:
            assert snap.geography.list_countries() == []

    def test_write_lock_taken_up_front(self, catalog: Catalog) -> None:
        with catalog.transaction() as txn:
            assert txn.conn.connection.dbapi_connection.in_transaction
            txn.conn.execute(text("SELECT 1"))

    def test_snapshot_sees_committed_state(self, catalog: Catalog) -> None:
        with catalog.transaction() as txn:
            txn.geography.insert_country("CA")
        with catalog.snapshot() as snap:
            assert snap.geography.get_country_by_iso("ca") is not None


class TestSnapshot:
    def test_reads_are_point_in_time(self, catalog: Catalog, world, make_zone) -> None:
        zone = make_zone("US", world.us)
        with catalog.snapshot() as snap:
            before = snap.zones.load_zone(zone.id)
            added = ZoneService(catalog).add_members(zone.id, [world.ny])
            assert added.ok
            assert snap.zones.load_zone(zone.id) == before
            assert snap.zones.zone_ids_referencing(
                country_ids=[world.us.id], state_ids=[world.ny.id]
            ) == [zone.id]

        with catalog.snapshot() as snap:
            after = snap.zones.load_zone(zone.id)
        assert after is not None
        assert [m.zoneable for m in after.members] == [world.ny]

    def test_snapshot_holds_read_transaction(self, catalog: Catalog) -> None:
        with catalog.snapshot() as snap:
            assert snap.conn.connection.dbapi_connection.in_transaction
        assert catalog.engine.pool.checkedout() == 0
