"""Tests for database schema definitions."""

import pytest
from sqlalchemy import create_engine, insert, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from taxzones.infrastructure.database.schema import countries, metadata, zone_members, zones


def _in_memory_engine() -> Engine:
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:")
    metadata.create_all(engine)
    return engine


class TestSchemaCreation:
    def test_all_tables_created(self) -> None:
        table_names = set(inspect(_in_memory_engine()).get_table_names())
        assert {"countries", "states", "zones", "zone_members"}.issubset(table_names)

    def test_create_all_is_idempotent(self) -> None:
        engine = _in_memory_engine()
        metadata.create_all(engine)
        assert "zones" in inspect(engine).get_table_names()


class TestConstraints:
    def test_zone_name_unique(self) -> None:
        uniques = inspect(_in_memory_engine()).get_unique_constraints("zones")
        assert any(u["column_names"] == ["name"] for u in uniques)

    def test_country_iso_unique(self) -> None:
        uniques = inspect(_in_memory_engine()).get_unique_constraints("countries")
        assert any(u["column_names"] == ["iso"] for u in uniques)

    def test_member_reference_unique(self) -> None:
        uniques = inspect(_in_memory_engine()).get_unique_constraints("zone_members")
        assert any(
            u["column_names"] == ["zone_id", "zoneable_type", "zoneable_id"] for u in uniques
        )

    def test_zoneable_type_checked(self) -> None:
        engine = _in_memory_engine()
        with engine.begin() as conn:
            conn.execute(insert(countries).values(iso="US"))
            conn.execute(insert(zones).values(name="US", created_at="t", updated_at="t"))
        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                conn.execute(
                    insert(zone_members).values(
                        zone_id=1, zoneable_type="city", zoneable_id=1, created_at="t"
                    )
                )


class TestServerDefaults:
    def test_zones_defaults(self) -> None:
        cols = {c["name"]: c for c in inspect(_in_memory_engine()).get_columns("zones")}
        assert cols["default_tax"]["default"] is not None
        assert cols["description"]["default"] is not None
