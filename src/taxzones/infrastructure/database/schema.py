"""SQLAlchemy Core table definitions for the zone catalog.

Countries and states are reference data. Zone members store a
``zoneable_type`` tag ("country" | "state") next to the referenced id,
so a member always points at exactly one of the two tables.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

countries = Table(
    "countries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("iso", Text, nullable=False, unique=True),
    Column("name", Text, nullable=False, default="", server_default=""),
)

states = Table(
    "states",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("country_id", Integer, ForeignKey("countries.id"), nullable=False),
    Column("code", Text, nullable=False),
    Column("name", Text, nullable=False, default="", server_default=""),
    UniqueConstraint("country_id", "code"),
)

zones = Table(
    "zones",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("description", Text, nullable=False, default="", server_default=""),
    Column("default_tax", Integer, nullable=False, default=0, server_default="0"),
    Column("created_at", Text, nullable=False),  # high-resolution ISO timestamp
    Column("updated_at", Text, nullable=False),
)

zone_members = Table(
    "zone_members",
    metadata,
    # Autoincrement id doubles as insertion order within a zone.
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("zone_id", Integer, ForeignKey("zones.id", ondelete="CASCADE"), nullable=False),
    Column("zoneable_type", Text, nullable=False),
    Column("zoneable_id", Integer, nullable=False),
    Column("created_at", Text, nullable=False),
    UniqueConstraint("zone_id", "zoneable_type", "zoneable_id"),
    CheckConstraint("zoneable_type IN ('country', 'state')", name="ck_zone_members_type"),
)

# ---------------------------------------------------------------------------
# Indexes for resolver lookups
# ---------------------------------------------------------------------------

Index("ix_states_country", states.c.country_id)
Index("ix_zones_default_tax", zones.c.default_tax)
Index("ix_zone_members_zone", zone_members.c.zone_id)
Index("ix_zone_members_zoneable", zone_members.c.zoneable_type, zone_members.c.zoneable_id)
