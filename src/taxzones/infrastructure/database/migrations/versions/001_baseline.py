"""Baseline zone catalog schema.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-17

Fresh catalogs created by ``init_database`` are stamped at this
revision without running it; empty databases get it applied by
``upgrade_head``.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "countries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("iso", sa.Text, nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False, server_default=""),
    )

    op.create_table(
        "states",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("country_id", sa.Integer, sa.ForeignKey("countries.id"), nullable=False),
        sa.Column("code", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False, server_default=""),
        sa.UniqueConstraint("country_id", "code"),
    )
    op.create_index("ix_states_country", "states", ["country_id"])

    op.create_table(
        "zones",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text, nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("default_tax", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
    )
    op.create_index("ix_zones_default_tax", "zones", ["default_tax"])

    op.create_table(
        "zone_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "zone_id",
            sa.Integer,
            sa.ForeignKey("zones.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("zoneable_type", sa.Text, nullable=False),
        sa.Column("zoneable_id", sa.Integer, nullable=False),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.UniqueConstraint("zone_id", "zoneable_type", "zoneable_id"),
        sa.CheckConstraint(
            "zoneable_type IN ('country', 'state')", name="ck_zone_members_type"
        ),
    )
    op.create_index("ix_zone_members_zone", "zone_members", ["zone_id"])
    op.create_index(
        "ix_zone_members_zoneable", "zone_members", ["zoneable_type", "zoneable_id"]
    )


def downgrade() -> None:
    op.drop_table("zone_members")
    op.drop_table("zones")
    op.drop_table("states")
    op.drop_table("countries")
