"""Tenants, offerings, pricing rules and availability slots.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _tenant_fk() -> sa.Column:
    return sa.Column(
        "tenant_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )


def _offering_fk() -> sa.Column:
    return sa.Column(
        "offering_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("offerings.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    json_type = sa.JSON().with_variant(
        postgresql.JSONB(astext_type=sa.Text()), "postgresql"
    )
    pricing_type = sa.Enum(
        "fixed",
        "tiered",
        "time_based",
        "dynamic",
        "percentage",
        name="pricingtype",
    )

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("currency", sa.String(length=3), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "offerings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024), nullable=True),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
    )
    op.create_index("ix_offerings_tenant_id", "offerings", ["tenant_id"])

    op.create_table(
        "offering_variants",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _offering_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price_modifier", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_offering_variants_offering_id", "offering_variants", ["offering_id"]
    )

    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _offering_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024), nullable=True),
        sa.Column("pricing_type", pricing_type, nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conditions", json_type, nullable=False),
        sa.Column("pricing", json_type, nullable=False),
        sa.Column("metadata", json_type, nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_pricing_rules_offering_order",
        "pricing_rules",
        ["tenant_id", "offering_id", "is_active", "priority", "sequence"],
    )

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        _offering_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("booked_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "is_available", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("metadata", json_type, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "tenant_id",
            "offering_id",
            "date",
            "start_time",
            name="uq_availability_slot_natural_key",
        ),
        sa.CheckConstraint("capacity >= 0", name="ck_availability_slot_capacity"),
        sa.CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity",
            name="ck_availability_slot_booked_count",
        ),
    )


def downgrade() -> None:
    op.drop_table("availability_slots")

    op.drop_index("ix_pricing_rules_offering_order", table_name="pricing_rules")
    op.drop_table("pricing_rules")
    sa.Enum(name="pricingtype").drop(op.get_bind(), checkfirst=True)

    op.drop_index(
        "ix_offering_variants_offering_id", table_name="offering_variants"
    )
    op.drop_table("offering_variants")

    op.drop_index("ix_offerings_tenant_id", table_name="offerings")
    op.drop_table("offerings")
    op.drop_table("tenants")
