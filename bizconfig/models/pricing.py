"""Pricing rule models."""

from __future__ import annotations

import enum
import uuid
from typing import Any

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from bizconfig.db.base import Base
from bizconfig.models.mixins import TimestampMixin

JSONB_TYPE = JSON().with_variant(JSONB(), "postgresql")


class PricingType(str, enum.Enum):
    """Determines which fields of a rule's pricing payload are interpreted."""

    FIXED = "fixed"
    TIERED = "tiered"
    TIME_BASED = "time_based"
    DYNAMIC = "dynamic"
    PERCENTAGE = "percentage"


class ModifierType(str, enum.Enum):
    """How a price modifier is applied to the running price."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class PricingRule(TimestampMixin, Base):
    """Conditional, prioritized price adjustment for one offering."""

    __tablename__ = "pricing_rules"
    __table_args__ = (
        Index(
            "ix_pricing_rules_offering_order",
            "tenant_id",
            "offering_id",
            "is_active",
            "priority",
            "sequence",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    offering_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("offerings.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024))
    pricing_type: Mapped[PricingType] = mapped_column(
        Enum(
            PricingType,
            name="pricingtype",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Creation order within the offering; breaks priority ties deterministically.
    sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    conditions: Mapped[dict[str, Any]] = mapped_column(
        JSONB_TYPE, default=dict, nullable=False
    )
    pricing: Mapped[dict[str, Any]] = mapped_column(
        JSONB_TYPE, default=dict, nullable=False
    )
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB_TYPE, default=dict, nullable=False
    )
