"""Dated, bookable capacity slots for offerings."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from bizconfig.db.base import Base
from bizconfig.models.mixins import TimestampMixin
from bizconfig.models.pricing import JSONB_TYPE


class AvailabilitySlot(TimestampMixin, Base):
    """One bookable time window on one date for one offering."""

    __tablename__ = "availability_slots"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "offering_id",
            "date",
            "start_time",
            name="uq_availability_slot_natural_key",
        ),
        CheckConstraint("capacity >= 0", name="ck_availability_slot_capacity"),
        CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity",
            name="ck_availability_slot_booked_count",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    offering_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("offerings.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[datetime.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[datetime.time] = mapped_column(Time, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB_TYPE, default=dict, nullable=False
    )

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.booked_count
