"""Schemas for availability generation, queries and bookings."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bizconfig.models.pricing import ModifierType
from bizconfig.schemas.pricing import MAX_QUANTITY


class SlotTemplate(BaseModel):
    """Weekly template entry expanded onto every matching date."""

    day_of_week: int
    start_time: datetime.time
    end_time: datetime.time
    capacity: int


class SpecialPricing(BaseModel):
    date: datetime.date
    price_modifier: Decimal
    modifier_type: ModifierType = ModifierType.FIXED


class GenerateAvailabilityRequest(BaseModel):
    """Expand a weekly template into dated slots over an inclusive range."""

    offering_id: uuid.UUID
    start_date: datetime.date
    end_date: datetime.date
    time_slots: list[SlotTemplate]
    exclude_dates: list[datetime.date] = Field(default_factory=list)
    special_pricing: list[SpecialPricing] = Field(default_factory=list)


class GenerateAvailabilityRead(BaseModel):
    slots_created: int

    model_config = ConfigDict(from_attributes=True)


class AvailabilityCheckRequest(BaseModel):
    offering_id: uuid.UUID
    date: datetime.date
    start_time: datetime.time | None = None
    end_time: datetime.time | None = None
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)


class AvailableSlotRead(BaseModel):
    start_time: datetime.time
    end_time: datetime.time
    capacity: int
    available_capacity: int
    price: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class SuggestedAlternativeRead(BaseModel):
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    price: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityCheckRead(BaseModel):
    is_available: bool
    available_slots: list[AvailableSlotRead]
    next_available_date: datetime.date | None = None
    suggested_alternatives: list[SuggestedAlternativeRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SlotBookingUpdate(BaseModel):
    """Change a slot's booked count; negative deltas release bookings."""

    offering_id: uuid.UUID
    date: datetime.date
    start_time: datetime.time
    delta: int


class SlotAvailabilityUpdate(BaseModel):
    offering_id: uuid.UUID
    date: datetime.date
    start_time: datetime.time
    is_available: bool


class AvailabilitySlotRead(BaseModel):
    """Serialized availability slot."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    offering_id: uuid.UUID
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    capacity: int
    booked_count: int
    available_capacity: int
    is_available: bool
    price: Decimal | None = None
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("metadata_", "metadata")
    )
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
