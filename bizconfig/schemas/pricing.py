"""Pricing schema definitions."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bizconfig.models.pricing import ModifierType, PricingType

MAX_QUANTITY = 10_000


class TimeWindow(BaseModel):
    """Weekly window; ``day_of_week`` runs 0 (Sunday) to 6 (Saturday)."""

    day_of_week: int
    start_time: datetime.time
    end_time: datetime.time


class DateRange(BaseModel):
    start_date: datetime.date
    end_date: datetime.date


class PricingConditions(BaseModel):
    """Predicates a calculation request must satisfy for the rule to apply."""

    min_quantity: int | None = None
    max_quantity: int | None = None
    time_slots: list[TimeWindow] | None = None
    date_range: DateRange | None = None
    customer_segment: str | None = None
    seasonality: str | None = None


class PriceTier(BaseModel):
    min_quantity: int
    max_quantity: int | None = None
    price: Decimal


class PricingPayload(BaseModel):
    """Type-specific pricing data; which fields matter depends on the rule type."""

    base_price: Decimal | None = None
    price_modifier: Decimal | None = None
    modifier_type: ModifierType | None = None
    tiers: list[PriceTier] | None = None
    dynamic_formula: str | None = None


class PricingRuleCreate(BaseModel):
    """Payload to create a pricing rule for an offering."""

    offering_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    pricing_type: PricingType
    priority: int = 0
    conditions: PricingConditions = Field(default_factory=PricingConditions)
    pricing: PricingPayload = Field(default_factory=PricingPayload)
    metadata: dict[str, Any] = Field(default_factory=dict)


class PricingRuleUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    pricing_type: PricingType | None = None
    priority: int | None = None
    conditions: PricingConditions | None = None
    pricing: PricingPayload | None = None
    metadata: dict[str, Any] | None = None


class PricingRuleRead(BaseModel):
    """Serialized pricing rule."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    offering_id: uuid.UUID
    name: str
    description: str | None
    pricing_type: PricingType
    is_active: bool
    priority: int
    sequence: int
    conditions: PricingConditions
    pricing: PricingPayload
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("metadata_", "metadata")
    )
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class PriceCalculationRequest(BaseModel):
    """Input payload for pricing an offering."""

    offering_id: uuid.UUID
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)
    date: datetime.date | None = None
    time: datetime.time | None = None
    customer_segment: str | None = None
    variant_id: uuid.UUID | None = None


class AppliedRuleRead(BaseModel):
    rule_id: uuid.UUID
    rule_name: str
    price_modifier: Decimal
    modifier_type: ModifierType

    model_config = ConfigDict(from_attributes=True)


class PriceBreakdownRead(BaseModel):
    base_amount: Decimal
    discounts: Decimal
    surcharges: Decimal
    taxes: Decimal | None = None
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class PriceCalculationRead(BaseModel):
    """Calculated price with the rules that produced it."""

    base_price: Decimal
    final_price: Decimal
    applied_rules: list[AppliedRuleRead]
    breakdown: PriceBreakdownRead
    currency: str

    model_config = ConfigDict(from_attributes=True)
