"""Schema exports."""

from bizconfig.schemas.availability import (
    AvailabilityCheckRead,
    AvailabilityCheckRequest,
    AvailabilitySlotRead,
    AvailableSlotRead,
    GenerateAvailabilityRead,
    GenerateAvailabilityRequest,
    SlotAvailabilityUpdate,
    SlotBookingUpdate,
    SlotTemplate,
    SpecialPricing,
    SuggestedAlternativeRead,
)
from bizconfig.schemas.pricing import (
    AppliedRuleRead,
    DateRange,
    PriceBreakdownRead,
    PriceCalculationRead,
    PriceCalculationRequest,
    PriceTier,
    PricingConditions,
    PricingPayload,
    PricingRuleCreate,
    PricingRuleRead,
    PricingRuleUpdate,
    TimeWindow,
)

__all__ = [
    "AppliedRuleRead",
    "AvailabilityCheckRead",
    "AvailabilityCheckRequest",
    "AvailabilitySlotRead",
    "AvailableSlotRead",
    "DateRange",
    "GenerateAvailabilityRead",
    "GenerateAvailabilityRequest",
    "PriceBreakdownRead",
    "PriceCalculationRead",
    "PriceCalculationRequest",
    "PriceTier",
    "PricingConditions",
    "PricingPayload",
    "PricingRuleCreate",
    "PricingRuleRead",
    "PricingRuleUpdate",
    "SlotAvailabilityUpdate",
    "SlotBookingUpdate",
    "SlotTemplate",
    "SpecialPricing",
    "SuggestedAlternativeRead",
    "TimeWindow",
]
