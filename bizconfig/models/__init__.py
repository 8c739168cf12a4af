"""ORM models package export."""

from bizconfig.models.availability import AvailabilitySlot
from bizconfig.models.offering import Offering, OfferingVariant
from bizconfig.models.pricing import ModifierType, PricingRule, PricingType
from bizconfig.models.tenant import Tenant

__all__ = [
    "AvailabilitySlot",
    "ModifierType",
    "Offering",
    "OfferingVariant",
    "PricingRule",
    "PricingType",
    "Tenant",
]
