"""Service-level error taxonomy.

Every public pricing/availability operation either returns its result or raises
one of these. Each carries a stable ``code`` the HTTP layer and other callers
can switch on.
"""

from __future__ import annotations

import uuid
from typing import Any


class ServiceError(Exception):
    """Base class for failures reported by the pricing and availability services."""

    code: str = "SERVICE_ERROR"
    default_message: str = "Service operation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        tenant_id: uuid.UUID | None = None,
        details: list[str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.tenant_id = tenant_id
        self.details = list(details or [])
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the code, message and any details for response bodies."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class OfferingNotFoundError(ServiceError):
    code = "OFFERING_NOT_FOUND"
    default_message = "Offering not found"


class PricingRuleNotFoundError(ServiceError):
    code = "PRICING_RULE_NOT_FOUND"
    default_message = "Pricing rule not found"


class PricingRuleValidationError(ServiceError):
    code = "PRICING_RULE_VALIDATION_FAILED"
    default_message = "Pricing rule validation failed"


class AvailabilitySlotNotFoundError(ServiceError):
    code = "AVAILABILITY_SLOT_NOT_FOUND"
    default_message = "Availability slot not found"


class InvalidBookingCountError(ServiceError):
    code = "INVALID_BOOKING_COUNT"
    default_message = "Invalid booking count for availability slot"


class AvailabilityValidationError(ServiceError):
    code = "AVAILABILITY_VALIDATION_FAILED"
    default_message = "Availability request validation failed"


class PricingRuleCreateFailed(ServiceError):
    code = "PRICING_RULE_CREATE_FAILED"
    default_message = "Failed to create pricing rule"


class PricingRulesFetchFailed(ServiceError):
    code = "PRICING_RULES_FETCH_FAILED"
    default_message = "Failed to fetch pricing rules"


class PricingRuleUpdateFailed(ServiceError):
    code = "PRICING_RULE_UPDATE_FAILED"
    default_message = "Failed to update pricing rule"


class PricingRuleDeleteFailed(ServiceError):
    code = "PRICING_RULE_DELETE_FAILED"
    default_message = "Failed to delete pricing rule"


class PriceCalculationFailed(ServiceError):
    code = "PRICE_CALCULATION_FAILED"
    default_message = "Failed to calculate price"


class AvailabilityGenerationFailed(ServiceError):
    code = "AVAILABILITY_GENERATION_FAILED"
    default_message = "Failed to generate availability"


class AvailabilityCheckFailed(ServiceError):
    code = "AVAILABILITY_CHECK_FAILED"
    default_message = "Failed to check availability"


class SlotBookingUpdateFailed(ServiceError):
    code = "SLOT_BOOKING_UPDATE_FAILED"
    default_message = "Failed to update slot booking"


__all__ = [
    "AvailabilityCheckFailed",
    "AvailabilityGenerationFailed",
    "AvailabilitySlotNotFoundError",
    "AvailabilityValidationError",
    "InvalidBookingCountError",
    "OfferingNotFoundError",
    "PriceCalculationFailed",
    "PricingRuleCreateFailed",
    "PricingRuleDeleteFailed",
    "PricingRuleNotFoundError",
    "PricingRuleUpdateFailed",
    "PricingRuleValidationError",
    "PricingRulesFetchFailed",
    "ServiceError",
    "SlotBookingUpdateFailed",
]
