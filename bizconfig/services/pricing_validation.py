"""Structural validation for pricing rules.

Problems are collected rather than raised so callers can report every issue
with a rule in one response.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bizconfig.models.pricing import PricingType
from bizconfig.schemas.pricing import PricingConditions, PricingPayload
from bizconfig.services.pricing_formula import FormulaError, compile_formula


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def validate_pricing_rule(
    pricing_type: PricingType,
    conditions: PricingConditions,
    pricing: PricingPayload,
) -> ValidationResult:
    """Check that a rule carries everything its pricing type needs."""
    errors: list[str] = []

    if pricing_type is PricingType.FIXED:
        if pricing.base_price is None and pricing.price_modifier is None:
            errors.append("Fixed pricing requires base_price or price_modifier")
    elif pricing_type is PricingType.TIERED:
        errors.extend(_tier_errors(pricing))
    elif pricing_type is PricingType.TIME_BASED:
        if not conditions.time_slots:
            errors.append("Time-based pricing requires time_slots in conditions")
    elif pricing_type is PricingType.PERCENTAGE:
        if pricing.price_modifier is None:
            errors.append("Percentage pricing requires price_modifier")
    elif pricing_type is PricingType.DYNAMIC:
        if not pricing.dynamic_formula:
            errors.append("Dynamic pricing requires dynamic_formula")
        else:
            try:
                compile_formula(pricing.dynamic_formula)
            except FormulaError as exc:
                errors.append(f"Dynamic formula is invalid: {exc}")

    errors.extend(_condition_errors(conditions))
    return ValidationResult(is_valid=not errors, errors=errors)


def _tier_errors(pricing: PricingPayload) -> list[str]:
    if not pricing.tiers:
        return ["Tiered pricing requires at least one tier"]
    errors: list[str] = []
    for index, tier in enumerate(pricing.tiers, start=1):
        if tier.min_quantity < 0:
            errors.append(f"Tier {index}: min_quantity cannot be negative")
        if tier.max_quantity is not None and tier.max_quantity <= tier.min_quantity:
            errors.append(
                f"Tier {index}: max_quantity must be greater than min_quantity"
            )
        if tier.price < 0:
            errors.append(f"Tier {index}: price cannot be negative")
    return errors


def _condition_errors(conditions: PricingConditions) -> list[str]:
    errors: list[str] = []
    if (
        conditions.min_quantity is not None
        and conditions.max_quantity is not None
        and conditions.max_quantity <= conditions.min_quantity
    ):
        errors.append("max_quantity must be greater than min_quantity")

    date_range = conditions.date_range
    if date_range is not None and date_range.end_date <= date_range.start_date:
        errors.append("End date must be after start date")

    for index, window in enumerate(conditions.time_slots or [], start=1):
        if not 0 <= window.day_of_week <= 6:
            errors.append(f"Time slot {index}: day_of_week must be between 0 and 6")
        if window.end_time <= window.start_time:
            errors.append(f"Time slot {index}: end_time must be after start_time")
    return errors


__all__ = ["ValidationResult", "validate_pricing_rule"]
