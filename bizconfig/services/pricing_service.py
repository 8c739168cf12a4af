"""Pricing rule management and the price calculation engine."""

from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.core.errors import (
    PriceCalculationFailed,
    PricingRuleCreateFailed,
    PricingRuleDeleteFailed,
    PricingRuleNotFoundError,
    PricingRulesFetchFailed,
    PricingRuleUpdateFailed,
    PricingRuleValidationError,
)
from bizconfig.models.pricing import ModifierType, PricingRule, PricingType
from bizconfig.schemas.pricing import (
    PriceCalculationRequest,
    PricingConditions,
    PricingPayload,
    PricingRuleCreate,
    PricingRuleUpdate,
)
from bizconfig.services import offering_service
from bizconfig.services.persistence import persistence_guard
from bizconfig.services.pricing_formula import FormulaError, compile_formula
from bizconfig.services.pricing_validation import validate_pricing_rule

logger = logging.getLogger(__name__)

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

# Percentage modifiers are computed against the price left by the rules that
# ran before them, so two -10% rules yield -19%, not -20%.
COMPOUND_ON_RUNNING_PRICE = True


@dataclass(slots=True)
class AppliedRule:
    """A rule that changed the price, with its net effect."""

    rule_id: uuid.UUID
    rule_name: str
    price_modifier: Decimal
    modifier_type: ModifierType


@dataclass(slots=True)
class PriceBreakdown:
    base_amount: Decimal
    discounts: Decimal
    surcharges: Decimal
    total: Decimal
    taxes: Decimal | None = None


@dataclass(slots=True)
class PriceCalculation:
    """Result of pricing one offering request."""

    base_price: Decimal
    final_price: Decimal
    applied_rules: list[AppliedRule]
    breakdown: PriceBreakdown
    currency: str


@dataclass(slots=True, frozen=True)
class RuleOutcome:
    new_price: Decimal
    price_modifier: Decimal
    modifier_type: ModifierType = ModifierType.FIXED

    @property
    def applied(self) -> bool:
        return self.price_modifier != 0


@dataclass(slots=True)
class _LoadedRule:
    rule: PricingRule
    conditions: PricingConditions
    pricing: PricingPayload = field(repr=False)


def _to_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def day_of_week(value: datetime.date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return value.isoweekday() % 7


def _dump(model: PricingConditions | PricingPayload) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude_none=True)


def _load(rule: PricingRule) -> _LoadedRule:
    return _LoadedRule(
        rule=rule,
        conditions=PricingConditions.model_validate(rule.conditions or {}),
        pricing=PricingPayload.model_validate(rule.pricing or {}),
    )


# ---------------------------------------------------------------------------
# Rule store
# ---------------------------------------------------------------------------


def _active_rules_stmt(
    tenant_id: uuid.UUID, offering_id: uuid.UUID
) -> Select[tuple[PricingRule]]:
    return (
        select(PricingRule)
        .where(
            PricingRule.tenant_id == tenant_id,
            PricingRule.offering_id == offering_id,
            PricingRule.is_active.is_(True),
        )
        .order_by(
            PricingRule.priority, PricingRule.sequence, PricingRule.created_at
        )
    )


async def _next_sequence(
    session: AsyncSession, *, tenant_id: uuid.UUID, offering_id: uuid.UUID
) -> int:
    result = await session.execute(
        select(func.coalesce(func.max(PricingRule.sequence), 0)).where(
            PricingRule.tenant_id == tenant_id,
            PricingRule.offering_id == offering_id,
        )
    )
    return int(result.scalar_one()) + 1


def _raise_if_invalid(
    tenant_id: uuid.UUID,
    pricing_type: PricingType,
    conditions: PricingConditions,
    pricing: PricingPayload,
) -> None:
    validation = validate_pricing_rule(pricing_type, conditions, pricing)
    if not validation.is_valid:
        raise PricingRuleValidationError(tenant_id=tenant_id, details=validation.errors)


async def create_pricing_rule(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    payload: PricingRuleCreate,
) -> PricingRule:
    """Validate and persist a new active pricing rule."""
    async with persistence_guard(
        session, PricingRuleCreateFailed, tenant_id=tenant_id, action="Pricing rule create"
    ):
        await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=payload.offering_id
        )
        _raise_if_invalid(
            tenant_id, payload.pricing_type, payload.conditions, payload.pricing
        )
        rule = PricingRule(
            tenant_id=tenant_id,
            offering_id=payload.offering_id,
            name=payload.name,
            description=payload.description,
            pricing_type=payload.pricing_type,
            is_active=True,
            priority=payload.priority,
            sequence=await _next_sequence(
                session, tenant_id=tenant_id, offering_id=payload.offering_id
            ),
            conditions=_dump(payload.conditions),
            pricing=_dump(payload.pricing),
            metadata_=dict(payload.metadata),
        )
        session.add(rule)
        await session.commit()
        await session.refresh(rule)
    logger.info(
        "Created %s pricing rule %s for offering %s",
        rule.pricing_type.value,
        rule.id,
        rule.offering_id,
    )
    return rule


async def list_pricing_rules(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
) -> list[PricingRule]:
    """Return active rules for an offering in evaluation order."""
    async with persistence_guard(
        session, PricingRulesFetchFailed, tenant_id=tenant_id, action="Pricing rule fetch"
    ):
        await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=offering_id
        )
        result = await session.execute(_active_rules_stmt(tenant_id, offering_id))
        return list(result.scalars().all())


async def get_pricing_rule(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    rule_id: uuid.UUID,
) -> PricingRule:
    """Fetch a single rule (active or not) ensuring tenancy."""
    async with persistence_guard(
        session, PricingRulesFetchFailed, tenant_id=tenant_id, action="Pricing rule fetch"
    ):
        rule = await session.get(PricingRule, rule_id)
    if rule is None or rule.tenant_id != tenant_id:
        raise PricingRuleNotFoundError(tenant_id=tenant_id)
    return rule


async def update_pricing_rule(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    rule_id: uuid.UUID,
    updates: PricingRuleUpdate,
) -> PricingRule:
    """Merge partial updates over a stored rule, re-validating pricing changes."""
    rule = await get_pricing_rule(session, tenant_id=tenant_id, rule_id=rule_id)
    provided = updates.model_fields_set

    if provided & {"pricing_type", "conditions", "pricing"}:
        stored = _load(rule)
        _raise_if_invalid(
            tenant_id,
            updates.pricing_type or rule.pricing_type,
            updates.conditions if updates.conditions is not None else stored.conditions,
            updates.pricing if updates.pricing is not None else stored.pricing,
        )

    async with persistence_guard(
        session, PricingRuleUpdateFailed, tenant_id=tenant_id, action="Pricing rule update"
    ):
        if updates.name is not None:
            rule.name = updates.name
        if "description" in provided:
            rule.description = updates.description
        if updates.pricing_type is not None:
            rule.pricing_type = updates.pricing_type
        if updates.priority is not None:
            rule.priority = updates.priority
        if updates.conditions is not None:
            rule.conditions = _dump(updates.conditions)
        if updates.pricing is not None:
            rule.pricing = _dump(updates.pricing)
        if updates.metadata is not None:
            rule.metadata_ = dict(updates.metadata)
        await session.commit()
        await session.refresh(rule)
    logger.info("Updated pricing rule %s", rule.id)
    return rule


async def delete_pricing_rule(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    rule_id: uuid.UUID,
) -> None:
    """Deactivate a rule; rules are never physically removed."""
    rule = await get_pricing_rule(session, tenant_id=tenant_id, rule_id=rule_id)
    async with persistence_guard(
        session, PricingRuleDeleteFailed, tenant_id=tenant_id, action="Pricing rule delete"
    ):
        rule.is_active = False
        await session.commit()
    logger.info("Deactivated pricing rule %s", rule.id)


# ---------------------------------------------------------------------------
# Price calculation
# ---------------------------------------------------------------------------


async def calculate_price(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    request: PriceCalculationRequest,
) -> PriceCalculation:
    """Price an offering request by composing its matching rules."""
    async with persistence_guard(
        session, PriceCalculationFailed, tenant_id=tenant_id, action="Price calculation"
    ):
        offering = await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=request.offering_id
        )
        base_price = _to_money(offering.base_price)

        if request.variant_id is not None:
            variants = await offering_service.get_offering_variants(
                session, tenant_id=tenant_id, offering_id=request.offering_id
            )
            variant = next((v for v in variants if v.id == request.variant_id), None)
            if variant is not None:
                base_price += _to_money(variant.price_modifier)

        result = await session.execute(
            _active_rules_stmt(tenant_id, request.offering_id)
        )
        rules = list(result.scalars().all())
        currency = await offering_service.get_tenant_currency(
            session, tenant_id=tenant_id
        )

    try:
        return compose_price(
            rules, base_price=base_price, request=request, currency=currency
        )
    except ArithmeticError as exc:
        logger.exception(
            "Price calculation overflowed for tenant %s offering %s",
            tenant_id,
            request.offering_id,
        )
        raise PriceCalculationFailed(tenant_id=tenant_id) from exc


def compose_price(
    rules: Sequence[PricingRule],
    *,
    base_price: Decimal,
    request: PriceCalculationRequest,
    currency: str,
) -> PriceCalculation:
    """Apply ``rules`` (already in evaluation order) to ``base_price``."""
    applicable = filter_applicable_rules([_load(rule) for rule in rules], request)

    running = base_price
    discounts = ZERO
    surcharges = ZERO
    applied: list[AppliedRule] = []

    for loaded in applicable:
        outcome = apply_pricing_rule(
            loaded, current_price=running, base_price=base_price, request=request
        )
        if not outcome.applied:
            continue
        applied.append(
            AppliedRule(
                rule_id=loaded.rule.id,
                rule_name=loaded.rule.name,
                price_modifier=outcome.price_modifier,
                modifier_type=outcome.modifier_type,
            )
        )
        if outcome.price_modifier > 0:
            surcharges += outcome.price_modifier
        else:
            discounts += -outcome.price_modifier
        running = outcome.new_price

    final_price = max(ZERO, _to_money(running))
    return PriceCalculation(
        base_price=base_price,
        final_price=final_price,
        applied_rules=applied,
        breakdown=PriceBreakdown(
            base_amount=base_price,
            discounts=_to_money(discounts),
            surcharges=_to_money(surcharges),
            total=final_price,
        ),
        currency=currency,
    )


def filter_applicable_rules(
    rules: Sequence[_LoadedRule], request: PriceCalculationRequest
) -> list[_LoadedRule]:
    return [loaded for loaded in rules if rule_matches(loaded.conditions, request)]


def rule_matches(conditions: PricingConditions, request: PriceCalculationRequest) -> bool:
    """Return True when every condition the rule declares holds for the request."""
    quantity = request.quantity
    if conditions.min_quantity is not None and quantity < conditions.min_quantity:
        return False
    if conditions.max_quantity is not None and quantity > conditions.max_quantity:
        return False

    if conditions.date_range is not None:
        if request.date is None:
            return False
        if not (
            conditions.date_range.start_date
            <= request.date
            <= conditions.date_range.end_date
        ):
            return False

    if conditions.time_slots:
        if request.date is None or request.time is None:
            return False
        weekday = day_of_week(request.date)
        if not any(
            window.day_of_week == weekday
            and window.start_time <= request.time <= window.end_time
            for window in conditions.time_slots
        ):
            return False

    if conditions.customer_segment is not None:
        if request.customer_segment != conditions.customer_segment:
            return False

    return True


def _modifier_outcome(
    modifier: Decimal,
    modifier_type: ModifierType | None,
    *,
    current_price: Decimal,
    base_price: Decimal,
) -> RuleOutcome:
    if modifier_type is ModifierType.PERCENTAGE:
        reference = current_price if COMPOUND_ON_RUNNING_PRICE else base_price
        delta = _to_money(reference * modifier / Decimal("100"))
        return RuleOutcome(current_price + delta, delta, ModifierType.PERCENTAGE)
    delta = _to_money(modifier)
    return RuleOutcome(current_price + delta, delta, ModifierType.FIXED)


def apply_pricing_rule(
    loaded: _LoadedRule,
    *,
    current_price: Decimal,
    base_price: Decimal,
    request: PriceCalculationRequest,
) -> RuleOutcome:
    """Compute the running price after ``loaded`` is applied."""
    pricing = loaded.pricing
    pricing_type = loaded.rule.pricing_type
    unchanged = RuleOutcome(current_price, ZERO)

    if pricing_type is PricingType.FIXED:
        if pricing.base_price is not None:
            new_price = _to_money(pricing.base_price)
            return RuleOutcome(new_price, new_price - current_price)
        if pricing.price_modifier is not None:
            return _modifier_outcome(
                pricing.price_modifier,
                pricing.modifier_type,
                current_price=current_price,
                base_price=base_price,
            )
        return unchanged

    if pricing_type is PricingType.PERCENTAGE:
        if pricing.price_modifier is None:
            return unchanged
        return _modifier_outcome(
            pricing.price_modifier,
            ModifierType.PERCENTAGE,
            current_price=current_price,
            base_price=base_price,
        )

    if pricing_type is PricingType.TIME_BASED:
        if pricing.price_modifier is None:
            return unchanged
        return _modifier_outcome(
            pricing.price_modifier,
            pricing.modifier_type,
            current_price=current_price,
            base_price=base_price,
        )

    if pricing_type is PricingType.TIERED:
        tier = next(
            (
                tier
                for tier in pricing.tiers or []
                if request.quantity >= tier.min_quantity
                and (tier.max_quantity is None or request.quantity <= tier.max_quantity)
            ),
            None,
        )
        if tier is None:
            return unchanged
        new_price = _to_money(tier.price * request.quantity)
        return RuleOutcome(new_price, new_price - current_price)

    if pricing_type is PricingType.DYNAMIC:
        return _apply_dynamic(
            loaded, current_price=current_price, base_price=base_price, request=request
        )

    return unchanged


def _apply_dynamic(
    loaded: _LoadedRule,
    *,
    current_price: Decimal,
    base_price: Decimal,
    request: PriceCalculationRequest,
) -> RuleOutcome:
    pricing = loaded.pricing
    if pricing.dynamic_formula:
        try:
            formula = compile_formula(pricing.dynamic_formula)
            new_price = _to_money(
                formula.evaluate(
                    {
                        "price": current_price,
                        "base_price": base_price,
                        "quantity": request.quantity,
                    }
                )
            )
        except (FormulaError, ArithmeticError) as exc:
            logger.warning(
                "Dynamic formula for rule %s could not be evaluated (%s); "
                "falling back to price_modifier",
                loaded.rule.id,
                exc,
            )
        else:
            return RuleOutcome(new_price, new_price - current_price)

    if pricing.price_modifier is None:
        return RuleOutcome(current_price, ZERO)
    delta = _to_money(pricing.price_modifier)
    return RuleOutcome(current_price + delta, delta)


__all__ = [
    "AppliedRule",
    "COMPOUND_ON_RUNNING_PRICE",
    "PriceBreakdown",
    "PriceCalculation",
    "RuleOutcome",
    "apply_pricing_rule",
    "calculate_price",
    "compose_price",
    "create_pricing_rule",
    "day_of_week",
    "delete_pricing_rule",
    "filter_applicable_rules",
    "get_pricing_rule",
    "list_pricing_rules",
    "rule_matches",
    "update_pricing_rule",
]
