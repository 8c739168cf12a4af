"""Availability slot generation, capacity queries and booking counters."""

from __future__ import annotations

import datetime
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Select, and_, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.core.config import get_settings
from bizconfig.core.errors import (
    AvailabilityCheckFailed,
    AvailabilityGenerationFailed,
    AvailabilitySlotNotFoundError,
    AvailabilityValidationError,
    InvalidBookingCountError,
    PriceCalculationFailed,
    SlotBookingUpdateFailed,
)
from bizconfig.models.availability import AvailabilitySlot
from bizconfig.models.pricing import ModifierType
from bizconfig.schemas.availability import (
    AvailabilityCheckRead,
    AvailabilityCheckRequest,
    AvailableSlotRead,
    GenerateAvailabilityRequest,
    SlotAvailabilityUpdate,
    SlotBookingUpdate,
    SpecialPricing,
    SuggestedAlternativeRead,
)
from bizconfig.schemas.pricing import PriceCalculationRequest
from bizconfig.services import offering_service, pricing_service
from bizconfig.services.persistence import persistence_guard

logger = logging.getLogger(__name__)

_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}
_NATURAL_KEY = ("tenant_id", "offering_id", "date", "start_time")


def _validate_generation(request: GenerateAvailabilityRequest) -> list[str]:
    errors: list[str] = []
    if request.end_date < request.start_date:
        errors.append("end_date must not be before start_date")
    else:
        days = (request.end_date - request.start_date).days + 1
        max_days = get_settings().availability_max_range_days
        if days > max_days:
            errors.append(f"Date range cannot exceed {max_days} days")
    if not request.time_slots:
        errors.append("At least one time slot template is required")
    for index, template in enumerate(request.time_slots, start=1):
        if not 0 <= template.day_of_week <= 6:
            errors.append(f"Time slot {index}: day_of_week must be between 0 and 6")
        if template.end_time <= template.start_time:
            errors.append(f"Time slot {index}: end_time must be after start_time")
        if template.capacity < 1:
            errors.append(f"Time slot {index}: capacity must be at least 1")
    return errors


def _iter_dates(start: datetime.date, end: datetime.date):
    current = start
    while current <= end:
        yield current
        current += datetime.timedelta(days=1)


def _special_price(base_price: Decimal, special: SpecialPricing) -> Decimal:
    if special.modifier_type is ModifierType.PERCENTAGE:
        price = base_price * (Decimal("1") + special.price_modifier / Decimal("100"))
    else:
        price = base_price + special.price_modifier
    return max(
        pricing_service.ZERO,
        price.quantize(pricing_service.MONEY_PLACES, rounding=ROUND_HALF_UP),
    )


async def _special_slot_price(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
    special: SpecialPricing,
    start_time: datetime.time,
) -> Decimal:
    try:
        calculation = await pricing_service.calculate_price(
            session,
            tenant_id=tenant_id,
            request=PriceCalculationRequest(
                offering_id=offering_id, date=special.date, time=start_time
            ),
        )
    except PriceCalculationFailed as exc:
        raise AvailabilityGenerationFailed(tenant_id=tenant_id) from exc
    try:
        return _special_price(calculation.base_price, special)
    except ArithmeticError as exc:
        logger.exception("Special price for %s overflowed", special.date)
        raise AvailabilityGenerationFailed(tenant_id=tenant_id) from exc


def _slot_insert(session: AsyncSession, *, tenant_id: uuid.UUID):
    dialect = session.bind.dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise AvailabilityGenerationFailed(
            f"Slot generation does not support the {dialect} dialect",
            tenant_id=tenant_id,
        )

    def build(values: dict[str, Any]):
        return (
            insert(AvailabilitySlot.__table__)
            .values(values)
            .on_conflict_do_nothing(index_elements=list(_NATURAL_KEY))
        )

    return build


async def _existing_slot_keys(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    request: GenerateAvailabilityRequest,
) -> set[tuple[datetime.date, datetime.time]]:
    result = await session.execute(
        select(AvailabilitySlot.date, AvailabilitySlot.start_time).where(
            AvailabilitySlot.tenant_id == tenant_id,
            AvailabilitySlot.offering_id == request.offering_id,
            AvailabilitySlot.date >= request.start_date,
            AvailabilitySlot.date <= request.end_date,
        )
    )
    return {(row.date, row.start_time) for row in result}


async def generate_availability(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    request: GenerateAvailabilityRequest,
) -> int:
    """Expand a weekly template into slots, returning how many were created.

    Slots that already exist for a date and start time are left untouched and
    are not re-priced, so re-running the same request creates nothing.
    """
    errors = _validate_generation(request)
    if errors:
        raise AvailabilityValidationError(tenant_id=tenant_id, details=errors)

    created = 0
    async with persistence_guard(
        session,
        AvailabilityGenerationFailed,
        tenant_id=tenant_id,
        action="Availability generation",
    ):
        await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=request.offering_id
        )
        insert_slot = _slot_insert(session, tenant_id=tenant_id)
        existing = await _existing_slot_keys(
            session, tenant_id=tenant_id, request=request
        )
        specials = {special.date: special for special in request.special_pricing}
        excluded = set(request.exclude_dates)

        for current in _iter_dates(request.start_date, request.end_date):
            if current in excluded:
                continue
            weekday = pricing_service.day_of_week(current)
            for template in request.time_slots:
                if template.day_of_week != weekday:
                    continue
                if (current, template.start_time) in existing:
                    continue
                price = None
                if current in specials:
                    price = await _special_slot_price(
                        session,
                        tenant_id=tenant_id,
                        offering_id=request.offering_id,
                        special=specials[current],
                        start_time=template.start_time,
                    )
                result = await session.execute(
                    insert_slot(
                        {
                            "tenant_id": tenant_id,
                            "offering_id": request.offering_id,
                            "date": current,
                            "start_time": template.start_time,
                            "end_time": template.end_time,
                            "capacity": template.capacity,
                            "price": price,
                        },
                    )
                )
                created += max(result.rowcount or 0, 0)
        await session.commit()

    logger.info(
        "Generated %d availability slots for offering %s (%s to %s)",
        created,
        request.offering_id,
        request.start_date,
        request.end_date,
    )
    return created


def _open_slots_stmt(
    tenant_id: uuid.UUID, offering_id: uuid.UUID, quantity: int
) -> Select[tuple[AvailabilitySlot]]:
    return select(AvailabilitySlot).where(
        AvailabilitySlot.tenant_id == tenant_id,
        AvailabilitySlot.offering_id == offering_id,
        AvailabilitySlot.is_available.is_(True),
        AvailabilitySlot.capacity - AvailabilitySlot.booked_count >= quantity,
    )


async def check_availability(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    request: AvailabilityCheckRequest,
) -> AvailabilityCheckRead:
    """Report slots on a date that can take ``quantity`` more bookings."""
    async with persistence_guard(
        session,
        AvailabilityCheckFailed,
        tenant_id=tenant_id,
        action="Availability check",
    ):
        await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=request.offering_id
        )
        stmt = _open_slots_stmt(tenant_id, request.offering_id, request.quantity).where(
            AvailabilitySlot.date == request.date
        )
        if request.start_time is not None:
            stmt = stmt.where(AvailabilitySlot.start_time >= request.start_time)
        if request.end_time is not None:
            stmt = stmt.where(AvailabilitySlot.end_time <= request.end_time)
        result = await session.execute(stmt.order_by(AvailabilitySlot.start_time))
        slots = list(result.scalars().all())

        if slots:
            return AvailabilityCheckRead(
                is_available=True,
                available_slots=[
                    AvailableSlotRead.model_validate(slot) for slot in slots
                ],
            )

        result = await session.execute(
            _open_slots_stmt(tenant_id, request.offering_id, request.quantity)
            .where(AvailabilitySlot.date >= request.date)
            .order_by(AvailabilitySlot.date, AvailabilitySlot.start_time)
            .limit(get_settings().availability_suggestion_limit)
        )
        alternatives = list(result.scalars().all())

    return AvailabilityCheckRead(
        is_available=False,
        available_slots=[],
        next_available_date=alternatives[0].date if alternatives else None,
        suggested_alternatives=[
            SuggestedAlternativeRead.model_validate(slot) for slot in alternatives
        ],
    )


async def list_slots(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
    start_date: datetime.date,
    end_date: datetime.date,
) -> list[AvailabilitySlot]:
    """Return every slot of an offering within an inclusive date range."""
    if end_date < start_date:
        raise AvailabilityValidationError(
            tenant_id=tenant_id, details=["end_date must not be before start_date"]
        )
    async with persistence_guard(
        session, AvailabilityCheckFailed, tenant_id=tenant_id, action="Slot listing"
    ):
        await offering_service.get_offering(
            session, tenant_id=tenant_id, offering_id=offering_id
        )
        result = await session.execute(
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.tenant_id == tenant_id,
                AvailabilitySlot.offering_id == offering_id,
                AvailabilitySlot.date >= start_date,
                AvailabilitySlot.date <= end_date,
            )
            .order_by(AvailabilitySlot.date, AvailabilitySlot.start_time)
        )
        return list(result.scalars().all())


def _slot_key(
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
    date: datetime.date,
    start_time: datetime.time,
):
    return and_(
        AvailabilitySlot.tenant_id == tenant_id,
        AvailabilitySlot.offering_id == offering_id,
        AvailabilitySlot.date == date,
        AvailabilitySlot.start_time == start_time,
    )


async def _reload_slot(session: AsyncSession, key) -> AvailabilitySlot | None:
    result = await session.execute(
        select(AvailabilitySlot)
        .where(key)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_slot_booking(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    payload: SlotBookingUpdate,
) -> AvailabilitySlot:
    """Atomically add ``payload.delta`` to a slot's booked count.

    The count never leaves ``0..capacity``; concurrent callers cannot
    overbook because the bound is checked by the same UPDATE that applies it.
    """
    key = _slot_key(tenant_id, payload.offering_id, payload.date, payload.start_time)
    async with persistence_guard(
        session,
        SlotBookingUpdateFailed,
        tenant_id=tenant_id,
        action="Slot booking update",
    ):
        new_count = AvailabilitySlot.booked_count + payload.delta
        result = await session.execute(
            update(AvailabilitySlot)
            .where(key, new_count >= 0, new_count <= AvailabilitySlot.capacity)
            .values(booked_count=new_count)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        slot = await _reload_slot(session, key)

    if slot is None:
        raise AvailabilitySlotNotFoundError(tenant_id=tenant_id)
    if result.rowcount == 0:
        logger.warning(
            "Rejected booking change %d on slot %s (%d of %d booked)",
            payload.delta,
            slot.id,
            slot.booked_count,
            slot.capacity,
        )
        raise InvalidBookingCountError(
            tenant_id=tenant_id,
            details=[
                f"Booked count {slot.booked_count} with change {payload.delta} "
                f"must stay between 0 and {slot.capacity}"
            ],
        )
    logger.info(
        "Slot %s booked count changed by %d to %d",
        slot.id,
        payload.delta,
        slot.booked_count,
    )
    return slot


async def set_slot_availability(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    payload: SlotAvailabilityUpdate,
) -> AvailabilitySlot:
    """Open or close a slot for new bookings without touching its counters."""
    key = _slot_key(tenant_id, payload.offering_id, payload.date, payload.start_time)
    async with persistence_guard(
        session,
        SlotBookingUpdateFailed,
        tenant_id=tenant_id,
        action="Slot availability update",
    ):
        await session.execute(
            update(AvailabilitySlot)
            .where(key)
            .values(is_available=payload.is_available)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        slot = await _reload_slot(session, key)

    if slot is None:
        raise AvailabilitySlotNotFoundError(tenant_id=tenant_id)
    logger.info("Slot %s availability set to %s", slot.id, slot.is_available)
    return slot


__all__ = [
    "check_availability",
    "generate_availability",
    "list_slots",
    "set_slot_availability",
    "update_slot_booking",
]
