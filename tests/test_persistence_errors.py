"""Storage failures surface as the failing operation's error code."""

from __future__ import annotations

import datetime
from typing import Any

import pytest
from sqlalchemy.exc import SQLAlchemyError

from bizconfig.core.errors import (
    AvailabilityCheckFailed,
    AvailabilityGenerationFailed,
    PriceCalculationFailed,
    PricingRuleCreateFailed,
    PricingRuleDeleteFailed,
    PricingRulesFetchFailed,
    PricingRuleUpdateFailed,
    SlotBookingUpdateFailed,
)
from bizconfig.db.session import get_sessionmaker
from bizconfig.schemas.availability import (
    AvailabilityCheckRequest,
    GenerateAvailabilityRequest,
    SlotAvailabilityUpdate,
    SlotBookingUpdate,
)
from bizconfig.schemas.pricing import (
    PriceCalculationRequest,
    PricingRuleCreate,
    PricingRuleUpdate,
)
from bizconfig.services import availability_service, pricing_service

pytestmark = pytest.mark.asyncio

MONDAY = datetime.date(2024, 1, 15)
ELEVEN = datetime.time(11, 0)


def _break(session, monkeypatch: pytest.MonkeyPatch, method: str) -> SQLAlchemyError:
    error = SQLAlchemyError("database unavailable")

    async def failing(*args: Any, **kwargs: Any):
        raise error

    monkeypatch.setattr(session, method, failing)
    return error


def _surcharge(offering_id) -> PricingRuleCreate:
    return PricingRuleCreate.model_validate(
        {
            "offering_id": offering_id,
            "name": "Surcharge",
            "pricing_type": "fixed",
            "pricing": {"price_modifier": "2"},
        }
    )


def _monday(offering_id) -> GenerateAvailabilityRequest:
    return GenerateAvailabilityRequest.model_validate(
        {
            "offering_id": offering_id,
            "start_date": MONDAY,
            "end_date": MONDAY,
            "time_slots": [
                {"day_of_week": 1, "start_time": "11:00", "end_time": "12:00", "capacity": 4}
            ],
        }
    )


async def test_rule_create_failure(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    tenant_id = tenant_context["tenant_id"]
    offering_id = tenant_context["offering_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "commit")
        with pytest.raises(PricingRuleCreateFailed) as excinfo:
            await pricing_service.create_pricing_rule(
                session, tenant_id=tenant_id, payload=_surcharge(offering_id)
            )
    assert excinfo.value.code == "PRICING_RULE_CREATE_FAILED"
    assert excinfo.value.__cause__ is error

    async with sessionmaker() as session:
        rules = await pricing_service.list_pricing_rules(
            session, tenant_id=tenant_id, offering_id=offering_id
        )
    assert rules == []


async def test_rule_fetch_failures(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    tenant_id = tenant_context["tenant_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        rule = await pricing_service.create_pricing_rule(
            session, tenant_id=tenant_id, payload=_surcharge(tenant_context["offering_id"])
        )

    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "execute")
        with pytest.raises(PricingRulesFetchFailed) as excinfo:
            await pricing_service.list_pricing_rules(
                session, tenant_id=tenant_id, offering_id=tenant_context["offering_id"]
            )
        assert excinfo.value.__cause__ is error

    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "get")
        with pytest.raises(PricingRulesFetchFailed) as excinfo:
            await pricing_service.get_pricing_rule(
                session, tenant_id=tenant_id, rule_id=rule.id
            )
        assert excinfo.value.code == "PRICING_RULES_FETCH_FAILED"
        assert excinfo.value.__cause__ is error


async def test_rule_update_and_delete_failures_leave_rule_unchanged(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    tenant_id = tenant_context["tenant_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        rule = await pricing_service.create_pricing_rule(
            session, tenant_id=tenant_id, payload=_surcharge(tenant_context["offering_id"])
        )

    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "commit")
        with pytest.raises(PricingRuleUpdateFailed) as excinfo:
            await pricing_service.update_pricing_rule(
                session,
                tenant_id=tenant_id,
                rule_id=rule.id,
                updates=PricingRuleUpdate(name="Renamed"),
            )
        assert excinfo.value.code == "PRICING_RULE_UPDATE_FAILED"
        assert excinfo.value.__cause__ is error

        with pytest.raises(PricingRuleDeleteFailed) as excinfo:
            await pricing_service.delete_pricing_rule(
                session, tenant_id=tenant_id, rule_id=rule.id
            )
        assert excinfo.value.code == "PRICING_RULE_DELETE_FAILED"
        assert excinfo.value.__cause__ is error

    async with sessionmaker() as session:
        stored = await pricing_service.get_pricing_rule(
            session, tenant_id=tenant_id, rule_id=rule.id
        )
        assert stored.name == "Surcharge"
        assert stored.is_active is True


async def test_price_calculation_failure(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "execute")
        with pytest.raises(PriceCalculationFailed) as excinfo:
            await pricing_service.calculate_price(
                session,
                tenant_id=tenant_context["tenant_id"],
                request=PriceCalculationRequest(offering_id=tenant_context["offering_id"]),
            )
    assert excinfo.value.code == "PRICE_CALCULATION_FAILED"
    assert excinfo.value.__cause__ is error


async def test_generation_failure_persists_nothing(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    tenant_id = tenant_context["tenant_id"]
    offering_id = tenant_context["offering_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "commit")
        with pytest.raises(AvailabilityGenerationFailed) as excinfo:
            await availability_service.generate_availability(
                session, tenant_id=tenant_id, request=_monday(offering_id)
            )
    assert excinfo.value.code == "AVAILABILITY_GENERATION_FAILED"
    assert excinfo.value.__cause__ is error

    async with sessionmaker() as session:
        slots = await availability_service.list_slots(
            session,
            tenant_id=tenant_id,
            offering_id=offering_id,
            start_date=MONDAY,
            end_date=MONDAY,
        )
    assert slots == []


async def test_availability_check_failure(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "execute")
        with pytest.raises(AvailabilityCheckFailed) as excinfo:
            await availability_service.check_availability(
                session,
                tenant_id=tenant_context["tenant_id"],
                request=AvailabilityCheckRequest(
                    offering_id=tenant_context["offering_id"], date=MONDAY
                ),
            )
    assert excinfo.value.code == "AVAILABILITY_CHECK_FAILED"
    assert excinfo.value.__cause__ is error


async def test_slot_update_failures_keep_counters(
    tenant_context, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    tenant_id = tenant_context["tenant_id"]
    offering_id = tenant_context["offering_id"]
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await availability_service.generate_availability(
            session, tenant_id=tenant_id, request=_monday(offering_id)
        )

    async with sessionmaker() as session:
        error = _break(session, monkeypatch, "commit")
        with pytest.raises(SlotBookingUpdateFailed) as excinfo:
            await availability_service.update_slot_booking(
                session,
                tenant_id=tenant_id,
                payload=SlotBookingUpdate(
                    offering_id=offering_id, date=MONDAY, start_time=ELEVEN, delta=2
                ),
            )
        assert excinfo.value.code == "SLOT_BOOKING_UPDATE_FAILED"
        assert excinfo.value.__cause__ is error

        with pytest.raises(SlotBookingUpdateFailed):
            await availability_service.set_slot_availability(
                session,
                tenant_id=tenant_id,
                payload=SlotAvailabilityUpdate(
                    offering_id=offering_id,
                    date=MONDAY,
                    start_time=ELEVEN,
                    is_available=False,
                ),
            )

    async with sessionmaker() as session:
        slots = await availability_service.list_slots(
            session,
            tenant_id=tenant_id,
            offering_id=offering_id,
            start_date=MONDAY,
            end_date=MONDAY,
        )
    assert [(slot.booked_count, slot.is_available) for slot in slots] == [(0, True)]
