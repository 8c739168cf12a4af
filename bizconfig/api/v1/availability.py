"""Availability generation, query and booking endpoints."""

from __future__ import annotations

import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.api import deps
from bizconfig.core.errors import ServiceError
from bizconfig.schemas.availability import (
    AvailabilityCheckRead,
    AvailabilityCheckRequest,
    AvailabilitySlotRead,
    GenerateAvailabilityRead,
    GenerateAvailabilityRequest,
    SlotAvailabilityUpdate,
    SlotBookingUpdate,
)
from bizconfig.services import availability_service

router = APIRouter(tags=["availability"])


@router.post(
    "/availability/generate",
    response_model=GenerateAvailabilityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Generate slots from a weekly template",
)
async def generate_availability(
    payload: GenerateAvailabilityRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> GenerateAvailabilityRead:
    try:
        created = await availability_service.generate_availability(
            session, tenant_id=tenant_id, request=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return GenerateAvailabilityRead(slots_created=created)


@router.post(
    "/availability/check",
    response_model=AvailabilityCheckRead,
    summary="Check capacity for a date",
)
async def check_availability(
    payload: AvailabilityCheckRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> AvailabilityCheckRead:
    try:
        return await availability_service.check_availability(
            session, tenant_id=tenant_id, request=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)


@router.get(
    "/offerings/{offering_id}/slots",
    response_model=list[AvailabilitySlotRead],
    summary="List slots in a date range",
)
async def list_slots(
    offering_id: UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
    start_date: Annotated[datetime.date, Query()],
    end_date: Annotated[datetime.date, Query()],
) -> list[AvailabilitySlotRead]:
    try:
        slots = await availability_service.list_slots(
            session,
            tenant_id=tenant_id,
            offering_id=offering_id,
            start_date=start_date,
            end_date=end_date,
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return [AvailabilitySlotRead.model_validate(slot) for slot in slots]


@router.post(
    "/availability/bookings",
    response_model=AvailabilitySlotRead,
    summary="Adjust a slot's booked count",
)
async def update_slot_booking(
    payload: SlotBookingUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> AvailabilitySlotRead:
    try:
        slot = await availability_service.update_slot_booking(
            session, tenant_id=tenant_id, payload=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return AvailabilitySlotRead.model_validate(slot)


@router.patch(
    "/availability/slots",
    response_model=AvailabilitySlotRead,
    summary="Open or close a slot",
)
async def set_slot_availability(
    payload: SlotAvailabilityUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> AvailabilitySlotRead:
    try:
        slot = await availability_service.set_slot_availability(
            session, tenant_id=tenant_id, payload=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return AvailabilitySlotRead.model_validate(slot)
