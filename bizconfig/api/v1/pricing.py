"""Pricing rule and price calculation endpoints."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.api import deps
from bizconfig.core.errors import ServiceError
from bizconfig.schemas.pricing import (
    PriceCalculationRead,
    PriceCalculationRequest,
    PricingRuleCreate,
    PricingRuleRead,
    PricingRuleUpdate,
)
from bizconfig.services import pricing_service

router = APIRouter(tags=["pricing"])


@router.post(
    "/offerings/{offering_id}/pricing-rules",
    response_model=PricingRuleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create pricing rule",
)
async def create_pricing_rule(
    offering_id: UUID,
    payload: PricingRuleCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> PricingRuleRead:
    if payload.offering_id != offering_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="offering_id in body does not match the path",
        )
    try:
        rule = await pricing_service.create_pricing_rule(
            session, tenant_id=tenant_id, payload=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return PricingRuleRead.model_validate(rule)


@router.get(
    "/offerings/{offering_id}/pricing-rules",
    response_model=list[PricingRuleRead],
    summary="List active pricing rules in evaluation order",
)
async def list_pricing_rules(
    offering_id: UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> list[PricingRuleRead]:
    try:
        rules = await pricing_service.list_pricing_rules(
            session, tenant_id=tenant_id, offering_id=offering_id
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return [PricingRuleRead.model_validate(rule) for rule in rules]


@router.get(
    "/pricing-rules/{rule_id}",
    response_model=PricingRuleRead,
    summary="Get pricing rule",
)
async def get_pricing_rule(
    rule_id: UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> PricingRuleRead:
    try:
        rule = await pricing_service.get_pricing_rule(
            session, tenant_id=tenant_id, rule_id=rule_id
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return PricingRuleRead.model_validate(rule)


@router.patch(
    "/pricing-rules/{rule_id}",
    response_model=PricingRuleRead,
    summary="Update pricing rule",
)
async def update_pricing_rule(
    rule_id: UUID,
    payload: PricingRuleUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> PricingRuleRead:
    try:
        rule = await pricing_service.update_pricing_rule(
            session, tenant_id=tenant_id, rule_id=rule_id, updates=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return PricingRuleRead.model_validate(rule)


@router.delete(
    "/pricing-rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate pricing rule",
)
async def delete_pricing_rule(
    rule_id: UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> Response:
    try:
        await pricing_service.delete_pricing_rule(
            session, tenant_id=tenant_id, rule_id=rule_id
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/pricing/calculate",
    response_model=PriceCalculationRead,
    summary="Calculate the price of an offering request",
)
async def calculate_price(
    payload: PriceCalculationRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[UUID, Depends(deps.get_tenant_id)],
) -> PriceCalculationRead:
    try:
        calculation = await pricing_service.calculate_price(
            session, tenant_id=tenant_id, request=payload
        )
    except ServiceError as exc:
        deps.raise_http_error(exc)
    return PriceCalculationRead.model_validate(calculation)
