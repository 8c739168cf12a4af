"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated, NoReturn

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.core.errors import (
    AvailabilitySlotNotFoundError,
    AvailabilityValidationError,
    InvalidBookingCountError,
    OfferingNotFoundError,
    PricingRuleNotFoundError,
    PricingRuleValidationError,
    ServiceError,
)
from bizconfig.db.session import get_session

_ERROR_STATUS: dict[type[ServiceError], int] = {
    OfferingNotFoundError: status.HTTP_404_NOT_FOUND,
    PricingRuleNotFoundError: status.HTTP_404_NOT_FOUND,
    AvailabilitySlotNotFoundError: status.HTTP_404_NOT_FOUND,
    PricingRuleValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AvailabilityValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidBookingCountError: status.HTTP_409_CONFLICT,
}


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_tenant_id(
    x_tenant_id: Annotated[str, Header(alias="X-Tenant-ID")],
) -> uuid.UUID:
    """Resolve the calling tenant from the ``X-Tenant-ID`` header."""
    try:
        return uuid.UUID(x_tenant_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID must be a UUID",
        ) from exc


def raise_http_error(exc: ServiceError) -> NoReturn:
    """Translate a service error into the matching HTTP response."""
    status_code = _ERROR_STATUS.get(
        type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    raise HTTPException(status_code=status_code, detail=exc.to_dict()) from exc
