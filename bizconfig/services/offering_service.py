"""Read access to offerings owned by the offering management layer."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.core.config import get_settings
from bizconfig.core.errors import OfferingNotFoundError
from bizconfig.models.offering import Offering, OfferingVariant
from bizconfig.models.tenant import Tenant


async def get_offering(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
) -> Offering:
    """Return the offering, failing when it is missing or owned by another tenant."""
    offering = await session.get(Offering, offering_id)
    if offering is None or offering.tenant_id != tenant_id:
        raise OfferingNotFoundError(tenant_id=tenant_id)
    return offering


async def get_offering_variants(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
) -> list[OfferingVariant]:
    """Return active variants of a tenant's offering."""
    result = await session.execute(
        select(OfferingVariant)
        .where(
            OfferingVariant.tenant_id == tenant_id,
            OfferingVariant.offering_id == offering_id,
            OfferingVariant.is_active.is_(True),
        )
        .order_by(OfferingVariant.created_at)
    )
    return list(result.scalars().all())


async def get_tenant_currency(session: AsyncSession, *, tenant_id: uuid.UUID) -> str:
    """Return the tenant's configured currency or the deployment default."""
    tenant = await session.get(Tenant, tenant_id)
    if tenant is not None and tenant.currency:
        return tenant.currency.upper()
    return get_settings().default_currency
