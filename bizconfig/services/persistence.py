"""Helpers that turn storage failures into service error codes."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bizconfig.core.errors import ServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def persistence_guard(
    session: AsyncSession,
    failure: type[ServiceError],
    *,
    tenant_id: uuid.UUID,
    action: str,
) -> AsyncIterator[None]:
    """Roll back and re-raise database errors as ``failure``.

    Service errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("%s failed for tenant %s", action, tenant_id)
        raise failure(tenant_id=tenant_id) from exc


__all__ = ["persistence_guard"]
