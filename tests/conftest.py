"""Test fixtures for the business configuration service."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from bizconfig.core.config import get_settings
from bizconfig.db.base import Base
from bizconfig.db.session import dispose_engine, get_sessionmaker
from bizconfig.main import app
from bizconfig.models import Offering, OfferingVariant, Tenant


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


async def seed_tenant(
    session,
    *,
    name: str = "Corner Bistro",
    currency: str | None = None,
    base_price: Decimal = Decimal("20.00"),
) -> dict[str, uuid.UUID]:
    """Create a tenant with one offering and two variants."""
    tenant = Tenant(name=name, slug=f"tenant-{uuid.uuid4().hex[:8]}", currency=currency)
    session.add(tenant)
    await session.flush()

    offering = Offering(
        tenant_id=tenant.id,
        name="Margherita Pizza",
        base_price=base_price,
    )
    session.add(offering)
    await session.flush()

    large = OfferingVariant(
        tenant_id=tenant.id,
        offering_id=offering.id,
        name="Large",
        price_modifier=Decimal("5.00"),
    )
    spicy = OfferingVariant(
        tenant_id=tenant.id,
        offering_id=offering.id,
        name="Extra Spicy",
        price_modifier=Decimal("2.00"),
    )
    session.add_all([large, spicy])
    await session.commit()
    return {
        "tenant_id": tenant.id,
        "offering_id": offering.id,
        "large_variant_id": large.id,
        "spicy_variant_id": spicy.id,
    }


@pytest_asyncio.fixture()
async def tenant_context(
    reset_database: AsyncIterator[None], db_url: str
) -> dict[str, uuid.UUID]:
    """Seed a tenant whose offering costs 20.00."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        return await seed_tenant(session)


@pytest_asyncio.fixture()
async def app_context(
    tenant_context: dict[str, uuid.UUID],
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client with tenant headers and seeded ids."""
    context: dict[str, object] = dict(tenant_context)
    context["headers"] = {"X-Tenant-ID": str(tenant_context["tenant_id"])}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context


@pytest.fixture()
def tenant_factory():
    """Return the tenant seeding helper for tests that need a second tenant."""
    return seed_tenant
