"""Tenant model representing a business using the platform."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizconfig.db.base import Base
from bizconfig.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from bizconfig.models.offering import Offering


class Tenant(TimestampMixin, Base):
    """A tenant business (restaurant, clinic, salon, shop)."""

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    currency: Mapped[str | None] = mapped_column(String(3))

    offerings: Mapped[list["Offering"]] = relationship(
        "Offering", back_populates="tenant", cascade="all, delete-orphan"
    )
