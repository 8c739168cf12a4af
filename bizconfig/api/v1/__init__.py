"""Versioned API router."""

from fastapi import APIRouter

from . import availability, health, pricing

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(pricing.router)
router.include_router(availability.router)

__all__ = ["router"]
