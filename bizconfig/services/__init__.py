"""Service layer exports."""
from bizconfig.services import (
    availability_service,
    offering_service,
    pricing_service,
)

__all__ = [
    "availability_service",
    "offering_service",
    "pricing_service",
]
