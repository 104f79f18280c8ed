from . import (
    audit_service,
    availability_service,
    pricing_service,
    booking_service,
    catalogue_service,
    table_service,
    storage,
)
__all__ = [
    "audit_service",
    "availability_service",
    "pricing_service",
    "booking_service",
    "catalogue_service",
    "table_service",
    "storage",
]
