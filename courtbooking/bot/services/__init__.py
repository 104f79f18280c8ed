from .api_client import (
    ApiError,
    calculate_price,
    cancel_booking,
    check_availability,
    create_booking,
    fetch_bookings,
    fetch_my_bookings,
    fetch_services,
    get_booking,
    login,
    register,
)

__all__ = [
    "ApiError",
    "calculate_price",
    "cancel_booking",
    "check_availability",
    "create_booking",
    "fetch_bookings",
    "fetch_my_bookings",
    "fetch_services",
    "get_booking",
    "login",
    "register",
]
