from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Any, Awaitable, Callable, TypedDict

import httpx

from courtbooking.bot.config import get_settings

logger = logging.getLogger(__name__)


class Service(TypedDict, total=False):
    id: int
    ma_dv: str
    ten_dv: str
    loai: str
    don_gia: float


class ConflictEntry(TypedDict, total=False):
    ma_pd: str | None
    start_time: str | None
    end_time: str | None
    trang_thai: str | None
    reason: str


class CourtAvailability(TypedDict, total=False):
    san_id: int
    ma_san: str
    ten_san: str
    suc_chua: int
    is_available: bool
    bookings: list[ConflictEntry]


class PriceSummary(TypedDict):
    slots_total: float
    services_total: float
    grand_total: float


class PriceCalculation(TypedDict, total=False):
    ngay_su_dung: str
    total_hours: int
    slots: list[dict[str, Any]]
    services: list[dict[str, Any]]
    summary: PriceSummary


class Booking(TypedDict, total=False):
    id: int
    ma_pd: str
    ngay_su_dung: str
    status: str
    payment_method: str | None
    is_paid: bool
    tong_tien: float
    contact_snapshot: dict[str, Any] | None
    slots: list[dict[str, Any]]


class BookingCreated(TypedDict, total=False):
    booking: Booking
    slots: list[dict[str, Any]]
    services: list[dict[str, Any]]
    total: float


class BookingDetail(TypedDict, total=False):
    booking: Booking
    slots: list[dict[str, Any]]
    services: list[dict[str, Any]]
    totals: dict[str, float]


class TokenResponse(TypedDict, total=False):
    access_token: str
    token_type: str
    user: dict[str, Any]


NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
RATE_LIMIT_RETRY_DELAYS = (2.0, 4.0)
NETWORK_ERROR_MESSAGE = "Không thể kết nối tới máy chủ. Vui lòng thử lại sau."
SERVER_ERROR_MESSAGE = "Đã xảy ra lỗi, vui lòng thử lại sau."

_settings = get_settings()
_sleep = asyncio.sleep


class ApiError(Exception):
    """Any failed API call, normalised to a status, a message and detail strings."""

    def __init__(self, status: int, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details or []


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=_settings.api_base_url, timeout=10.0)


def _request_path(path: str) -> str:
    """Return a path relative to the configured API base URL."""

    if path.startswith("http://") or path.startswith("https://"):
        return path
    return path.lstrip("/")


def _headers(token: str | None = None, *, public: bool = False) -> dict[str, str]:
    headers: dict[str, str] = {}
    if public:
        headers.update(NO_CACHE_HEADERS)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    message: str | None = None
    details: list[str] = []
    if isinstance(payload, dict):
        raw_details = payload.get("details")
        if isinstance(raw_details, list):
            details = [str(item) for item in raw_details if item]
        detail = payload.get("detail")
        if isinstance(payload.get("message"), str) and payload["message"]:
            message = payload["message"]
        elif isinstance(detail, str) and detail:
            message = detail
        elif isinstance(detail, list):
            details = details or [
                str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail
            ]
        if details and (message is None or message == "Validation error"):
            message = "; ".join(details) if message is None else f"{message}: {'; '.join(details)}"
    return ApiError(response.status_code, message or SERVER_ERROR_MESSAGE, details)


async def _request(
    method: str,
    path: str,
    *,
    token: str | None = None,
    public: bool = False,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    query = {key: value for key, value in (params or {}).items() if value is not None}
    if public and method == "GET":
        query["_t"] = int(time.time() * 1000)
    try:
        async with _client() as client:
            response = await client.request(
                method,
                _request_path(path),
                params=query or None,
                json=json,
                headers=_headers(token, public=public),
            )
    except httpx.HTTPError as exc:
        logger.warning("API request failed", extra={"path": path, "error": str(exc)})
        raise ApiError(0, NETWORK_ERROR_MESSAGE) from exc

    if response.status_code == 401:
        # no automatic logout, the user decides when to log in again
        logger.warning("Unauthorized API response", extra={"path": path})
    if response.is_error:
        raise _error_from_response(response)
    if not response.content:
        return None
    return response.json()


async def _with_rate_limit_retry(call: Callable[[], Awaitable[Any]]) -> Any:
    for delay in (*RATE_LIMIT_RETRY_DELAYS, None):
        try:
            return await call()
        except ApiError as exc:
            if exc.status != 429 or delay is None:
                raise
            logger.info("Rate limited, retrying", extra={"delay": delay})
            await _sleep(delay)


async def check_availability(
    day: date, start_time: str | None = None, end_time: str | None = None
) -> list[CourtAvailability]:
    params = {"date": day.isoformat(), "start_time": start_time, "end_time": end_time}
    return await _request("GET", "/public/availability", public=True, params=params)


async def calculate_price(payload: dict[str, Any]) -> PriceCalculation:
    return await _request(
        "POST", "/public/availability/calculate-price", public=True, json=payload
    )


async def fetch_services() -> list[Service]:
    return await _request("GET", "/public/services", public=True)


async def create_booking(payload: dict[str, Any], *, token: str | None = None) -> BookingCreated:
    return await _request("POST", "/public/bookings", token=token, public=True, json=payload)


async def get_booking(ma_pd: str) -> BookingDetail:
    return await _request("GET", f"/public/bookings/{ma_pd}", public=True)


async def cancel_booking(
    ma_pd: str, *, reason: str | None = None, token: str | None = None
) -> Booking:
    return await _request(
        "PUT", f"/public/bookings/{ma_pd}/cancel", token=token, public=True, json={"reason": reason}
    )


async def login(username: str, password: str) -> TokenResponse:
    return await _request("POST", "/auth/login", json={"username": username, "password": password})


async def register(
    username: str,
    password: str,
    full_name: str,
    *,
    phone: str | None = None,
    email: str | None = None,
) -> TokenResponse:
    payload: dict[str, Any] = {"username": username, "password": password, "full_name": full_name}
    if phone is not None:
        payload["phone"] = phone
    if email is not None:
        payload["email"] = email
    return await _request("POST", "/auth/register", json=payload)


async def fetch_bookings(
    token: str, *, page: int = 1, limit: int = 20, status: str | None = None
) -> list[Booking]:
    params = {"page": page, "limit": limit, "status": status}
    return await _with_rate_limit_retry(
        lambda: _request("GET", "/bookings", token=token, params=params)
    )


async def fetch_my_bookings(token: str, *, page: int = 1, limit: int = 20) -> list[Booking]:
    params = {"page": page, "limit": limit}
    return await _with_rate_limit_retry(
        lambda: _request("GET", "/bookings/mine", token=token, params=params)
    )


__all__ = [
    "ApiError",
    "Service",
    "CourtAvailability",
    "PriceCalculation",
    "Booking",
    "BookingCreated",
    "BookingDetail",
    "TokenResponse",
    "check_availability",
    "calculate_price",
    "fetch_services",
    "create_booking",
    "get_booking",
    "cancel_booking",
    "login",
    "register",
    "fetch_bookings",
    "fetch_my_bookings",
]
