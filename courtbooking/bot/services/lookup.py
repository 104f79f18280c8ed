from __future__ import annotations

from typing import Any, Mapping

from . import api_client
from .api_client import ApiError

MSG_TOKEN_NOT_FOUND = "Không tìm thấy mã đặt sân"
CANCELLABLE_STATUSES = frozenset({"pending"})


class BookingLookupError(Exception):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


def normalize_token(raw: str | None) -> str:
    value = (raw or "").strip()
    if value.startswith("#"):
        value = value[1:].strip()
    return value


def can_cancel(detail: Mapping[str, Any]) -> bool:
    booking = detail.get("booking", detail)
    return booking.get("status") in CANCELLABLE_STATUSES


def _lookup_error(exc: ApiError) -> BookingLookupError:
    if exc.status == 404:
        return BookingLookupError(MSG_TOKEN_NOT_FOUND, status=404)
    return BookingLookupError(exc.message, status=exc.status)


async def find_booking(raw_token: str | None, api=api_client) -> dict[str, Any]:
    token = normalize_token(raw_token)
    if not token:
        raise BookingLookupError(MSG_TOKEN_NOT_FOUND, status=404)
    try:
        return await api.get_booking(token)
    except ApiError as exc:
        raise _lookup_error(exc) from exc


async def cancel(
    raw_token: str | None,
    *,
    reason: str | None = None,
    auth_token: str | None = None,
    api=api_client,
) -> dict[str, Any]:
    token = normalize_token(raw_token)
    if not token:
        raise BookingLookupError(MSG_TOKEN_NOT_FOUND, status=404)
    try:
        return await api.cancel_booking(token, reason=reason, token=auth_token)
    except ApiError as exc:
        raise _lookup_error(exc) from exc
