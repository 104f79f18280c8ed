"""Client-side booking conversation: search, select, price, then submit.

The flow is kept as plain data in the FSM storage between Telegram updates,
so every field round-trips through :meth:`BookingFlow.to_data`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Protocol

from .api_client import ApiError
from .selection import SelectedSlot, SlotSelection, to_minutes

logger = logging.getLogger(__name__)

FLOW_KEY = "booking_flow"

MSG_END_BEFORE_START = "Giờ kết thúc phải sau giờ bắt đầu"
MSG_PAST_DATE = "Không thể đặt sân cho ngày trong quá khứ"
MSG_NO_SLOTS = "Vui lòng chọn ít nhất một khung giờ"
MSG_NOT_PRICED = "Vui lòng chờ tính giá trước khi đặt sân"
MSG_NO_PAYMENT = "Không có thanh toán nào đang chờ"
MSG_PAYMENT_EXPIRED = "Đã hết thời gian giữ chỗ, vui lòng đặt lại"


class Stage(str, Enum):
    draft = "draft"
    price_confirmed = "price_confirmed"
    payment_pending = "payment_pending"
    submitted = "submitted"
    expired = "expired"


class BookingApi(Protocol):
    async def check_availability(
        self, day: date, start_time: str | None = None, end_time: str | None = None
    ) -> list[dict[str, Any]]: ...

    async def calculate_price(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def create_booking(
        self, payload: dict[str, Any], *, token: str | None = None
    ) -> dict[str, Any]: ...


class FlowError(Exception):
    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BookingFlow:
    hold_minutes: int = 15
    stage: Stage = Stage.draft
    day: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    availability: list[dict[str, Any]] = field(default_factory=list)
    selection: SlotSelection = field(default_factory=SlotSelection)
    services: dict[int, int] = field(default_factory=dict)
    pricing: dict[str, Any] | None = None
    payment_method: str = "cash"
    contact: dict[str, str] = field(default_factory=dict)
    note: str | None = None
    errors: list[str] = field(default_factory=list)
    pending_payload: dict[str, Any] | None = None
    deadline: datetime | None = None
    ma_pd: str | None = None

    # search and selection

    async def search(
        self,
        api: BookingApi,
        day: date,
        start_time: str,
        end_time: str,
        *,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        if to_minutes(end_time) <= to_minutes(start_time):
            raise FlowError(MSG_END_BEFORE_START)
        if day < (today or date.today()):
            raise FlowError(MSG_PAST_DATE)
        # results from a previous window must never be submitted against this one
        self.selection.clear()
        self.services.clear()
        self.pricing = None
        self.errors = []
        self.availability = []
        self.stage = Stage.draft
        self.day, self.start_time, self.end_time = day, start_time, end_time
        self.availability = list(await api.check_availability(day, start_time, end_time))
        return self.availability

    def available_courts(self) -> list[dict[str, Any]]:
        return [court for court in self.availability if court.get("is_available")]

    def _invalidate(self) -> None:
        self.pricing = None
        self.errors = []
        if self.stage == Stage.price_confirmed:
            self.stage = Stage.draft

    def toggle_slot(self, slot: SelectedSlot) -> bool:
        selected = self.selection.toggle(slot)
        self._invalidate()
        return selected

    def set_service(self, dich_vu_id: int, so_luong: int) -> None:
        if so_luong <= 0:
            self.services.pop(dich_vu_id, None)
        else:
            self.services[dich_vu_id] = so_luong
        self._invalidate()

    def change_service(self, dich_vu_id: int, delta: int) -> int:
        quantity = max(self.services.get(dich_vu_id, 0) + delta, 0)
        self.set_service(dich_vu_id, quantity)
        return quantity

    # pricing

    def price_request(self) -> dict[str, Any]:
        return {
            "ngay_su_dung": self.day.isoformat() if self.day else None,
            "slots": self.selection.to_payload(),
            "services": [
                {"dich_vu_id": dich_vu_id, "so_luong": so_luong}
                for dich_vu_id, so_luong in sorted(self.services.items())
            ],
        }

    async def reprice(self, api: BookingApi) -> dict[str, Any] | None:
        if not len(self.selection):
            self.pricing = None
            self.stage = Stage.draft
            return None
        try:
            pricing = await api.calculate_price(self.price_request())
        except ApiError as exc:
            self.pricing = None
            self.stage = Stage.draft
            self.errors = exc.details or [exc.message]
            raise FlowError(exc.message, self.errors) from exc
        self.pricing = pricing
        self.errors = []
        self.stage = Stage.price_confirmed
        return pricing

    @property
    def grand_total(self) -> float | None:
        if not self.pricing:
            return None
        return self.pricing["summary"]["grand_total"]

    # submission

    def booking_payload(self, user_id: int | None = None) -> dict[str, Any]:
        payload = self.price_request()
        payload["payment_method"] = self.payment_method
        if self.contact:
            payload["contact_snapshot"] = dict(self.contact)
        if self.note:
            payload["note"] = self.note
        if user_id is not None:
            payload["user_id"] = user_id
        return payload

    async def submit(
        self,
        api: BookingApi,
        *,
        defer: bool | None = None,
        token: str | None = None,
        user_id: int | None = None,
        now: datetime | None = None,
    ) -> str | None:
        """Post the booking now, or hold it until the transfer is confirmed.

        Returns the booking token when a booking was created, ``None`` when
        the payload is held for a deferred payment.
        """
        if not len(self.selection):
            raise FlowError(MSG_NO_SLOTS)
        if self.stage != Stage.price_confirmed or self.pricing is None:
            raise FlowError(MSG_NOT_PRICED)
        if defer is None:
            defer = self.payment_method == "bank_transfer"
        payload = self.booking_payload(user_id)
        if defer:
            self.pending_payload = payload
            self.deadline = (now or _utcnow()) + timedelta(minutes=self.hold_minutes)
            self.stage = Stage.payment_pending
            logger.info("Booking held for payment", extra={"deadline": self.deadline.isoformat()})
            return None
        return await self._post(api, payload, token)

    async def confirm_payment(
        self, api: BookingApi, *, token: str | None = None, now: datetime | None = None
    ) -> str:
        if self.stage != Stage.payment_pending or self.pending_payload is None:
            raise FlowError(MSG_NO_PAYMENT)
        if self.check_expiry(now):
            raise FlowError(MSG_PAYMENT_EXPIRED)
        return await self._post(api, self.pending_payload, token)

    async def _post(self, api: BookingApi, payload: dict[str, Any], token: str | None) -> str:
        try:
            created = await api.create_booking(payload, token=token)
        except ApiError as exc:
            self.errors = exc.details or [exc.message]
            raise FlowError(exc.message, self.errors) from exc
        self.ma_pd = created["booking"]["ma_pd"]
        self.pending_payload = None
        self.deadline = None
        self.stage = Stage.submitted
        logger.info("Booking submitted", extra={"ma_pd": self.ma_pd})
        return self.ma_pd

    def abandon(self) -> None:
        """Leave the payment view without creating anything."""
        self.pending_payload = None
        self.deadline = None
        self.stage = Stage.price_confirmed if self.pricing else Stage.draft

    def remaining(self, now: datetime | None = None) -> timedelta:
        if self.deadline is None:
            return timedelta(0)
        return max(self.deadline - (now or _utcnow()), timedelta(0))

    def check_expiry(self, now: datetime | None = None) -> bool:
        if self.stage != Stage.payment_pending or self.deadline is None:
            return self.stage == Stage.expired
        if (now or _utcnow()) < self.deadline:
            return False
        self.pending_payload = None
        self.deadline = None
        self.stage = Stage.expired
        logger.info("Payment hold expired")
        return True

    # storage

    def to_data(self) -> dict[str, Any]:
        return {
            "hold_minutes": self.hold_minutes,
            "stage": self.stage.value,
            "day": self.day.isoformat() if self.day else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "availability": self.availability,
            "selection": self.selection.to_payload(),
            "services": {str(key): value for key, value in self.services.items()},
            "pricing": self.pricing,
            "payment_method": self.payment_method,
            "contact": dict(self.contact),
            "note": self.note,
            "errors": list(self.errors),
            "pending_payload": self.pending_payload,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "ma_pd": self.ma_pd,
        }

    @classmethod
    def from_data(cls, data: Mapping[str, Any] | None, hold_minutes: int = 15) -> "BookingFlow":
        if not data:
            return cls(hold_minutes=hold_minutes)
        return cls(
            hold_minutes=data.get("hold_minutes", hold_minutes),
            stage=Stage(data.get("stage", Stage.draft.value)),
            day=date.fromisoformat(data["day"]) if data.get("day") else None,
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            availability=list(data.get("availability") or []),
            selection=SlotSelection.from_payload(data.get("selection")),
            services={int(key): int(value) for key, value in (data.get("services") or {}).items()},
            pricing=data.get("pricing"),
            payment_method=data.get("payment_method") or "cash",
            contact=dict(data.get("contact") or {}),
            note=data.get("note"),
            errors=list(data.get("errors") or []),
            pending_payload=data.get("pending_payload"),
            deadline=datetime.fromisoformat(data["deadline"]) if data.get("deadline") else None,
            ma_pd=data.get("ma_pd"),
        )
