from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from courtbooking.bot.services.api_client import ApiError
from courtbooking.bot.services.booking_flow import BookingFlow, FlowError, Stage
from courtbooking.bot.services.selection import SelectedSlot

TODAY = date(2025, 6, 1)
NOW = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


def _pricing(slots_total: float, services_total: float = 0) -> dict:
    return {
        "ngay_su_dung": TODAY.isoformat(),
        "total_hours": 2,
        "slots": [],
        "services": [],
        "summary": {
            "slots_total": slots_total,
            "services_total": services_total,
            "grand_total": slots_total + services_total,
        },
    }


class FakeApi:
    def __init__(self, flow: BookingFlow | None = None):
        self.flow = flow
        self.availability_calls: list[tuple] = []
        self.selection_seen_on_search: list[int] = []
        self.price_requests: list[dict] = []
        self.created: list[dict] = []
        self.price_error: ApiError | None = None
        self.create_error: ApiError | None = None

    async def check_availability(self, day, start_time=None, end_time=None):
        self.availability_calls.append((day, start_time, end_time))
        if self.flow is not None:
            self.selection_seen_on_search.append(len(self.flow.selection))
        return [
            {"san_id": 1, "ma_san": "S01", "ten_san": "Sân 1", "is_available": True, "bookings": []},
            {
                "san_id": 2,
                "ma_san": "S02",
                "ten_san": "Sân 2",
                "is_available": False,
                "bookings": [{"reason": "Khung giờ đã được đặt"}],
            },
        ]

    async def calculate_price(self, payload):
        self.price_requests.append(payload)
        if self.price_error is not None:
            raise self.price_error
        return _pricing(200000.0, 20000.0 * len(payload["services"]))

    async def create_booking(self, payload, *, token=None):
        if self.create_error is not None:
            raise self.create_error
        self.created.append({"payload": payload, "token": token})
        return {"booking": {"ma_pd": "PD12345678ABCD"}, "slots": [], "services": [], "total": 0}


async def _priced_flow(api: FakeApi, payment_method: str = "cash") -> BookingFlow:
    flow = BookingFlow()
    api.flow = flow
    await flow.search(api, TODAY, "09:00", "11:00", today=TODAY)
    flow.toggle_slot(SelectedSlot(1, "09:00", "11:00"))
    await flow.reprice(api)
    flow.payment_method = payment_method
    flow.contact = {"contact_name": "Khách", "contact_phone": "0900000000"}
    return flow


@pytest.mark.asyncio
async def test_search_rejects_end_before_start():
    api = FakeApi()
    with pytest.raises(FlowError):
        await BookingFlow().search(api, TODAY, "11:00", "11:00", today=TODAY)
    assert api.availability_calls == []


@pytest.mark.asyncio
async def test_search_rejects_past_date():
    api = FakeApi()
    with pytest.raises(FlowError):
        await BookingFlow().search(api, TODAY - timedelta(days=1), "09:00", "11:00", today=TODAY)
    assert api.availability_calls == []


@pytest.mark.asyncio
async def test_new_search_clears_selection_before_request():
    api = FakeApi()
    flow = await _priced_flow(api)
    flow.set_service(5, 2)

    await flow.search(api, TODAY, "15:00", "17:00", today=TODAY)

    assert api.selection_seen_on_search[-1] == 0
    assert len(flow.selection) == 0
    assert flow.services == {}
    assert flow.pricing is None
    assert flow.stage == Stage.draft
    assert [court["san_id"] for court in flow.available_courts()] == [1]


@pytest.mark.asyncio
async def test_selection_change_invalidates_and_reprices():
    api = FakeApi()
    flow = await _priced_flow(api)
    assert flow.stage == Stage.price_confirmed

    flow.change_service(7, 1)
    assert flow.pricing is None
    assert flow.stage == Stage.draft

    await flow.reprice(api)
    assert api.price_requests[-1]["services"] == [{"dich_vu_id": 7, "so_luong": 1}]
    assert flow.grand_total == 220000.0


@pytest.mark.asyncio
async def test_empty_selection_clears_pricing_without_request():
    api = FakeApi()
    flow = await _priced_flow(api)
    requests_before = len(api.price_requests)

    flow.toggle_slot(SelectedSlot(1, "09:00", "11:00"))
    result = await flow.reprice(api)

    assert result is None
    assert flow.pricing is None
    assert len(api.price_requests) == requests_before


@pytest.mark.asyncio
async def test_pricing_validation_errors_become_detail_list():
    api = FakeApi()
    flow = await _priced_flow(api)
    api.price_error = ApiError(400, "Validation error", ["slots.0.end_time: không hợp lệ"])

    flow.toggle_slot(SelectedSlot(1, "10:00", "11:00"))
    with pytest.raises(FlowError):
        await flow.reprice(api)

    assert flow.errors == ["slots.0.end_time: không hợp lệ"]
    assert flow.pricing is None
    assert len(api.price_requests) == 2


@pytest.mark.asyncio
async def test_cash_submission_posts_immediately():
    api = FakeApi()
    flow = await _priced_flow(api)

    ma_pd = await flow.submit(api, token="jwt")

    assert ma_pd == "PD12345678ABCD"
    assert flow.stage == Stage.submitted
    payload = api.created[0]["payload"]
    assert payload["payment_method"] == "cash"
    assert payload["slots"] == [{"san_id": 1, "start_time": "09:00", "end_time": "11:00"}]
    assert payload["contact_snapshot"]["contact_phone"] == "0900000000"
    assert api.created[0]["token"] == "jwt"


@pytest.mark.asyncio
async def test_submit_requires_pricing():
    api = FakeApi()
    flow = await _priced_flow(api)
    flow.set_service(3, 1)

    with pytest.raises(FlowError):
        await flow.submit(api)
    assert api.created == []


@pytest.mark.asyncio
async def test_bank_transfer_waits_for_confirmation():
    api = FakeApi()
    flow = await _priced_flow(api, payment_method="bank_transfer")

    assert await flow.submit(api, now=NOW) is None
    assert api.created == []
    assert flow.stage == Stage.payment_pending
    assert flow.deadline == NOW + timedelta(minutes=15)

    ma_pd = await flow.confirm_payment(api, now=NOW + timedelta(minutes=5))
    assert ma_pd == "PD12345678ABCD"
    assert len(api.created) == 1
    assert flow.pending_payload is None


@pytest.mark.asyncio
async def test_going_back_from_payment_creates_nothing():
    api = FakeApi()
    flow = await _priced_flow(api, payment_method="bank_transfer")
    await flow.submit(api, now=NOW)

    flow.abandon()

    assert api.created == []
    assert flow.pending_payload is None
    assert flow.stage == Stage.price_confirmed
    with pytest.raises(FlowError):
        await flow.confirm_payment(api, now=NOW)
    assert api.created == []


@pytest.mark.asyncio
async def test_payment_hold_expires():
    api = FakeApi()
    flow = await _priced_flow(api, payment_method="bank_transfer")
    await flow.submit(api, now=NOW)

    assert flow.remaining(NOW + timedelta(minutes=10)) == timedelta(minutes=5)
    with pytest.raises(FlowError):
        await flow.confirm_payment(api, now=NOW + timedelta(minutes=15))

    assert flow.stage == Stage.expired
    assert flow.pending_payload is None
    assert api.created == []


@pytest.mark.asyncio
async def test_rendered_total_is_server_grand_total():
    api = FakeApi()
    flow = await _priced_flow(api)
    flow.pricing["summary"] = {"slots_total": 100000.4, "services_total": 0.2, "grand_total": 100000.6}

    assert flow.grand_total == 100000.6


@pytest.mark.asyncio
async def test_server_rejection_is_surfaced():
    api = FakeApi()
    flow = await _priced_flow(api)
    api.create_error = ApiError(409, "Sân 1 không trống trong khung 09:00-11:00")

    with pytest.raises(FlowError) as excinfo:
        await flow.submit(api)

    assert "không trống" in excinfo.value.message
    assert flow.stage == Stage.price_confirmed


@pytest.mark.asyncio
async def test_state_roundtrip():
    api = FakeApi()
    flow = await _priced_flow(api, payment_method="bank_transfer")
    flow.set_service(4, 2)
    await flow.reprice(api)
    await flow.submit(api, now=NOW)

    restored = BookingFlow.from_data(flow.to_data())

    assert restored.stage == Stage.payment_pending
    assert restored.deadline == flow.deadline
    assert restored.services == {4: 2}
    assert restored.selection.slots == flow.selection.slots
    assert restored.pending_payload == flow.pending_payload
