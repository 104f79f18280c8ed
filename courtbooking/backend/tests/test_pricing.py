from decimal import Decimal

import pytest

from app.db import models, schemas
from app.services import pricing_service


def _request(day, slots, services=()):
    return schemas.PriceCalculationRequest(
        ngay_su_dung=day,
        slots=[schemas.SlotRequest(**slot) for slot in slots],
        services=[schemas.ServiceRequest(**service) for service in services],
    )


def test_slot_price_spans_two_shifts():
    shifts = [
        models.Shift(start_at="06:00", end_at="12:00", gia_theo_gio=100000),
        models.Shift(start_at="12:00", end_at="22:00", gia_theo_gio=150000),
    ]
    assert pricing_service.slot_price(shifts, "11:00", "13:00") == Decimal(250000)


def test_slot_price_rounds_to_whole_amount():
    shifts = [models.Shift(start_at="06:30", end_at="12:00", gia_theo_gio=100001)]
    # 30 minutes at 100001/h
    assert pricing_service.slot_price(shifts, "06:00", "07:00") == Decimal(50001)


def test_rent_service_scales_with_hours_and_buy_does_not(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    payload = _request(
        play_day,
        [
            {"san_id": court.id, "start_time": "08:00", "end_time": "10:00"},
            {"san_id": court.id, "start_time": "14:00", "end_time": "15:00"},
        ],
        [
            {"dich_vu_id": catalogue["rent"].id, "so_luong": 2},
            {"dich_vu_id": catalogue["buy"].id, "so_luong": 3},
        ],
    )

    breakdown = pricing_service.calculate(db_session, payload)

    assert breakdown.total_hours == 3
    assert [slot.price for slot in breakdown.slots] == [Decimal(200000), Decimal(150000)]
    rent, buy = breakdown.services
    assert rent.price == Decimal(20000) * 2 * 3
    assert rent.total_hours == 3
    assert buy.price == Decimal(30000)
    assert buy.total_hours == 1
    assert breakdown.grand_total == breakdown.slots_total + breakdown.services_total
    assert breakdown.grand_total == Decimal(350000 + 120000 + 30000)


def test_service_quantity_defaults_to_one():
    assert schemas.ServiceRequest(dich_vu_id=1).so_luong == 1


def test_booked_slot_is_rejected_with_conflict(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking = models.Booking(ma_pd="PD1234567800AB", ngay_su_dung=play_day, status=models.BookingStatus.confirmed)
    booking.slots.append(models.BookingSlot(san_id=court.id, start_time="08:00", end_time="09:00", don_gia=0))
    db_session.add(booking)
    db_session.commit()

    with pytest.raises(pricing_service.PricingError) as exc_info:
        pricing_service.calculate(
            db_session, _request(play_day, [{"san_id": court.id, "start_time": "08:00", "end_time": "10:00"}])
        )

    assert exc_info.value.status_code == 409


def test_slot_without_shift_is_rejected(db_session, catalogue, play_day):
    court = catalogue["courts"][0]

    with pytest.raises(pricing_service.PricingError) as exc_info:
        pricing_service.calculate(
            db_session, _request(play_day, [{"san_id": court.id, "start_time": "22:00", "end_time": "23:00"}])
        )

    assert exc_info.value.status_code == 400
    assert "Không có ca làm việc" in str(exc_info.value)


def test_calculate_price_endpoint(api_client, play_day):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        court_id = db.query(models.Court).filter_by(ma_san="S02").one().id
        buy_id = db.query(models.Service).filter_by(ma_dv="DV02").one().id

    response = client.post(
        "/api/public/availability/calculate-price",
        json={
            "ngay_su_dung": play_day.isoformat(),
            "slots": [{"san_id": court_id, "start_time": "17:00", "end_time": "19:00"}],
            "services": [{"dich_vu_id": buy_id}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_hours"] == 2
    assert body["slots"][0]["price"] == 300000
    assert body["services"][0]["price"] == 10000
    assert body["summary"] == {"slots_total": 300000, "services_total": 10000, "grand_total": 310000}


def test_calculate_price_endpoint_unknown_service(api_client, play_day):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        court_id = db.query(models.Court).filter_by(ma_san="S01").one().id

    response = client.post(
        "/api/public/availability/calculate-price",
        json={
            "ngay_su_dung": play_day.isoformat(),
            "slots": [{"san_id": court_id, "start_time": "08:00", "end_time": "09:00"}],
            "services": [{"dich_vu_id": 999}],
        },
    )

    assert response.status_code == 404


def test_calculate_price_requires_a_slot(api_client, play_day):
    client, _ = api_client

    response = client.post(
        "/api/public/availability/calculate-price",
        json={"ngay_su_dung": play_day.isoformat(), "slots": []},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_end_before_start_is_a_validation_error(api_client, play_day):
    client, _ = api_client

    response = client.post(
        "/api/public/availability/calculate-price",
        json={
            "ngay_su_dung": play_day.isoformat(),
            "slots": [{"san_id": 1, "start_time": "10:00", "end_time": "09:00"}],
        },
    )

    assert response.status_code == 400
    assert any("Thời gian kết thúc phải lớn hơn" in detail for detail in response.json()["details"])


def test_overlapping_slots_on_one_court_are_not_priced(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    payload = _request(
        play_day,
        [
            {"san_id": court.id, "start_time": "08:00", "end_time": "10:00"},
            {"san_id": court.id, "start_time": "09:00", "end_time": "11:00"},
        ],
    )

    with pytest.raises(pricing_service.PricingError) as exc_info:
        pricing_service.calculate(db_session, payload)

    assert exc_info.value.status_code == 400
    assert "bị trùng nhau" in str(exc_info.value)


def test_calculate_price_endpoint_rejects_overlapping_slots(api_client, play_day):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        court_id = db.query(models.Court).filter_by(ma_san="S01").one().id

    response = client.post(
        "/api/public/availability/calculate-price",
        json={
            "ngay_su_dung": play_day.isoformat(),
            "slots": [
                {"san_id": court_id, "start_time": "08:00", "end_time": "10:00"},
                {"san_id": court_id, "start_time": "09:00", "end_time": "11:00"},
            ],
        },
    )

    assert response.status_code == 400
    assert "bị trùng nhau" in response.json()["detail"]
