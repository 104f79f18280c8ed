from app.db import models


def _court_id(SessionLocal, code="S01"):
    with SessionLocal() as db:
        return db.query(models.Court).filter_by(ma_san=code).one().id


def _create(client, SessionLocal, day, start="08:00", end="10:00", **extra):
    body = {
        "ngay_su_dung": day.isoformat(),
        "slots": [{"san_id": _court_id(SessionLocal), "start_time": start, "end_time": end}],
        "services": [],
        "payment_method": "cash",
        "contact_snapshot": {"contact_name": "Khách", "contact_phone": "0909000111"},
    }
    body.update(extra)
    return client.post("/api/public/bookings", json=body)


def test_create_lookup_and_cancel(api_client, play_day):
    client, SessionLocal = api_client

    created = _create(client, SessionLocal, play_day)
    assert created.status_code == 201
    body = created.json()
    token = body["booking"]["ma_pd"]
    assert body["total"] == 200000
    assert body["booking"]["status"] == "pending"

    lookup = client.get(f"/api/public/bookings/%23{token}")
    assert lookup.status_code == 200
    detail = lookup.json()
    assert detail["booking"]["ma_pd"] == token
    assert detail["totals"]["tong_tien"] == 200000
    assert detail["slots"][0]["start_time"] == "08:00"
    assert lookup.headers["cache-control"] == "no-cache, no-store, must-revalidate"

    canceled = client.put(f"/api/public/bookings/{token}/cancel", json={"reason": "Đổi lịch"})
    assert canceled.status_code == 200
    assert canceled.json()["status"] == "canceled"

    with SessionLocal() as db:
        assert db.query(models.Cancellation).count() == 1
        assert db.query(models.AuditLog).filter_by(action="booking.canceled").count() == 1


def test_double_booking_returns_conflict(api_client, play_day):
    client, SessionLocal = api_client
    assert _create(client, SessionLocal, play_day, "08:00", "10:00").status_code == 201

    response = _create(client, SessionLocal, play_day, "09:00", "10:00")

    assert response.status_code == 409


def test_cancel_confirmed_booking_is_rejected(api_client, play_day):
    client, SessionLocal = api_client
    token = _create(client, SessionLocal, play_day).json()["booking"]["ma_pd"]
    with SessionLocal() as db:
        booking = db.query(models.Booking).filter_by(ma_pd=token).one()
        booking.status = models.BookingStatus.confirmed
        db.commit()

    response = client.put(f"/api/public/bookings/{token}/cancel", json={})

    assert response.status_code == 400
    lookup = client.get(f"/api/public/bookings/{token}")
    assert lookup.json()["booking"]["status"] == "confirmed"


def test_unknown_token_returns_not_found(api_client):
    client, _ = api_client

    assert client.get("/api/public/bookings/PD0000000000ZZ").status_code == 404
    assert client.put("/api/public/bookings/PD0000000000ZZ/cancel", json={}).status_code == 404


def test_anonymous_booking_without_contact_is_rejected(api_client, play_day):
    client, SessionLocal = api_client

    response = _create(client, SessionLocal, play_day, contact_snapshot=None)

    assert response.status_code == 400


def test_booking_for_another_user_is_forbidden(api_client, make_user, auth_header, play_day):
    client, SessionLocal = api_client
    customer = make_user("minh")
    other = make_user("hoa")

    response = _create(
        client, SessionLocal, play_day, user_id=other.id, contact_snapshot=None
    )
    assert response.status_code == 403

    response = client.post(
        "/api/public/bookings",
        headers=auth_header(customer),
        json={
            "user_id": customer.id,
            "ngay_su_dung": play_day.isoformat(),
            "slots": [{"san_id": _court_id(SessionLocal), "start_time": "12:00", "end_time": "13:00"}],
        },
    )
    assert response.status_code == 201
    assert response.json()["booking"]["user_id"] == customer.id
    assert response.json()["total"] == 150000


def test_invalid_phone_is_a_validation_error(api_client, play_day):
    client, SessionLocal = api_client

    response = _create(
        client, SessionLocal, play_day, contact_snapshot={"contact_name": "A", "contact_phone": "abc"}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation error"
    assert body["details"]


def test_public_catalogue_lists(api_client):
    client, _ = api_client

    courts = client.get("/api/public/courts")
    services = client.get("/api/public/services")

    assert [court["ma_san"] for court in courts.json()] == ["S01", "S02"]
    assert {service["loai"] for service in services.json()} == {"rent", "buy"}


def test_lookup_prices_rent_service_by_booked_hours(api_client, play_day):
    client, SessionLocal = api_client
    with SessionLocal() as db:
        rent_id = db.query(models.Service).filter_by(ma_dv="DV01").one().id

    created = _create(
        client, SessionLocal, play_day, services=[{"dich_vu_id": rent_id, "so_luong": 2}]
    )
    assert created.status_code == 201
    token = created.json()["booking"]["ma_pd"]

    detail = client.get(f"/api/public/bookings/{token}").json()

    # 20000 per racket per hour, two rackets, 08:00-10:00
    assert detail["services"][0]["lineTotal"] == 80000
    assert detail["totals"]["tien_dich_vu"] == 80000
    assert detail["totals"]["tong_tien"] == 280000
