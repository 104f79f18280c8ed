import re
from datetime import date, timedelta

import pytest

from app.db import models, schemas
from app.services import booking_service


def _payload(day, court_id, start="08:00", end="10:00", **extra):
    extra.setdefault("contact_snapshot", {"contact_name": "Nguyễn Văn A", "contact_phone": "0901234567"})
    return schemas.BookingCreate(
        ngay_su_dung=day,
        slots=[{"san_id": court_id, "start_time": start, "end_time": end}],
        payment_method="cash",
        **extra,
    )


def test_create_booking_stores_totals_and_token(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    payload = _payload(play_day, court.id, services=[{"dich_vu_id": catalogue["rent"].id, "so_luong": 1}])

    booking, breakdown = booking_service.create_booking(db_session, payload)

    assert re.fullmatch(r"PD\d{8}[A-Z0-9]{4}", booking.ma_pd)
    assert booking.status == models.BookingStatus.pending
    assert booking.is_paid is False
    assert float(booking.tien_san) == 200000
    assert float(booking.tien_dich_vu) == 40000
    assert float(booking.tong_tien) == float(breakdown.grand_total) == 240000
    assert booking.contact_snapshot["contact_phone"] == "0901234567"
    assert [(slot.start_time, slot.end_time) for slot in booking.slots] == [("08:00", "10:00")]
    assert db_session.query(models.AuditLog).filter_by(action="booking.create").count() == 1


def test_double_booking_is_rejected(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking_service.create_booking(db_session, _payload(play_day, court.id, "08:00", "10:00"))

    with pytest.raises(booking_service.BookingError) as exc_info:
        booking_service.create_booking(db_session, _payload(play_day, court.id, "09:00", "11:00"))

    assert exc_info.value.status_code == 409
    assert db_session.query(models.Booking).count() == 1


def test_same_range_on_another_court_is_allowed(db_session, catalogue, play_day):
    first, second = catalogue["courts"]
    booking_service.create_booking(db_session, _payload(play_day, first.id))
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, second.id))

    assert booking.slots[0].san_id == second.id


def test_past_date_is_rejected(db_session, catalogue):
    court = catalogue["courts"][0]

    with pytest.raises(booking_service.BookingError) as exc_info:
        booking_service.create_booking(db_session, _payload(date.today() - timedelta(days=2), court.id))

    assert exc_info.value.status_code == 400


def test_overlapping_slots_in_one_request_are_rejected(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    payload = schemas.BookingCreate(
        ngay_su_dung=play_day,
        slots=[
            {"san_id": court.id, "start_time": "08:00", "end_time": "10:00"},
            {"san_id": court.id, "start_time": "09:00", "end_time": "11:00"},
        ],
        contact_snapshot={"contact_name": "A", "contact_phone": "0901234567"},
    )

    with pytest.raises(booking_service.BookingError) as exc_info:
        booking_service.create_booking(db_session, payload)

    assert exc_info.value.status_code == 400


def test_anonymous_booking_needs_contact(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    payload = _payload(play_day, court.id, contact_snapshot=None)

    with pytest.raises(booking_service.BookingError):
        booking_service.create_booking(db_session, payload)


def test_customer_contact_is_copied_into_snapshot(db_session, catalogue, make_user, play_day):
    customer = make_user("lan", phone="0911111111")
    contact = models.Contact(user_id=customer.id, full_name="Trần Thị Lan", phone="0922222222")
    db_session.add(contact)
    db_session.commit()

    booking, _ = booking_service.create_booking(
        db_session,
        _payload(play_day, catalogue["courts"][0].id, contact_snapshot=None, contact_id=contact.id),
        customer=customer,
    )

    assert booking.user_id == customer.id
    assert booking.contact_snapshot == {"contact_name": "Trần Thị Lan", "contact_phone": "0922222222"}


def test_cancel_only_from_pending(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, court.id))

    booking_service.cancel_booking(db_session, booking, reason="Bận việc")

    assert booking.status == models.BookingStatus.canceled
    cancellation = db_session.query(models.Cancellation).one()
    assert cancellation.ly_do == "Bận việc"
    assert cancellation.nguoi_thuc_hien == "guest"
    with pytest.raises(booking_service.BookingError):
        booking_service.cancel_booking(db_session, booking)


def test_confirmed_booking_cannot_be_canceled(db_session, catalogue, make_user, play_day):
    staff = make_user("staff", models.UserRole.staff)
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, catalogue["courts"][0].id))
    booking_service.confirm_booking(db_session, booking, actor=staff)

    with pytest.raises(booking_service.BookingError):
        booking_service.cancel_booking(db_session, booking, actor=staff)

    assert booking.status == models.BookingStatus.confirmed


def test_transitions_only_move_forward(db_session, catalogue, make_user, play_day):
    staff = make_user("staff", models.UserRole.staff)
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, catalogue["courts"][0].id))
    booking_service.change_status(db_session, booking, models.BookingStatus.confirmed, actor=staff)
    booking_service.change_status(db_session, booking, models.BookingStatus.received, actor=staff)

    for target in models.BookingStatus:
        if target == models.BookingStatus.received:
            continue
        with pytest.raises(booking_service.BookingError):
            booking_service.change_status(db_session, booking, target, actor=staff)


def test_canceled_slot_can_be_booked_again(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, court.id))
    booking_service.cancel_booking(db_session, booking)

    again, _ = booking_service.create_booking(db_session, _payload(play_day, court.id))

    assert again.ma_pd != booking.ma_pd


def test_token_lookup_tolerates_hash_and_whitespace(db_session, catalogue, play_day):
    booking, _ = booking_service.create_booking(db_session, _payload(play_day, catalogue["courts"][0].id))

    found = booking_service.get_by_token(db_session, f"  #{booking.ma_pd} ")

    assert found.id == booking.id
    with pytest.raises(booking_service.BookingError) as exc_info:
        booking_service.get_by_token(db_session, "PD00000000XXXX")
    assert exc_info.value.status_code == 404


def test_booking_detail_recomputes_missing_totals(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking = models.Booking(ma_pd="PD1111111100AA", ngay_su_dung=play_day, tien_san=0, tien_dich_vu=0, tong_tien=0)
    booking.slots.append(models.BookingSlot(san_id=court.id, start_time="08:00", end_time="09:00", don_gia=100000))
    booking.services.append(models.BookingServiceLine(dich_vu_id=catalogue["buy"].id, so_luong=2, don_gia=10000))
    db_session.add(booking)
    db_session.commit()

    detail = booking_service.booking_detail(booking_service.get_by_token(db_session, "PD1111111100AA"))

    assert detail["totals"] == {"tien_san": 100000, "tien_dich_vu": 20000, "tong_tien": 120000}
    assert detail["services"][0]["lineTotal"] == 20000
    assert detail["services"][0]["dv"]["ten_dv"] == "Nước suối"


def test_expire_overdue_moves_past_pending_bookings(db_session, catalogue):
    court = catalogue["courts"][0]
    yesterday = date.today() - timedelta(days=3)
    stale = models.Booking(ma_pd="PD2222222200AA", ngay_su_dung=yesterday, status=models.BookingStatus.pending)
    stale.slots.append(models.BookingSlot(san_id=court.id, start_time="08:00", end_time="09:00", don_gia=0))
    kept = models.Booking(ma_pd="PD3333333300AA", ngay_su_dung=yesterday, status=models.BookingStatus.confirmed)
    db_session.add_all([stale, kept])
    db_session.commit()

    assert booking_service.expire_overdue(db_session) == 1
    assert stale.status == models.BookingStatus.expired
    assert kept.status == models.BookingStatus.confirmed


def test_booking_detail_scales_rent_lines_by_hours(db_session, catalogue, play_day):
    court = catalogue["courts"][0]
    booking = models.Booking(ma_pd="PD2222222200BB", ngay_su_dung=play_day, tien_san=0, tien_dich_vu=0, tong_tien=0)
    booking.slots.append(models.BookingSlot(san_id=court.id, start_time="08:00", end_time="10:00", don_gia=200000))
    booking.slots.append(models.BookingSlot(san_id=court.id, start_time="14:00", end_time="15:00", don_gia=150000))
    booking.services.append(models.BookingServiceLine(dich_vu_id=catalogue["rent"].id, so_luong=2, don_gia=20000))
    booking.services.append(models.BookingServiceLine(dich_vu_id=catalogue["buy"].id, so_luong=1, don_gia=10000))
    db_session.add(booking)
    db_session.commit()

    detail = booking_service.booking_detail(booking_service.get_by_token(db_session, "PD2222222200BB"))

    rent, buy = sorted(detail["services"], key=lambda line: line["dv"]["ma_dv"])
    assert rent["lineTotal"] == 20000 * 2 * 3
    assert buy["lineTotal"] == 10000
    assert detail["totals"] == {"tien_san": 350000, "tien_dich_vu": 130000, "tong_tien": 480000}
