"""Court availability: shift coverage, booking conflicts and the hourly grid."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.constants import (
    DEFAULT_CLOSE_HOUR,
    DEFAULT_OPEN_HOUR,
    MSG_ALREADY_BOOKED,
    MSG_NO_SHIFT,
    MSG_NOT_COVERED,
)
from ..db import models

logger = logging.getLogger(__name__)


class AvailabilityError(Exception):
    pass


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday, the numbering used by time frames."""
    return (day.weekday() + 1) % 7


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return not (end_b <= start_a or start_b >= end_a)


def shifts_for_day(
    db: Session,
    day: date,
    start_time: str | None = None,
    end_time: str | None = None,
) -> list[models.Shift]:
    """Active shifts of active frames on the weekday of ``day``.

    When a range is given only the shifts overlapping it are returned.
    """
    query = (
        select(models.Shift)
        .join(models.TimeFrame, models.Shift.khung_gio_id == models.TimeFrame.id)
        .where(
            models.TimeFrame.ngay_ap_dung == weekday_index(day),
            models.TimeFrame.is_active.is_(True),
            models.Shift.is_active.is_(True),
        )
        .order_by(models.Shift.start_at)
    )
    if start_time and end_time:
        query = query.where(models.Shift.start_at < end_time, models.Shift.end_at > start_time)
    return list(db.execute(query).scalars())


def covered_minutes(shifts: Iterable[models.Shift], start_time: str, end_time: str) -> int:
    start, end = to_minutes(start_time), to_minutes(end_time)
    total = 0
    for shift in shifts:
        overlap_start = max(start, to_minutes(shift.start_at))
        overlap_end = min(end, to_minutes(shift.end_at))
        if overlap_start < overlap_end:
            total += overlap_end - overlap_start
    return total


def shift_coverage_problem(shifts: Sequence[models.Shift], start_time: str, end_time: str) -> str | None:
    """Return the reason the range cannot be booked, or ``None`` when it is fully covered."""
    if not shifts:
        return MSG_NO_SHIFT
    if covered_minutes(shifts, start_time, end_time) < to_minutes(end_time) - to_minutes(start_time):
        return MSG_NOT_COVERED
    return None


def find_conflicts(
    db: Session,
    san_id: int,
    day: date,
    start_time: str | None = None,
    end_time: str | None = None,
    exclude_booking_id: int | None = None,
) -> list[tuple[models.BookingSlot, models.Booking]]:
    """Active booking slots on the court and day, optionally limited to a range."""
    query = (
        select(models.BookingSlot, models.Booking)
        .join(models.Booking, models.BookingSlot.phieu_dat_id == models.Booking.id)
        .where(
            models.BookingSlot.san_id == san_id,
            models.Booking.ngay_su_dung == day,
            models.Booking.status.in_(models.ACTIVE_STATUSES),
        )
        .order_by(models.BookingSlot.start_time)
    )
    if start_time and end_time:
        query = query.where(
            models.BookingSlot.end_time > start_time,
            models.BookingSlot.start_time < end_time,
        )
    if exclude_booking_id is not None:
        query = query.where(models.Booking.id != exclude_booking_id)
    return [(slot, booking) for slot, booking in db.execute(query).all()]


def _conflict_entry(slot: models.BookingSlot, booking: models.Booking, reason: str | None = None) -> dict:
    entry = {
        "ma_pd": booking.ma_pd,
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "trang_thai": booking.status.value,
        "reason": reason or MSG_ALREADY_BOOKED,
    }
    return entry


def check_availability(
    db: Session,
    day: date,
    start_time: str | None = None,
    end_time: str | None = None,
) -> list[dict]:
    if start_time and end_time and to_minutes(end_time) <= to_minutes(start_time):
        raise AvailabilityError("Thời gian kết thúc phải lớn hơn thời gian bắt đầu")

    courts = (
        db.execute(
            select(models.Court).where(models.Court.trang_thai.is_(True)).order_by(models.Court.id)
        )
        .scalars()
        .all()
    )
    ranged = bool(start_time and end_time)
    shifts = shifts_for_day(db, day, start_time, end_time) if ranged else []
    coverage_problem = shift_coverage_problem(shifts, start_time, end_time) if ranged else None

    result = []
    for court in courts:
        if coverage_problem:
            is_available = False
            entries = [{"reason": coverage_problem}]
        else:
            conflicts = find_conflicts(db, court.id, day, start_time, end_time)
            is_available = not conflicts
            entries = [_conflict_entry(slot, booking) for slot, booking in conflicts]
        result.append(
            {
                "san_id": court.id,
                "ma_san": court.ma_san,
                "ten_san": court.ten_san,
                "suc_chua": court.suc_chua,
                "is_available": is_available,
                "bookings": entries,
            }
        )
    logger.debug(
        "Availability checked",
        extra={"date": day.isoformat(), "start": start_time, "end": end_time, "courts": len(result)},
    )
    return result


def operating_hours(shifts: Sequence[models.Shift]) -> tuple[int, int]:
    """Hour range of the grid; a last shift ending on the hour adds that hour too."""
    if not shifts:
        return DEFAULT_OPEN_HOUR, DEFAULT_CLOSE_HOUR
    min_start = min(to_minutes(shift.start_at) for shift in shifts)
    max_end = max(to_minutes(shift.end_at) for shift in shifts)
    open_hour = max(0, min_start // 60)
    if max_end % 60 == 0:
        close_hour = min(24, max_end // 60 + 1)
    else:
        close_hour = min(24, -(-max_end // 60))
    return open_hour, close_hour


def court_day_slots(db: Session, court: models.Court, day: date) -> dict:
    booked = find_conflicts(db, court.id, day)
    open_hour, close_hour = operating_hours(shifts_for_day(db, day))

    slots = []
    for hour in range(open_hour, close_hour):
        start, end = hour * 60, (hour + 1) * 60
        is_booked = any(
            ranges_overlap(to_minutes(slot.start_time), to_minutes(slot.end_time), start, end)
            for slot, _ in booked
        )
        slots.append(
            {
                "start_time": from_minutes(start),
                "end_time": from_minutes(end),
                "is_available": not is_booked,
            }
        )
    return {
        "san_id": court.id,
        "ma_san": court.ma_san,
        "ten_san": court.ten_san,
        "date": day,
        "slots": slots,
        "booked_slots": [_conflict_entry(slot, booking) for slot, booking in booked],
    }
