"""Court booking lifecycle: creation, lookup, confirmation and cancellation."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..core import security
from ..core.constants import BOOKING_TOKEN_PREFIX, MSG_BOOKING_NOT_FOUND
from ..db import models, schemas
from ..db.models.booking import BookingStatus
from . import audit_service, pricing_service

logger = logging.getLogger(__name__)


class BookingError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def local_today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def _new_token(db: Session) -> str:
    while True:
        token = security.generate_public_token(BOOKING_TOKEN_PREFIX)
        exists = db.scalar(select(models.Booking.id).where(models.Booking.ma_pd == token))
        if exists is None:
            return token


def _contact_snapshot(
    db: Session, payload: schemas.BookingCreate, customer: models.User | None
) -> dict | None:
    snapshot = payload.contact_snapshot.model_dump(exclude_none=True) if payload.contact_snapshot else {}
    if payload.contact_id is not None:
        contact = db.get(models.Contact, payload.contact_id)
        if contact is None or customer is None or contact.user_id != customer.id:
            raise BookingError("Không tìm thấy liên hệ", status_code=404)
        snapshot = {
            "contact_name": contact.full_name,
            "contact_phone": contact.phone,
            "contact_email": contact.email,
            **snapshot,
        }
    elif customer is not None and not snapshot:
        snapshot = {
            "contact_name": customer.full_name or customer.username,
            "contact_phone": customer.phone,
            "contact_email": customer.email,
        }
    if customer is None and not (snapshot.get("contact_name") and snapshot.get("contact_phone")):
        raise BookingError("Vui lòng cung cấp họ tên và số điện thoại liên hệ")
    return {key: value for key, value in snapshot.items() if value is not None} or None


def create_booking(
    db: Session,
    payload: schemas.BookingCreate,
    customer: models.User | None = None,
    created_by: models.User | None = None,
) -> tuple[models.Booking, pricing_service.PriceBreakdown]:
    if payload.ngay_su_dung < local_today():
        raise BookingError("Không thể đặt sân cho ngày trong quá khứ")
    try:
        pricing_service.check_overlapping_slots(payload.slots)
    except pricing_service.PricingError as exc:
        raise BookingError(str(exc), status_code=exc.status_code) from exc
    snapshot = _contact_snapshot(db, payload, customer)

    court_ids = sorted({slot.san_id for slot in payload.slots})
    try:
        locked = (
            db.execute(
                select(models.Court).where(models.Court.id.in_(court_ids)).with_for_update()
            )
            .scalars()
            .all()
        )
        if len(locked) != len(court_ids):
            missing = set(court_ids) - {court.id for court in locked}
            raise BookingError(f"Không tìm thấy sân {min(missing)}", status_code=404)
        try:
            breakdown = pricing_service.calculate(db, payload)
        except pricing_service.PricingError as exc:
            raise BookingError(str(exc), status_code=exc.status_code) from exc

        booking = models.Booking(
            ma_pd=_new_token(db),
            user_id=customer.id if customer else None,
            created_by=created_by.id if created_by else None,
            ngay_su_dung=payload.ngay_su_dung,
            status=BookingStatus.pending,
            payment_method=payload.payment_method,
            is_paid=False,
            note=payload.note,
            contact_snapshot=snapshot,
            tien_san=breakdown.slots_total,
            tien_dich_vu=breakdown.services_total,
            tong_tien=breakdown.grand_total,
        )
        for slot in breakdown.slots:
            booking.slots.append(
                models.BookingSlot(
                    san_id=slot.san_id,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    don_gia=slot.price,
                    ghi_chu=slot.ghi_chu,
                )
            )
        for line in breakdown.services:
            booking.services.append(
                models.BookingServiceLine(
                    dich_vu_id=line.service.id,
                    so_luong=line.so_luong,
                    don_gia=line.service.don_gia,
                )
            )
        db.add(booking)
        db.flush()
        actor_type, actor_id = audit_service.actor_for(created_by or customer)
        audit_service.record(
            db,
            "booking.create",
            actor_type,
            actor_id,
            {"ma_pd": booking.ma_pd, "tong_tien": float(breakdown.grand_total)},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)
    logger.info(
        "Booking created",
        extra={"ma_pd": booking.ma_pd, "booking_id": booking.id, "total": float(breakdown.grand_total)},
    )
    return booking, breakdown


def get_by_token(db: Session, token: str) -> models.Booking:
    normalized = security.normalize_public_token(token)
    booking = None
    if normalized:
        booking = db.execute(
            select(models.Booking)
            .options(
                selectinload(models.Booking.slots),
                selectinload(models.Booking.services).selectinload(models.BookingServiceLine.service),
            )
            .where(models.Booking.ma_pd == normalized)
        ).scalar_one_or_none()
    if booking is None:
        raise BookingError(MSG_BOOKING_NOT_FOUND, status_code=404)
    return booking


def get_by_reference(db: Session, reference: str) -> models.Booking:
    """Numeric references are ids, anything else is treated as a ``ma_pd`` token."""
    if reference.isdigit():
        booking = db.get(models.Booking, int(reference))
        if booking is None:
            raise BookingError(MSG_BOOKING_NOT_FOUND, status_code=404)
        return booking
    return get_by_token(db, reference)


def booking_detail(booking: models.Booking) -> dict:
    hours = sum(int(slot.end_time[:2]) - int(slot.start_time[:2]) for slot in booking.slots)
    services = []
    services_total = Decimal(0)
    for line in booking.services:
        unit = Decimal(str(line.don_gia or 0))
        line_total = unit * line.so_luong
        if line.service is not None and line.service.loai == models.ServiceKind.rent:
            line_total *= hours
        services_total += line_total
        dv = line.service
        services.append(
            {
                "dich_vu_id": line.dich_vu_id,
                "so_luong": line.so_luong,
                "don_gia": float(unit),
                "lineTotal": float(line_total),
                "dv": {
                    "id": line.dich_vu_id,
                    "ma_dv": dv.ma_dv if dv else None,
                    "ten_dv": dv.ten_dv if dv else None,
                    "loai": dv.loai.value if dv else None,
                    "don_gia": float(dv.don_gia) if dv else float(unit),
                },
            }
        )

    tien_san = Decimal(str(booking.tien_san or 0))
    if not tien_san:
        tien_san = sum((Decimal(str(slot.don_gia or 0)) for slot in booking.slots), Decimal(0))
    tien_dich_vu = Decimal(str(booking.tien_dich_vu or 0)) or services_total
    tong_tien = Decimal(str(booking.tong_tien or 0)) or tien_san + tien_dich_vu

    return {
        "booking": booking,
        "slots": list(booking.slots),
        "services": services,
        "totals": {
            "tien_san": float(tien_san),
            "tien_dich_vu": float(tien_dich_vu),
            "tong_tien": float(tong_tien),
        },
    }


def change_status(
    db: Session,
    booking: models.Booking,
    target: BookingStatus,
    actor: models.User | None = None,
    reason: str | None = None,
) -> models.Booking:
    current = booking.status
    if not models.can_transition(booking.kind, current, target):
        raise BookingError(
            f"Không thể chuyển trạng thái phiếu từ {current.value} sang {target.value}"
        )
    booking.status = target
    actor_type, actor_id = audit_service.actor_for(actor)
    if target == BookingStatus.canceled:
        db.add(
            models.Cancellation(
                phieu_dat_id=booking.id,
                ly_do=reason,
                nguoi_thuc_hien=actor.username if actor else actor_type.value,
                tien_hoan=0,
            )
        )
    audit_service.record(
        db,
        f"booking.{target.value}",
        actor_type,
        actor_id,
        {"ma_pd": booking.ma_pd, "from": current.value, "reason": reason},
    )
    db.commit()
    db.refresh(booking)
    logger.info(
        "Booking status changed",
        extra={"ma_pd": booking.ma_pd, "from": current.value, "to": target.value},
    )
    return booking


def cancel_booking(
    db: Session, booking: models.Booking, reason: str | None = None, actor: models.User | None = None
) -> models.Booking:
    if booking.status != BookingStatus.pending:
        raise BookingError("Chỉ có thể hủy phiếu đặt đang chờ xác nhận")
    return change_status(db, booking, BookingStatus.canceled, actor=actor, reason=reason)


def confirm_booking(db: Session, booking: models.Booking, actor: models.User) -> models.Booking:
    return change_status(db, booking, BookingStatus.confirmed, actor=actor)


def update_booking(
    db: Session, booking: models.Booking, payload: schemas.BookingUpdate, actor: models.User
) -> models.Booking:
    data = payload.model_dump(exclude_unset=True)
    target = data.pop("status", None)
    for field, value in data.items():
        setattr(booking, field, value)
    if target is not None:
        try:
            target_status = BookingStatus(target)
        except ValueError as exc:
            raise BookingError(f"Trạng thái không hợp lệ: {target}") from exc
        if target_status != booking.status:
            return change_status(db, booking, target_status, actor=actor)
    db.commit()
    db.refresh(booking)
    return booking


def list_bookings(
    db: Session,
    page: int = 1,
    limit: int = 20,
    status: BookingStatus | None = None,
    day: date | None = None,
    user_id: int | None = None,
) -> list[models.Booking]:
    query = select(models.Booking).options(selectinload(models.Booking.slots))
    if status is not None:
        query = query.where(models.Booking.status == status)
    if day is not None:
        query = query.where(models.Booking.ngay_su_dung == day)
    if user_id is not None:
        query = query.where(models.Booking.user_id == user_id)
    query = (
        query.order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(db.execute(query).scalars())


def expire_overdue(db: Session, today: date | None = None) -> int:
    """Move pending bookings whose play date has passed to ``expired``."""
    today = today or local_today()
    stale = (
        db.execute(
            select(models.Booking).where(
                models.Booking.status == BookingStatus.pending,
                models.Booking.ngay_su_dung < today,
            )
        )
        .scalars()
        .all()
    )
    for booking in stale:
        booking.status = BookingStatus.expired
        audit_service.record(
            db, "booking.expired", models.ActorType.system, payload={"ma_pd": booking.ma_pd}
        )
    db.commit()
    return len(stale)
