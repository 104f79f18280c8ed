"""Courts, add-on services, time frames and shifts."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import models, schemas
from ..db.models.booking import BookingStatus

logger = logging.getLogger(__name__)


class CatalogueError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _get_or_404(db: Session, model, object_id: int, message: str):
    instance = db.get(model, object_id)
    if instance is None:
        raise CatalogueError(message, status_code=404)
    return instance


def _save(db: Session, instance):
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


# Courts

def get_court(db: Session, court_id: int) -> models.Court:
    return _get_or_404(db, models.Court, court_id, "Không tìm thấy sân")


def list_courts(db: Session, active_only: bool = False) -> list[models.Court]:
    query = select(models.Court).order_by(models.Court.id)
    if active_only:
        query = query.where(models.Court.trang_thai.is_(True))
    return list(db.execute(query).scalars())


def _ensure_unique_court_code(db: Session, code: str, exclude_id: int | None = None) -> None:
    query = select(models.Court.id).where(models.Court.ma_san == code)
    if exclude_id is not None:
        query = query.where(models.Court.id != exclude_id)
    if db.scalar(query) is not None:
        raise CatalogueError("Mã sân đã tồn tại")


def create_court(db: Session, payload: schemas.CourtCreate) -> models.Court:
    _ensure_unique_court_code(db, payload.ma_san)
    return _save(db, models.Court(**payload.model_dump(), trang_thai=True))


def update_court(db: Session, court: models.Court, payload: schemas.CourtUpdate) -> models.Court:
    data = payload.model_dump(exclude_unset=True)
    if "ma_san" in data:
        _ensure_unique_court_code(db, data["ma_san"], exclude_id=court.id)
    for field, value in data.items():
        setattr(court, field, value)
    return _save(db, court)


def delete_court(db: Session, court: models.Court) -> None:
    in_use = db.scalar(
        select(models.BookingSlot.id)
        .join(models.Booking, models.BookingSlot.phieu_dat_id == models.Booking.id)
        .where(
            models.BookingSlot.san_id == court.id,
            models.Booking.status.in_([BookingStatus.pending, BookingStatus.confirmed]),
        )
        .limit(1)
    )
    if in_use is not None:
        raise CatalogueError("Không thể xóa sân đang có đặt chỗ")
    db.delete(court)
    db.commit()
    logger.info("Court deleted", extra={"court_id": court.id})


# Add-on services

def get_service(db: Session, service_id: int) -> models.Service:
    return _get_or_404(db, models.Service, service_id, "Không tìm thấy dịch vụ")


def list_services(db: Session) -> list[models.Service]:
    return list(db.execute(select(models.Service).order_by(models.Service.id)).scalars())


def _ensure_unique_service_code(db: Session, code: str, exclude_id: int | None = None) -> None:
    query = select(models.Service.id).where(models.Service.ma_dv == code)
    if exclude_id is not None:
        query = query.where(models.Service.id != exclude_id)
    if db.scalar(query) is not None:
        raise CatalogueError("Mã dịch vụ đã tồn tại")


def create_service(db: Session, payload: schemas.ServiceCreate) -> models.Service:
    _ensure_unique_service_code(db, payload.ma_dv)
    return _save(db, models.Service(**payload.model_dump()))


def update_service(db: Session, service: models.Service, payload: schemas.ServiceUpdate) -> models.Service:
    data = payload.model_dump(exclude_unset=True)
    if "ma_dv" in data:
        _ensure_unique_service_code(db, data["ma_dv"], exclude_id=service.id)
    for field, value in data.items():
        setattr(service, field, value)
    return _save(db, service)


def delete_service(db: Session, service: models.Service) -> None:
    used = db.scalar(
        select(models.BookingServiceLine.id)
        .where(models.BookingServiceLine.dich_vu_id == service.id)
        .limit(1)
    )
    if used is not None:
        raise CatalogueError("Không thể xóa dịch vụ đã được sử dụng")
    db.delete(service)
    db.commit()


# Time frames and shifts

def get_time_frame(db: Session, frame_id: int) -> models.TimeFrame:
    return _get_or_404(db, models.TimeFrame, frame_id, "Không tìm thấy khung giờ")


def list_time_frames(db: Session) -> list[models.TimeFrame]:
    query = select(models.TimeFrame).order_by(models.TimeFrame.ngay_ap_dung, models.TimeFrame.start_at)
    return list(db.execute(query).scalars())


def _check_frame_overlap(
    db: Session, weekday: int, start_at: str, end_at: str, exclude_id: int | None = None
) -> None:
    query = select(models.TimeFrame.id).where(
        models.TimeFrame.ngay_ap_dung == weekday,
        models.TimeFrame.is_active.is_(True),
        models.TimeFrame.start_at < end_at,
        models.TimeFrame.end_at > start_at,
    )
    if exclude_id is not None:
        query = query.where(models.TimeFrame.id != exclude_id)
    if db.scalar(query.limit(1)) is not None:
        raise CatalogueError("Khung giờ cho ngày này bị trùng với khung giờ khác")


def create_time_frame(db: Session, payload: schemas.TimeFrameCreate) -> models.TimeFrame:
    _check_frame_overlap(db, payload.ngay_ap_dung, payload.start_at, payload.end_at)
    return _save(db, models.TimeFrame(**payload.model_dump(), is_active=True))


def update_time_frame(
    db: Session, frame: models.TimeFrame, payload: schemas.TimeFrameUpdate
) -> models.TimeFrame:
    data = payload.model_dump(exclude_unset=True)
    weekday = data.get("ngay_ap_dung", frame.ngay_ap_dung)
    start_at = data.get("start_at", frame.start_at)
    end_at = data.get("end_at", frame.end_at)
    if end_at <= start_at:
        raise CatalogueError("Thời gian bắt đầu phải nhỏ hơn thời gian kết thúc")
    if data.get("is_active", frame.is_active):
        _check_frame_overlap(db, weekday, start_at, end_at, exclude_id=frame.id)
    for field, value in data.items():
        setattr(frame, field, value)
    return _save(db, frame)


def delete_time_frame(db: Session, frame: models.TimeFrame) -> None:
    db.delete(frame)
    db.commit()


def get_shift(db: Session, shift_id: int) -> models.Shift:
    return _get_or_404(db, models.Shift, shift_id, "Không tìm thấy ca làm việc")


def _check_shift(
    db: Session, frame: models.TimeFrame, start_at: str, end_at: str, exclude_id: int | None = None
) -> None:
    if start_at < frame.start_at or end_at > frame.end_at:
        raise CatalogueError("Ca làm việc phải nằm trong khung giờ hoạt động")
    query = select(models.Shift.id).where(
        models.Shift.khung_gio_id == frame.id,
        models.Shift.is_active.is_(True),
        models.Shift.start_at < end_at,
        models.Shift.end_at > start_at,
    )
    if exclude_id is not None:
        query = query.where(models.Shift.id != exclude_id)
    if db.scalar(query.limit(1)) is not None:
        raise CatalogueError("Ca làm việc bị trùng với ca khác")


def create_shift(db: Session, payload: schemas.ShiftCreate) -> models.Shift:
    frame = db.get(models.TimeFrame, payload.khung_gio_id)
    if frame is None:
        raise CatalogueError("Khung giờ không tồn tại")
    _check_shift(db, frame, payload.start_at, payload.end_at)
    return _save(db, models.Shift(**payload.model_dump(), is_active=True))


def update_shift(db: Session, shift: models.Shift, payload: schemas.ShiftUpdate) -> models.Shift:
    data = payload.model_dump(exclude_unset=True)
    start_at = data.get("start_at", shift.start_at)
    end_at = data.get("end_at", shift.end_at)
    if end_at <= start_at:
        raise CatalogueError("Thời gian bắt đầu phải nhỏ hơn thời gian kết thúc")
    if data.get("is_active", shift.is_active):
        _check_shift(db, shift.time_frame, start_at, end_at, exclude_id=shift.id)
    for field, value in data.items():
        setattr(shift, field, value)
    return _save(db, shift)


def delete_shift(db: Session, shift: models.Shift) -> None:
    db.delete(shift)
    db.commit()
