from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from sqlalchemy.orm import Session

from ..db import models, schemas
from . import availability_service


class PricingError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PricedSlot:
    san_id: int
    start_time: str
    end_time: str
    price: Decimal
    ghi_chu: str | None = None


@dataclass
class PricedService:
    service: models.Service
    so_luong: int
    total_hours: int
    price: Decimal


@dataclass
class PriceBreakdown:
    ngay_su_dung: date
    total_hours: int
    slots: list[PricedSlot] = field(default_factory=list)
    services: list[PricedService] = field(default_factory=list)

    @property
    def slots_total(self) -> Decimal:
        return sum((slot.price for slot in self.slots), Decimal(0))

    @property
    def services_total(self) -> Decimal:
        return sum((line.price for line in self.services), Decimal(0))

    @property
    def grand_total(self) -> Decimal:
        return self.slots_total + self.services_total

    def as_response(self) -> dict:
        return {
            "ngay_su_dung": self.ngay_su_dung,
            "total_hours": self.total_hours,
            "slots": [
                {
                    "san_id": slot.san_id,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "price": float(slot.price),
                }
                for slot in self.slots
            ],
            "services": [service_line_response(line) for line in self.services],
            "summary": {
                "slots_total": float(self.slots_total),
                "services_total": float(self.services_total),
                "grand_total": float(self.grand_total),
            },
        }


def service_line_response(line: PricedService) -> dict:
    return {
        "dich_vu_id": line.service.id,
        "ten_dv": line.service.ten_dv,
        "loai": line.service.loai.value,
        "don_gia": float(line.service.don_gia),
        "so_luong": line.so_luong,
        "total_hours": line.total_hours,
        "price": float(line.price),
    }


def slot_price(shifts: Sequence[models.Shift], start_time: str, end_time: str) -> Decimal:
    """Sum of overlap hours times the hourly price of each shift, rounded to a whole amount."""
    start = availability_service.to_minutes(start_time)
    end = availability_service.to_minutes(end_time)
    total = Decimal(0)
    for shift in shifts:
        overlap_start = max(start, availability_service.to_minutes(shift.start_at))
        overlap_end = min(end, availability_service.to_minutes(shift.end_at))
        if overlap_start < overlap_end:
            hours = Decimal(overlap_end - overlap_start) / Decimal(60)
            total += hours * Decimal(str(shift.gia_theo_gio))
    return total.quantize(Decimal(1), rounding=ROUND_HALF_UP)


def check_overlapping_slots(slots: Sequence[schemas.SlotRequest]) -> None:
    for index, slot in enumerate(slots):
        for other in slots[index + 1:]:
            if other.san_id != slot.san_id:
                continue
            if availability_service.ranges_overlap(
                availability_service.to_minutes(slot.start_time),
                availability_service.to_minutes(slot.end_time),
                availability_service.to_minutes(other.start_time),
                availability_service.to_minutes(other.end_time),
            ):
                raise PricingError(
                    f"Các khung giờ {slot.start_time}-{slot.end_time} và "
                    f"{other.start_time}-{other.end_time} trên sân {slot.san_id} bị trùng nhau"
                )


def total_hours(slots: Sequence[schemas.SlotRequest]) -> int:
    return sum(int(slot.end_time[:2]) - int(slot.start_time[:2]) for slot in slots)


def service_price(service: models.Service, so_luong: int, hours: int) -> Decimal:
    unit = Decimal(str(service.don_gia))
    if service.loai == models.ServiceKind.rent:
        return unit * so_luong * hours
    return unit * so_luong


def price_slots(
    db: Session,
    day: date,
    slots: Sequence[schemas.SlotRequest],
) -> list[PricedSlot]:
    priced = []
    for slot in slots:
        court = db.get(models.Court, slot.san_id)
        if court is None or not court.trang_thai:
            raise PricingError(f"Không tìm thấy sân {slot.san_id}", status_code=404)
        conflicts = availability_service.find_conflicts(
            db, slot.san_id, day, slot.start_time, slot.end_time
        )
        if conflicts:
            raise PricingError(
                f"Sân {slot.san_id} không trống trong khung {slot.start_time}-{slot.end_time}",
                status_code=409,
            )
        shifts = availability_service.shifts_for_day(db, day, slot.start_time, slot.end_time)
        if not shifts:
            raise PricingError(
                f"Không có ca làm việc nào trong khung giờ {slot.start_time} - {slot.end_time}"
            )
        problem = availability_service.shift_coverage_problem(shifts, slot.start_time, slot.end_time)
        if problem:
            raise PricingError(problem)
        priced.append(
            PricedSlot(
                san_id=slot.san_id,
                start_time=slot.start_time,
                end_time=slot.end_time,
                price=slot_price(shifts, slot.start_time, slot.end_time),
                ghi_chu=slot.ghi_chu,
            )
        )
    return priced


def price_services(
    db: Session, services: Sequence[schemas.ServiceRequest], hours: int
) -> list[PricedService]:
    priced = []
    for item in services:
        service = db.get(models.Service, item.dich_vu_id)
        if service is None:
            raise PricingError(f"Không tìm thấy dịch vụ {item.dich_vu_id}", status_code=404)
        priced.append(
            PricedService(
                service=service,
                so_luong=item.so_luong,
                total_hours=hours if service.loai == models.ServiceKind.rent else 1,
                price=service_price(service, item.so_luong, hours),
            )
        )
    return priced


def calculate(db: Session, payload: schemas.PriceCalculationRequest) -> PriceBreakdown:
    check_overlapping_slots(payload.slots)
    hours = total_hours(payload.slots)
    return PriceBreakdown(
        ngay_su_dung=payload.ngay_su_dung,
        total_hours=hours,
        slots=price_slots(db, payload.ngay_su_dung, payload.slots),
        services=price_services(db, payload.services, hours),
    )
