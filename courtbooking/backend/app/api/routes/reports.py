from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models
from ...db.models.booking import BookingStatus
from ...services.booking_service import local_today

router = APIRouter(prefix="/reports", tags=["reports"])

REVENUE_STATUSES = [BookingStatus.confirmed, BookingStatus.received]


@router.get("/revenue")
def revenue(
    from_: date = Query(alias="from"),
    to: date = Query(),
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    if to < from_:
        raise HTTPException(status_code=400, detail="Ngày kết thúc phải sau ngày bắt đầu")
    rows = (
        db.query(
            models.Booking.ngay_su_dung,
            func.coalesce(func.sum(models.Booking.tong_tien), 0),
            func.count(models.Booking.id),
        )
        .filter(models.Booking.status.in_(REVENUE_STATUSES))
        .filter(models.Booking.ngay_su_dung.between(from_, to))
        .group_by(models.Booking.ngay_su_dung)
        .order_by(models.Booking.ngay_su_dung)
        .all()
    )
    days = [
        {"date": day.isoformat(), "revenue": float(amount or 0), "bookings": count}
        for day, amount, count in rows
    ]
    return {"from": from_.isoformat(), "to": to.isoformat(), "days": days, "total": sum(d["revenue"] for d in days)}


@router.get("/summary")
def summary(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    today = local_today()
    counts = dict(
        db.query(models.Booking.status, func.count(models.Booking.id))
        .group_by(models.Booking.status)
        .all()
    )
    bookings_today = (
        db.query(models.Booking)
        .filter(models.Booking.ngay_su_dung == today)
        .filter(models.Booking.status.in_([BookingStatus.pending, *REVENUE_STATUSES]))
        .count()
    )
    weekly_revenue = (
        db.query(func.coalesce(func.sum(models.Booking.tong_tien), 0))
        .filter(models.Booking.status.in_(REVENUE_STATUSES))
        .filter(models.Booking.ngay_su_dung > today - timedelta(days=7))
        .filter(models.Booking.ngay_su_dung <= today)
        .scalar()
    )
    return {
        "by_status": {status.value: counts.get(status, 0) for status in BookingStatus},
        "bookings_today": bookings_today,
        "weekly_revenue": float(weekly_revenue or 0),
    }
