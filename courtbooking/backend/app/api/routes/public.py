import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import booking_service, catalogue_service, pricing_service, table_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


def created_response(booking: models.Booking, breakdown: pricing_service.PriceBreakdown) -> dict:
    return {
        "booking": booking,
        "slots": list(booking.slots),
        "services": [pricing_service.service_line_response(line) for line in breakdown.services],
        "total": float(breakdown.grand_total),
    }


@router.get("/courts", response_model=list[schemas.Court])
def list_courts(db: Session = Depends(get_db)):
    return catalogue_service.list_courts(db, active_only=True)


@router.get("/services", response_model=list[schemas.Service])
def list_services(db: Session = Depends(get_db)):
    return catalogue_service.list_services(db)


@router.post("/bookings", response_model=schemas.BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    user: models.User | None = Depends(deps.get_optional_user),
):
    if payload.user_id is not None and (user is None or payload.user_id != user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Không thể đặt sân thay cho người dùng khác",
        )
    try:
        booking, breakdown = booking_service.create_booking(db, payload, customer=user)
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return created_response(booking, breakdown)


@router.get("/bookings/{token}", response_model=schemas.BookingDetail)
def get_booking(token: str, db: Session = Depends(get_db)):
    try:
        booking = booking_service.get_by_token(db, token)
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return booking_service.booking_detail(booking)


@router.put("/bookings/{token}/cancel", response_model=schemas.Booking)
def cancel_booking(
    token: str,
    payload: schemas.BookingCancel,
    db: Session = Depends(get_db),
    user: models.User | None = Depends(deps.get_optional_user),
):
    try:
        booking = booking_service.get_by_token(db, token)
        return booking_service.cancel_booking(db, booking, reason=payload.reason, actor=user)
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post(
    "/table-reservations",
    response_model=schemas.TableReservation,
    status_code=status.HTTP_201_CREATED,
)
def create_table_reservation(payload: schemas.TableReservationCreate, db: Session = Depends(get_db)):
    try:
        return table_service.create_reservation(db, payload)
    except table_service.TableError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/table-reservations/{token}", response_model=schemas.TableReservation)
def get_table_reservation(token: str, db: Session = Depends(get_db)):
    try:
        return table_service.get_reservation_by_token(db, token)
    except table_service.TableError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
