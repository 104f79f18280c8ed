from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...db.models.booking import BookingStatus
from ...rate_limit import LISTS, limiter
from ...services import booking_service
from .public import created_response

router = APIRouter(prefix="/bookings", tags=["bookings"])

staff_only = deps.require_roles("staff", "manager")


@router.get("", response_model=list[schemas.BookingWithSlots])
@limiter.limit(LISTS)
def list_bookings(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status_: BookingStatus | None = Query(default=None, alias="status"),
    date_: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    _: models.User = Depends(staff_only),
):
    return booking_service.list_bookings(db, page=page, limit=limit, status=status_, day=date_)


@router.get("/mine", response_model=list[schemas.BookingWithSlots])
@limiter.limit(LISTS)
def list_my_bookings(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    return booking_service.list_bookings(db, page=page, limit=limit, user_id=user.id)


@router.post("", response_model=schemas.BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    customer = None
    if payload.user_id is not None:
        customer = db.get(models.User, payload.user_id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Không tìm thấy khách hàng")
    try:
        booking, breakdown = booking_service.create_booking(
            db, payload, customer=customer, created_by=staff
        )
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return created_response(booking, breakdown)


def _load(db: Session, reference: str) -> models.Booking:
    try:
        return booking_service.get_by_reference(db, reference)
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/{reference}", response_model=schemas.BookingDetail)
def get_booking(
    reference: str,
    db: Session = Depends(get_db),
    _: models.User = Depends(staff_only),
):
    return booking_service.booking_detail(_load(db, reference))


@router.put("/{reference}/confirm", response_model=schemas.Booking)
def confirm_booking(
    reference: str,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    booking = _load(db, reference)
    try:
        return booking_service.confirm_booking(db, booking, actor=staff)
    except booking_service.BookingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.put("/{reference}/cancel", response_model=schemas.Booking)
def cancel_booking(
    reference: str,
    payload: schemas.BookingCancel,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    booking = _load(db, reference)
    try:
        return booking_service.cancel_booking(db, booking, reason=payload.reason, actor=staff)
    except booking_service.BookingError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc


@router.put("/{reference}", response_model=schemas.Booking)
def update_booking(
    reference: str,
    payload: schemas.BookingUpdate,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    booking = _load(db, reference)
    try:
        return booking_service.update_booking(db, booking, payload, actor=staff)
    except booking_service.BookingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
