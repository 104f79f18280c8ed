from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...db.models.booking import BookingStatus
from ...db.models.table import TableState
from ...services import table_service

router = APIRouter(tags=["tables"])

staff_only = deps.require_roles("staff", "manager")


@router.get("/tables", response_model=list[schemas.DiningTable])
def list_tables(
    trangthai: TableState | None = Query(default=None),
    db: Session = Depends(get_db),
    _: models.User = Depends(staff_only),
):
    return table_service.list_tables(db, trangthai)


@router.post("/tables", response_model=schemas.DiningTable, status_code=status.HTTP_201_CREATED)
def create_table(
    payload: schemas.DiningTableCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    return table_service.create_table(db, payload)


@router.put("/tables/{maban}/status", response_model=schemas.DiningTable)
def update_table_status(
    maban: int,
    payload: schemas.TableStatusUpdate,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    try:
        return table_service.update_status(db, maban, payload.trangthai, payload.version, actor=staff)
    except table_service.TableError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


def _change(db: Session, reservation_id: int, target: BookingStatus, staff: models.User, reason: str | None = None):
    try:
        reservation = table_service.get_reservation(db, reservation_id)
        return table_service.change_reservation_status(db, reservation, target, actor=staff, reason=reason)
    except table_service.TableError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.put("/table-reservations/{reservation_id}/confirm", response_model=schemas.TableReservation)
def confirm_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    return _change(db, reservation_id, BookingStatus.confirmed, staff)


@router.put("/table-reservations/{reservation_id}/receive", response_model=schemas.TableReservation)
def receive_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    return _change(db, reservation_id, BookingStatus.received, staff)


@router.put("/table-reservations/{reservation_id}/cancel", response_model=schemas.TableReservation)
def cancel_reservation(
    reservation_id: int,
    payload: schemas.TableReservationCancel,
    db: Session = Depends(get_db),
    staff: models.User = Depends(staff_only),
):
    return _change(db, reservation_id, BookingStatus.canceled, staff, reason=payload.reason)
