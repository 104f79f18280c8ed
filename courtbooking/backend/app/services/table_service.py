"""Restaurant tables with optimistic locking, and guest table reservations."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..core import security
from ..core.constants import TABLE_TOKEN_PREFIX
from ..db import models, schemas
from ..db.models.booking import BookingStatus
from ..db.models.table import TableState
from . import audit_service

logger = logging.getLogger(__name__)

MSG_TABLE_NOT_FOUND = "Không tìm thấy bàn"
MSG_STALE_VERSION = "Bàn đã được cập nhật bởi người khác. Vui lòng tải lại trang."


class TableError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def list_tables(db: Session, state: TableState | None = None) -> list[models.DiningTable]:
    query = select(models.DiningTable).order_by(models.DiningTable.maban)
    if state is not None:
        query = query.where(models.DiningTable.trangthai == state)
    return list(db.execute(query).scalars())


def get_table(db: Session, maban: int) -> models.DiningTable:
    table = db.get(models.DiningTable, maban)
    if table is None:
        raise TableError(MSG_TABLE_NOT_FOUND, status_code=404)
    return table


def create_table(db: Session, payload: schemas.DiningTableCreate) -> models.DiningTable:
    table = models.DiningTable(**payload.model_dump(), trangthai=TableState.Trong, version=1)
    db.add(table)
    db.commit()
    db.refresh(table)
    return table


def update_status(
    db: Session, maban: int, state: TableState, version: int, actor: models.User | None = None
) -> models.DiningTable:
    """Compare-and-set on ``version``: a stale version means someone else changed the table."""
    table = get_table(db, maban)
    result = db.execute(
        update(models.DiningTable)
        .where(models.DiningTable.maban == maban, models.DiningTable.version == version)
        .values(trangthai=state, version=models.DiningTable.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.info(
            "Stale table version",
            extra={"maban": maban, "version": version, "current_version": table.version},
        )
        raise TableError(MSG_STALE_VERSION, status_code=409)
    actor_type, actor_id = audit_service.actor_for(actor)
    audit_service.record(
        db, "table.status", actor_type, actor_id, {"maban": maban, "trangthai": state.value}
    )
    db.commit()
    db.refresh(table)
    return table


def _bump(table: models.DiningTable, state: TableState) -> None:
    table.trangthai = state
    table.version = table.version + 1


def _new_token(db: Session) -> str:
    while True:
        token = security.generate_public_token(TABLE_TOKEN_PREFIX)
        exists = db.scalar(
            select(models.TableReservation.id).where(models.TableReservation.maphieu == token)
        )
        if exists is None:
            return token


def create_reservation(db: Session, payload: schemas.TableReservationCreate) -> models.TableReservation:
    table = db.execute(
        select(models.DiningTable).where(models.DiningTable.maban == payload.maban).with_for_update()
    ).scalar_one_or_none()
    if table is None:
        raise TableError(MSG_TABLE_NOT_FOUND, status_code=404)
    if table.trangthai == TableState.Lock:
        raise TableError("Bàn đang bị khóa, không thể đặt")
    if payload.songuoi > table.soghe:
        raise TableError(f"Bàn chỉ có {table.soghe} ghế")

    reservation = models.TableReservation(
        maphieu=_new_token(db),
        status=BookingStatus.pending,
        **payload.model_dump(),
    )
    if table.trangthai == TableState.Trong:
        _bump(table, TableState.DaDat)
    db.add(reservation)
    db.flush()
    audit_service.record(
        db, "table_reservation.create", models.ActorType.guest, payload={"maphieu": reservation.maphieu}
    )
    db.commit()
    db.refresh(reservation)
    logger.info("Table reservation created", extra={"maphieu": reservation.maphieu, "maban": table.maban})
    return reservation


def get_reservation(db: Session, reservation_id: int) -> models.TableReservation:
    reservation = db.get(models.TableReservation, reservation_id)
    if reservation is None:
        raise TableError("Không tìm thấy phiếu đặt bàn", status_code=404)
    return reservation


def get_reservation_by_token(db: Session, token: str) -> models.TableReservation:
    normalized = security.normalize_public_token(token)
    reservation = db.execute(
        select(models.TableReservation).where(models.TableReservation.maphieu == normalized)
    ).scalar_one_or_none()
    if reservation is None:
        raise TableError("Không tìm thấy phiếu đặt bàn", status_code=404)
    return reservation


def change_reservation_status(
    db: Session,
    reservation: models.TableReservation,
    target: BookingStatus,
    actor: models.User | None = None,
    reason: str | None = None,
) -> models.TableReservation:
    current = reservation.status
    if not models.can_transition(reservation.kind, current, target):
        raise TableError(
            f"Không thể chuyển trạng thái phiếu đặt bàn từ {models.TABLE_STATUS_LABELS[current]} "
            f"sang {models.TABLE_STATUS_LABELS[target]}"
        )
    reservation.status = target
    table = reservation.table
    if table is not None:
        if target == BookingStatus.received:
            _bump(table, TableState.DangSuDung)
        elif target in (BookingStatus.canceled, BookingStatus.expired) and table.trangthai == TableState.DaDat:
            _bump(table, TableState.Trong)
    actor_type, actor_id = audit_service.actor_for(actor)
    audit_service.record(
        db,
        f"table_reservation.{target.value}",
        actor_type,
        actor_id,
        {"maphieu": reservation.maphieu, "reason": reason},
    )
    db.commit()
    db.refresh(reservation)
    return reservation


def expire_overdue(db: Session, grace_minutes: int, now: datetime | None = None) -> int:
    """Expire pending reservations whose time plus the grace period has passed."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=grace_minutes)
    pending = (
        db.execute(
            select(models.TableReservation).where(models.TableReservation.status == BookingStatus.pending)
        )
        .scalars()
        .all()
    )
    expired = 0
    for reservation in pending:
        booked_at = reservation.thoigian_dat
        if booked_at.tzinfo is None:
            booked_at = booked_at.replace(tzinfo=timezone.utc)
        if booked_at >= cutoff:
            continue
        reservation.status = BookingStatus.expired
        table = reservation.table
        if table is not None and table.trangthai == TableState.DaDat:
            _bump(table, TableState.Trong)
        audit_service.record(
            db,
            "table_reservation.expired",
            models.ActorType.system,
            payload={"maphieu": reservation.maphieu},
        )
        expired += 1
    db.commit()
    return expired
