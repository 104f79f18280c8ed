from datetime import date, datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class BookingKind(str, PyEnum):
    court = "court"
    table = "table"


class BookingStatus(str, PyEnum):
    pending = "pending"
    confirmed = "confirmed"
    canceled = "canceled"
    received = "received"
    expired = "expired"


class PaymentMethod(str, PyEnum):
    cash = "cash"
    bank_transfer = "bank_transfer"


ALLOWED_TRANSITIONS: dict[BookingKind, dict[BookingStatus, frozenset[BookingStatus]]] = {
    BookingKind.court: {
        BookingStatus.pending: frozenset(
            {BookingStatus.confirmed, BookingStatus.canceled, BookingStatus.expired}
        ),
        BookingStatus.confirmed: frozenset({BookingStatus.received}),
    },
    BookingKind.table: {
        BookingStatus.pending: frozenset(
            {BookingStatus.confirmed, BookingStatus.canceled, BookingStatus.expired}
        ),
        BookingStatus.confirmed: frozenset({BookingStatus.received}),
    },
}

# Statuses that still hold a resource for their time range
ACTIVE_STATUSES = (BookingStatus.pending, BookingStatus.confirmed, BookingStatus.received)


def can_transition(kind: BookingKind, current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[kind].get(current, frozenset())


class Booking(Base):
    __tablename__ = "phieu_dat_san"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ma_pd: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    ngay_su_dung: Mapped[date] = mapped_column(Date, index=True)
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.pending)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(Enum(PaymentMethod))
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    note: Mapped[str | None] = mapped_column(Text)
    contact_snapshot: Mapped[dict | None] = mapped_column(JSON)
    tien_san: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    tien_dich_vu: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    tong_tien: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", foreign_keys=[user_id])
    slots = relationship(
        "BookingSlot",
        back_populates="booking",
        order_by="BookingSlot.start_time",
        cascade="all, delete-orphan",
    )
    services = relationship(
        "BookingServiceLine", back_populates="booking", cascade="all, delete-orphan"
    )
    cancellations = relationship(
        "Cancellation", back_populates="booking", cascade="all, delete-orphan"
    )

    kind = BookingKind.court


class BookingSlot(Base):
    __tablename__ = "chi_tiet_phieu_san"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phieu_dat_id: Mapped[int] = mapped_column(ForeignKey("phieu_dat_san.id", ondelete="CASCADE"))
    san_id: Mapped[int] = mapped_column(ForeignKey("san.id", ondelete="RESTRICT"), index=True)
    start_time: Mapped[str] = mapped_column(String(5))
    end_time: Mapped[str] = mapped_column(String(5))
    don_gia: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    ghi_chu: Mapped[str | None] = mapped_column(Text)

    booking = relationship("Booking", back_populates="slots")
    court = relationship("Court")


class BookingServiceLine(Base):
    __tablename__ = "chi_tiet_phieu_dich_vu"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phieu_dat_id: Mapped[int] = mapped_column(ForeignKey("phieu_dat_san.id", ondelete="CASCADE"))
    dich_vu_id: Mapped[int] = mapped_column(ForeignKey("dich_vu.id", ondelete="RESTRICT"))
    so_luong: Mapped[int] = mapped_column(Integer, default=1)
    don_gia: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    ghi_chu: Mapped[str | None] = mapped_column(Text)

    booking = relationship("Booking", back_populates="services")
    service = relationship("Service")


class Cancellation(Base):
    __tablename__ = "phieu_huy_dat_san"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phieu_dat_id: Mapped[int] = mapped_column(ForeignKey("phieu_dat_san.id", ondelete="CASCADE"))
    ly_do: Mapped[str | None] = mapped_column(Text)
    nguoi_thuc_hien: Mapped[str | None] = mapped_column(String(64))
    tien_hoan: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", back_populates="cancellations")
