from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base
from .booking import BookingKind, BookingStatus


class TableState(str, PyEnum):
    Trong = "Trong"
    DaDat = "DaDat"
    DangSuDung = "DangSuDung"
    Lock = "Lock"


# Legacy restaurant labels for the unified status values
TABLE_STATUS_LABELS: dict[BookingStatus, str] = {
    BookingStatus.pending: "DaDat",
    BookingStatus.confirmed: "DaXacNhan",
    BookingStatus.canceled: "DaHuy",
    BookingStatus.expired: "QuaHan",
    BookingStatus.received: "DaNhan",
}


class DiningTable(Base):
    __tablename__ = "ban"
    __table_args__ = (
        CheckConstraint("soghe BETWEEN 1 AND 20", name="ck_ban_soghe_range"),
    )

    maban: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenban: Mapped[str] = mapped_column(String(50), nullable=False)
    soghe: Mapped[int] = mapped_column(Integer, nullable=False)
    vitri: Mapped[str | None] = mapped_column(String(200))
    trangthai: Mapped[TableState] = mapped_column(Enum(TableState), default=TableState.Trong)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    ghichu: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TableReservation(Base):
    __tablename__ = "phieu_dat_ban"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    maphieu: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    maban: Mapped[int] = mapped_column(ForeignKey("ban.maban", ondelete="RESTRICT"))
    songuoi: Mapped[int] = mapped_column(Integer)
    thoigian_dat: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    guest_hoten: Mapped[str | None] = mapped_column(String(100))
    guest_sodienthoai: Mapped[str | None] = mapped_column(String(20))
    ghichu: Mapped[str | None] = mapped_column(Text)
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.pending)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    table = relationship("DiningTable")

    kind = BookingKind.table

    @property
    def trangthai(self) -> str:
        return TABLE_STATUS_LABELS[self.status]
