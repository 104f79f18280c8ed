from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class TimeFrame(Base):
    """Operating window for one weekday (0 = Sunday ... 6 = Saturday)."""

    __tablename__ = "khung_gio"
    __table_args__ = (
        CheckConstraint("ngay_ap_dung BETWEEN 0 AND 6", name="ck_khung_gio_weekday"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ten_khung_gio: Mapped[str] = mapped_column(String(255), nullable=False)
    ngay_ap_dung: Mapped[int] = mapped_column(Integer, index=True)
    start_at: Mapped[str] = mapped_column(String(5))
    end_at: Mapped[str] = mapped_column(String(5))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    shifts = relationship(
        "Shift",
        back_populates="time_frame",
        order_by="Shift.start_at",
        cascade="all, delete-orphan",
    )


class Shift(Base):
    __tablename__ = "ca"
    __table_args__ = (
        CheckConstraint("gia_theo_gio > 0", name="ck_ca_gia_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    khung_gio_id: Mapped[int] = mapped_column(ForeignKey("khung_gio.id", ondelete="CASCADE"))
    ten_ca: Mapped[str] = mapped_column(String(255), nullable=False)
    start_at: Mapped[str] = mapped_column(String(5))
    end_at: Mapped[str] = mapped_column(String(5))
    gia_theo_gio: Mapped[float] = mapped_column(Numeric(12, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    time_frame = relationship("TimeFrame", back_populates="shifts")
