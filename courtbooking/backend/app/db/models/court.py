from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column
from ..session import Base


class ServiceKind(str, PyEnum):
    rent = "rent"
    buy = "buy"


class Court(Base):
    __tablename__ = "san"
    __table_args__ = (
        CheckConstraint("suc_chua > 0", name="ck_san_suc_chua_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ma_san: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    ten_san: Mapped[str] = mapped_column(String(200), nullable=False)
    suc_chua: Mapped[int] = mapped_column(Integer, default=4)
    trang_thai: Mapped[bool] = mapped_column(Boolean, default=True)
    ghi_chu: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Service(Base):
    __tablename__ = "dich_vu"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ma_dv: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    ten_dv: Mapped[str] = mapped_column(String(200), nullable=False)
    loai: Mapped[ServiceKind] = mapped_column(Enum(ServiceKind), default=ServiceKind.buy)
    don_gia: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    ghi_chu: Mapped[str | None] = mapped_column(Text)
