from datetime import datetime
from pydantic import BaseModel, Field

from ..models.table import TableState
from .user import PHONE_PATTERN


class DiningTableCreate(BaseModel):
    tenban: str = Field(min_length=1, max_length=50)
    soghe: int = Field(ge=1, le=20)
    vitri: str | None = Field(default=None, max_length=200)
    ghichu: str | None = None


class TableStatusUpdate(BaseModel):
    trangthai: TableState
    version: int = Field(ge=1)


class DiningTable(BaseModel):
    maban: int
    tenban: str
    soghe: int
    vitri: str | None = None
    trangthai: str
    version: int
    ghichu: str | None = None

    class Config:
        from_attributes = True


class TableReservationCreate(BaseModel):
    maban: int = Field(gt=0)
    songuoi: int = Field(ge=1, le=20)
    thoigian_dat: datetime
    guest_hoten: str = Field(min_length=1, max_length=100)
    guest_sodienthoai: str = Field(pattern=PHONE_PATTERN)
    ghichu: str | None = None


class TableReservationCancel(BaseModel):
    reason: str | None = None


class TableReservation(BaseModel):
    id: int
    maphieu: str
    maban: int
    songuoi: int
    thoigian_dat: datetime
    guest_hoten: str | None = None
    guest_sodienthoai: str | None = None
    ghichu: str | None = None
    status: str
    trangthai: str

    class Config:
        from_attributes = True
