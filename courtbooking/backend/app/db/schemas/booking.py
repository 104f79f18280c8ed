from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, model_validator

from ..models.booking import PaymentMethod
from .user import PHONE_PATTERN

HOUR_PATTERN = r"^([01]\d|2[0-3]):00$"


class SlotRequest(BaseModel):
    san_id: int = Field(gt=0)
    start_time: str = Field(pattern=HOUR_PATTERN)
    end_time: str = Field(pattern=HOUR_PATTERN)
    ghi_chu: str | None = None

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("Thời gian kết thúc phải lớn hơn thời gian bắt đầu")
        return self


class ServiceRequest(BaseModel):
    dich_vu_id: int = Field(gt=0)
    so_luong: int = Field(default=1, ge=1)


class PriceCalculationRequest(BaseModel):
    ngay_su_dung: date
    slots: list[SlotRequest] = Field(min_length=1)
    services: list[ServiceRequest] = Field(default_factory=list)


class SlotPrice(BaseModel):
    san_id: int
    start_time: str
    end_time: str
    price: float


class ServicePrice(BaseModel):
    dich_vu_id: int
    ten_dv: str
    loai: str
    don_gia: float
    so_luong: int
    total_hours: int
    price: float


class PriceSummary(BaseModel):
    slots_total: float
    services_total: float
    grand_total: float


class PriceCalculation(BaseModel):
    ngay_su_dung: date
    total_hours: int
    slots: list[SlotPrice]
    services: list[ServicePrice]
    summary: PriceSummary


class ContactSnapshot(BaseModel):
    contact_name: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    contact_email: EmailStr | None = None


class BookingCreate(PriceCalculationRequest):
    user_id: int | None = Field(default=None, gt=0)
    contact_id: int | None = Field(default=None, gt=0)
    contact_snapshot: ContactSnapshot | None = None
    payment_method: PaymentMethod | None = None
    note: str | None = None


class BookingCancel(BaseModel):
    reason: str | None = None


class BookingUpdate(BaseModel):
    status: str | None = None
    is_paid: bool | None = None
    payment_method: PaymentMethod | None = None
    note: str | None = None


class BookingSlot(BaseModel):
    san_id: int
    start_time: str
    end_time: str
    don_gia: float
    ghi_chu: str | None = None

    class Config:
        from_attributes = True


class Booking(BaseModel):
    id: int
    ma_pd: str
    user_id: int | None = None
    created_by: int | None = None
    ngay_su_dung: date
    status: str
    payment_method: str | None = None
    is_paid: bool
    note: str | None = None
    contact_snapshot: dict | None = None
    tien_san: float
    tien_dich_vu: float
    tong_tien: float
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BookingWithSlots(Booking):
    slots: list[BookingSlot] = Field(default_factory=list)


class BookingCreated(BaseModel):
    booking: Booking
    slots: list[BookingSlot]
    services: list[ServicePrice]
    total: float


class ServiceInfo(BaseModel):
    id: int
    ma_dv: str | None = None
    ten_dv: str | None = None
    loai: str | None = None
    don_gia: float


class BookingServiceDetail(BaseModel):
    dich_vu_id: int
    so_luong: int
    don_gia: float
    lineTotal: float
    dv: ServiceInfo


class BookingTotals(BaseModel):
    tien_san: float
    tien_dich_vu: float
    tong_tien: float


class BookingDetail(BaseModel):
    booking: Booking
    slots: list[BookingSlot]
    services: list[BookingServiceDetail]
    totals: BookingTotals


class ConflictEntry(BaseModel):
    ma_pd: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    trang_thai: str | None = None
    reason: str


class CourtAvailability(BaseModel):
    san_id: int
    ma_san: str
    ten_san: str
    suc_chua: int
    is_available: bool
    bookings: list[ConflictEntry] = Field(default_factory=list)


class HourSlot(BaseModel):
    start_time: str
    end_time: str
    is_available: bool


class CourtDaySlots(BaseModel):
    san_id: int
    ma_san: str
    ten_san: str
    date: date
    slots: list[HourSlot]
    booked_slots: list[ConflictEntry]
