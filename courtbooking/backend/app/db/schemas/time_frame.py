from pydantic import BaseModel, Field, model_validator

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class _TimeRange(BaseModel):
    start_at: str = Field(pattern=HHMM_PATTERN)
    end_at: str = Field(pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self


class TimeFrameCreate(_TimeRange):
    ten_khung_gio: str = Field(min_length=2, max_length=255)
    ngay_ap_dung: int = Field(ge=0, le=6)


class TimeFrameUpdate(BaseModel):
    ten_khung_gio: str | None = Field(default=None, min_length=2, max_length=255)
    ngay_ap_dung: int | None = Field(default=None, ge=0, le=6)
    start_at: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_at: str | None = Field(default=None, pattern=HHMM_PATTERN)
    is_active: bool | None = None


class ShiftCreate(_TimeRange):
    khung_gio_id: int = Field(gt=0)
    ten_ca: str = Field(min_length=2, max_length=255)
    gia_theo_gio: float = Field(gt=0)


class ShiftUpdate(BaseModel):
    ten_ca: str | None = Field(default=None, min_length=2, max_length=255)
    start_at: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_at: str | None = Field(default=None, pattern=HHMM_PATTERN)
    gia_theo_gio: float | None = Field(default=None, gt=0)
    is_active: bool | None = None


class Shift(BaseModel):
    id: int
    khung_gio_id: int
    ten_ca: str
    start_at: str
    end_at: str
    gia_theo_gio: float
    is_active: bool

    class Config:
        from_attributes = True


class TimeFrame(BaseModel):
    id: int
    ten_khung_gio: str
    ngay_ap_dung: int
    start_at: str
    end_at: str
    is_active: bool
    shifts: list[Shift] = Field(default_factory=list)

    class Config:
        from_attributes = True
