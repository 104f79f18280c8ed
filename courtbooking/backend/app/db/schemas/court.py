from pydantic import BaseModel, Field, field_validator

from ..models.court import ServiceKind


class CourtBase(BaseModel):
    ma_san: str = Field(min_length=1, max_length=50)
    ten_san: str = Field(min_length=1, max_length=200)
    suc_chua: int = Field(default=4, ge=1, le=10)
    ghi_chu: str | None = None


class CourtCreate(CourtBase):
    pass


class CourtUpdate(BaseModel):
    ma_san: str | None = Field(default=None, min_length=1, max_length=50)
    ten_san: str | None = Field(default=None, min_length=1, max_length=200)
    trang_thai: bool | None = None
    suc_chua: int | None = Field(default=None, ge=1, le=10)
    ghi_chu: str | None = None


class Court(CourtBase):
    id: int
    trang_thai: bool

    class Config:
        from_attributes = True


class ServiceBase(BaseModel):
    ma_dv: str = Field(min_length=1, max_length=50)
    ten_dv: str = Field(min_length=1, max_length=200)
    loai: ServiceKind
    don_gia: float = Field(ge=0)
    ghi_chu: str | None = None

    @field_validator("loai", mode="before")
    @classmethod
    def normalize_kind(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    ma_dv: str | None = Field(default=None, min_length=1, max_length=50)
    ten_dv: str | None = Field(default=None, min_length=1, max_length=200)
    loai: ServiceKind | None = None
    don_gia: float | None = Field(default=None, ge=0)
    ghi_chu: str | None = None


class Service(ServiceBase):
    id: int

    class Config:
        from_attributes = True
