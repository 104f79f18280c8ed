from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

PHONE_PATTERN = r"^[0-9]{10,11}$"


class UserRegister(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)


class UserLogin(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class User(BaseModel):
    id: int
    username: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User


class ContactBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    address: str | None = None
    note: str | None = None
    is_default: bool = False


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    address: str | None = None
    note: str | None = None
    is_default: bool | None = None


class Contact(ContactBase):
    id: int
    user_id: int
    email: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
