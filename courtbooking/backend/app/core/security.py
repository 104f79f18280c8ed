import secrets
import string
import time
from datetime import datetime, timedelta
from typing import Any, Dict

from jose import jwt
from passlib.context import CryptContext

from ..config import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
ALGORITHM = "HS256"

_TOKEN_ALPHABET = string.ascii_uppercase + string.digits


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_min))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])


def generate_public_token(prefix: str) -> str:
    """Guest-facing booking code, e.g. ``PD12345678AB3Z``."""

    millis = str(int(time.time() * 1000))[-8:]
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(4))
    return f"{prefix}{millis}{suffix}"


def normalize_public_token(raw: str) -> str:
    """Strip surrounding whitespace and a decorative leading ``#``."""

    value = (raw or "").strip()
    if value.startswith("#"):
        value = value[1:].strip()
    return value
