from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...core import auth as auth_core, security
from ...db.session import get_db
from ...db import models, schemas
from .. import deps

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: models.User) -> schemas.TokenResponse:
    token = security.create_access_token({"sub": str(user.id), "role": user.role.value})
    return schemas.TokenResponse(access_token=token, user=schemas.User.model_validate(user))


@router.post("/register", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserRegister, db: Session = Depends(get_db)):
    if db.query(models.User).filter_by(username=payload.username).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tên đăng nhập đã tồn tại")
    user = models.User(
        username=payload.username,
        password_hash=security.get_password_hash(payload.password),
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        role=models.UserRole.customer,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Customer registered", extra={"user_id": user.id})
    return _token_response(user)


@router.post("/login", response_model=schemas.TokenResponse)
def login(payload: schemas.UserLogin, db: Session = Depends(get_db)):
    user = auth_core.authenticate_user(db, payload.username, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Tên đăng nhập hoặc mật khẩu không đúng",
        )
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return _token_response(user)


@router.get("/me", response_model=schemas.User)
def me(current: models.User = Depends(deps.get_current_user)):
    return current
