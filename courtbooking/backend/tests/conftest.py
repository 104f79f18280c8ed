import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="courtbooking-uploads-"))
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import security
from app.db import models
from app.db.session import Base, get_db
from app.main import create_app


@pytest.fixture()
def play_day() -> date:
    return date.today() + timedelta(days=2)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def catalogue(db_session):
    """Two courts, every weekday open 06:00-22:00 split into a morning and an evening shift."""
    courts = [
        models.Court(ma_san="S01", ten_san="Sân 1", suc_chua=4, trang_thai=True),
        models.Court(ma_san="S02", ten_san="Sân 2", suc_chua=4, trang_thai=True),
    ]
    db_session.add_all(courts)
    for weekday in range(7):
        frame = models.TimeFrame(
            ten_khung_gio=f"Ngày {weekday}",
            ngay_ap_dung=weekday,
            start_at="06:00",
            end_at="22:00",
            is_active=True,
        )
        frame.shifts = [
            models.Shift(ten_ca="Ca sáng", start_at="06:00", end_at="12:00", gia_theo_gio=100000, is_active=True),
            models.Shift(ten_ca="Ca tối", start_at="12:00", end_at="22:00", gia_theo_gio=150000, is_active=True),
        ]
        db_session.add(frame)
    racket = models.Service(ma_dv="DV01", ten_dv="Thuê vợt", loai=models.ServiceKind.rent, don_gia=20000)
    water = models.Service(ma_dv="DV02", ten_dv="Nước suối", loai=models.ServiceKind.buy, don_gia=10000)
    db_session.add_all([racket, water])
    db_session.commit()
    return {"courts": courts, "rent": racket, "buy": water}


@pytest.fixture()
def make_user(db_session):
    def factory(username: str, role: models.UserRole = models.UserRole.customer, **extra) -> models.User:
        user = models.User(
            username=username,
            password_hash=security.get_password_hash("secret123"),
            full_name=extra.pop("full_name", username.title()),
            role=role,
            **extra,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def auth_header():
    def build(user: models.User) -> dict:
        token = security.create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture()
def api_client(session_factory, catalogue):
    test_app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    test_app.dependency_overrides[get_db] = override_get_db
    client = TestClient(test_app)
    yield client, session_factory
    test_app.dependency_overrides.clear()
