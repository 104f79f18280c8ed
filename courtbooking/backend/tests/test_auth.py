from app.core import security
from app.db import models
from app.services.admin import ensure_admin_exists


def test_register_login_and_me(api_client):
    client, _ = api_client

    registered = client.post(
        "/api/auth/register",
        json={"username": "ngoc", "password": "matkhau1", "full_name": "Ngọc Anh", "phone": "0933444555"},
    )
    assert registered.status_code == 201
    assert registered.json()["user"]["role"] == "customer"

    duplicate = client.post(
        "/api/auth/register",
        json={"username": "ngoc", "password": "matkhau1", "full_name": "Khác"},
    )
    assert duplicate.status_code == 400

    login = client.post("/api/auth/login", json={"username": "ngoc", "password": "matkhau1"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "ngoc"


def test_bad_credentials_return_unauthorized(api_client):
    client, _ = api_client

    response = client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})

    assert response.status_code == 401


def test_short_password_is_a_validation_error(api_client):
    client, _ = api_client

    response = client.post(
        "/api/auth/register", json={"username": "abc", "password": "123", "full_name": "Abc"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_creates_default_manager(db_session):
    ensure_admin_exists(db_session, "admin_login", "strong_password")

    created = db_session.query(models.User).filter_by(username="admin_login").one()

    assert created.role == models.UserRole.manager
    assert security.verify_password("strong_password", created.password_hash)


def test_updates_password_and_role_for_existing_manager(db_session):
    ensure_admin_exists(db_session, "admin_login", "old_password")
    existing = db_session.query(models.User).filter_by(username="admin_login").one()
    existing.role = models.UserRole.staff
    db_session.commit()

    ensure_admin_exists(db_session, "admin_login", "new_password")

    managers = db_session.query(models.User).filter_by(username="admin_login").all()
    assert len(managers) == 1
    assert managers[0].role == models.UserRole.manager
    assert security.verify_password("new_password", managers[0].password_hash)


def test_token_normalization():
    assert security.normalize_public_token("  #PD12345678ABCD ") == "PD12345678ABCD"
    assert security.normalize_public_token("PD12345678ABCD") == "PD12345678ABCD"
    assert security.normalize_public_token("") == ""
