from datetime import datetime, timedelta, timezone

import pytest

from app.db import models, schemas
from app.services import table_service


@pytest.fixture()
def table(db_session):
    table = models.DiningTable(tenban="Bàn 1", soghe=4, trangthai=models.TableState.Trong, version=1)
    db_session.add(table)
    db_session.commit()
    return table


def _reservation(maban, when=None, songuoi=2):
    return schemas.TableReservationCreate(
        maban=maban,
        songuoi=songuoi,
        thoigian_dat=when or datetime.now(timezone.utc) + timedelta(days=1),
        guest_hoten="Phạm Bình",
        guest_sodienthoai="0987654321",
    )


def test_status_update_with_current_version_bumps_it(db_session, table):
    updated = table_service.update_status(db_session, table.maban, models.TableState.Lock, version=1)

    assert updated.trangthai == models.TableState.Lock
    assert updated.version == 2


def test_stale_version_is_a_conflict(db_session, table):
    table_service.update_status(db_session, table.maban, models.TableState.DangSuDung, version=1)

    with pytest.raises(table_service.TableError) as exc_info:
        table_service.update_status(db_session, table.maban, models.TableState.Trong, version=1)

    assert exc_info.value.status_code == 409
    assert db_session.get(models.DiningTable, table.maban).trangthai == models.TableState.DangSuDung


def test_reservation_lifecycle_exposes_legacy_labels(db_session, table, make_user):
    staff = make_user("phucvu", models.UserRole.staff)
    reservation = table_service.create_reservation(db_session, _reservation(table.maban))

    assert reservation.maphieu.startswith("PB")
    assert reservation.trangthai == "DaDat"
    assert table.trangthai == models.TableState.DaDat

    table_service.change_reservation_status(db_session, reservation, models.BookingStatus.confirmed, actor=staff)
    assert reservation.trangthai == "DaXacNhan"

    with pytest.raises(table_service.TableError):
        table_service.change_reservation_status(db_session, reservation, models.BookingStatus.canceled, actor=staff)

    table_service.change_reservation_status(db_session, reservation, models.BookingStatus.received, actor=staff)
    assert reservation.trangthai == "DaNhan"
    assert table.trangthai == models.TableState.DangSuDung


def test_locked_table_cannot_be_reserved(db_session, table):
    table_service.update_status(db_session, table.maban, models.TableState.Lock, version=1)

    with pytest.raises(table_service.TableError):
        table_service.create_reservation(db_session, _reservation(table.maban))


def test_party_larger_than_table_is_rejected(db_session, table):
    with pytest.raises(table_service.TableError):
        table_service.create_reservation(db_session, _reservation(table.maban, songuoi=6))


def test_overdue_reservations_expire_after_grace(db_session, table):
    now = datetime.now(timezone.utc)
    late = table_service.create_reservation(db_session, _reservation(table.maban, when=now - timedelta(minutes=45)))
    upcoming = table_service.create_reservation(db_session, _reservation(table.maban, when=now - timedelta(minutes=10)))

    assert table_service.expire_overdue(db_session, grace_minutes=30, now=now) == 1
    assert late.trangthai == "QuaHan"
    assert upcoming.status == models.BookingStatus.pending


def test_table_status_endpoint_returns_conflict_on_stale_version(api_client, make_user, auth_header):
    client, SessionLocal = api_client
    staff = make_user("quanly", models.UserRole.manager)
    headers = auth_header(staff)
    created = client.post("/api/tables", json={"tenban": "Bàn VIP", "soghe": 8}, headers=headers).json()

    first = client.put(
        f"/api/tables/{created['maban']}/status",
        json={"trangthai": "DangSuDung", "version": created["version"]},
        headers=headers,
    )
    second = client.put(
        f"/api/tables/{created['maban']}/status",
        json={"trangthai": "Trong", "version": created["version"]},
        headers=headers,
    )

    assert first.status_code == 200
    assert first.json()["version"] == created["version"] + 1
    assert second.status_code == 409


def test_public_table_reservation_roundtrip(api_client, db_session, table):
    client, _ = api_client

    created = client.post(
        "/api/public/table-reservations",
        json={
            "maban": table.maban,
            "songuoi": 2,
            "thoigian_dat": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
            "guest_hoten": "Lê Hà",
            "guest_sodienthoai": "0912345678",
        },
    )
    assert created.status_code == 201
    token = created.json()["maphieu"]

    fetched = client.get(f"/api/public/table-reservations/{token}")
    assert fetched.status_code == 200
    assert fetched.json()["trangthai"] == "DaDat"
    assert fetched.json()["status"] == "pending"
