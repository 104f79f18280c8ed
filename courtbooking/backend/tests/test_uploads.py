from pathlib import Path

import pytest

from app.config import get_settings
from app.core.constants import MSG_FILE_TOO_LARGE, MSG_IMAGE_ONLY, MSG_TOO_MANY_FILES
from app.db import models
from app.services import storage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture()
def staff_headers(make_user, auth_header):
    return auth_header(make_user("bep", models.UserRole.staff))


def test_image_upload_is_stored_and_served(api_client, staff_headers):
    client, _ = api_client

    response = client.post(
        "/api/uploads/dish",
        files={"image": ("pho.png", PNG_BYTES, "image/png")},
        headers=staff_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["path"] == f"/images/dishes/{body['filename']}"
    assert body["filename"].startswith("image-") and body["filename"].endswith(".png")
    stored = Path(get_settings().upload_dir).resolve() / "images" / "dishes" / body["filename"]
    assert stored.read_bytes() == PNG_BYTES
    assert client.get(body["path"]).content == PNG_BYTES


def test_non_image_is_rejected(api_client, staff_headers):
    client, _ = api_client

    response = client.post(
        "/api/uploads/buffet",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == MSG_IMAGE_ONLY
    assert "hình ảnh" in response.json()["detail"]


def test_file_over_five_megabytes_is_rejected(api_client, staff_headers):
    client, _ = api_client

    response = client.post(
        "/api/uploads/dish",
        files={"image": ("big.jpg", b"\xff" * (6 * 1024 * 1024), "image/jpeg")},
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == MSG_FILE_TOO_LARGE


def test_more_than_one_file_is_rejected(api_client, staff_headers):
    client, _ = api_client

    response = client.post(
        "/api/uploads/dish",
        files=[
            ("image", ("a.png", PNG_BYTES, "image/png")),
            ("image", ("b.png", PNG_BYTES, "image/png")),
        ],
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == MSG_TOO_MANY_FILES


def test_upload_requires_staff(api_client):
    client, _ = api_client

    response = client.post("/api/uploads/dish", files={"image": ("a.png", PNG_BYTES, "image/png")})

    assert response.status_code == 401


def test_image_url_keeps_absolute_paths():
    assert storage.image_url(None) is None
    assert storage.image_url("https://cdn.example.com/a.png") == "https://cdn.example.com/a.png"
    assert storage.image_url("/images/buffet/a.png") == "/images/buffet/a.png"
    assert storage.image_url("a.png", "buffet") == "/images/buffet/a.png"


def test_delete_old_image_removes_file():
    path, filename = storage.save_image("buffet", PNG_BYTES, "image/png", "old.png")
    stored = storage.images_root() / "buffet" / filename
    assert stored.exists()

    storage.delete_old_image(path)
    storage.delete_old_image(path)

    assert not stored.exists()


def test_upload_with_replace_deletes_previous_image(api_client, staff_headers):
    client, _ = api_client
    old_path, old_filename = storage.save_image("dish", PNG_BYTES, "image/png", "old.png")
    old_file = storage.images_root() / "dishes" / old_filename

    response = client.post(
        "/api/uploads/dish",
        files={"image": ("new.png", PNG_BYTES, "image/png")},
        data={"replace": old_path},
        headers=staff_headers,
    )

    assert response.status_code == 201
    assert not old_file.exists()
    assert (storage.images_root() / "dishes" / response.json()["filename"]).exists()


def test_delete_old_image_ignores_paths_outside_images(tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("data")

    storage.delete_old_image(str(outside))
    storage.delete_old_image("/images/../../keep.txt")

    assert outside.exists()
