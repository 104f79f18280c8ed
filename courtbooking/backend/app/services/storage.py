from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path

from ..config import get_settings
from ..core.constants import MSG_FILE_TOO_LARGE, MSG_IMAGE_ONLY, UPLOAD_SUBDIRS

logger = logging.getLogger(__name__)


class UploadError(Exception):
    pass


def images_root() -> Path:
    return Path(get_settings().upload_dir).resolve() / "images"


def ensure_upload_directory(subdir: Path | str | None = None) -> Path:
    base = images_root()
    if subdir:
        base = base / Path(subdir)
    base.mkdir(parents=True, exist_ok=True)
    return base


def build_filename(field: str, original_name: str | None = None) -> str:
    suffix = Path(original_name).suffix if original_name else ""
    unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{field}-{unique}{suffix}"


def save_image(
    kind: str,
    content: bytes,
    content_type: str | None,
    original_name: str | None,
    field: str = "image",
) -> tuple[str, str]:
    """Validate and store an uploaded image, returning ``(public_path, filename)``."""
    if kind not in UPLOAD_SUBDIRS:
        raise UploadError(f"Loại upload không hợp lệ: {kind}")
    if not content_type or not content_type.startswith("image/"):
        raise UploadError(MSG_IMAGE_ONLY)
    if len(content) > get_settings().upload_max_bytes:
        raise UploadError(MSG_FILE_TOO_LARGE)

    subdir = UPLOAD_SUBDIRS[kind]
    filename = build_filename(field, original_name)
    target = ensure_upload_directory(subdir) / filename
    target.write_bytes(content)
    logger.info("Image stored", extra={"upload_path": str(target), "size": len(content)})
    return image_url(filename, subdir), filename


def image_url(filename: str | None, type: str = "dishes") -> str | None:
    if not filename:
        return None
    if filename.startswith("http") or filename.startswith("/images"):
        return filename
    return f"/images/{type}/{filename}"


def delete_old_image(image_path: str | None) -> None:
    if not image_path:
        return
    root = images_root()
    if image_path.startswith("/images/"):
        path = (root / image_path[len("/images/"):]).resolve()
    else:
        path = Path(image_path).resolve()
    if not path.is_relative_to(root):
        logger.warning("Refusing to delete file outside images", extra={"upload_path": str(path)})
        return
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not delete old image", extra={"upload_path": str(path), "error": str(exc)})
        return
    logger.info("Old image deleted", extra={"upload_path": str(path)})
