from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile
from ...api import deps
from ...config import get_settings
from ...core.constants import MSG_TOO_MANY_FILES, UPLOAD_MAX_FILES, UPLOAD_SUBDIRS
from ...db import models
from ...services import storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/{kind}", status_code=status.HTTP_201_CREATED)
async def upload_image(
    kind: str,
    request: Request,
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    if kind not in UPLOAD_SUBDIRS:
        raise HTTPException(status_code=404, detail="Loại upload không hợp lệ")
    form = await request.form()
    files = [(field, value) for field, value in form.multi_items() if isinstance(value, UploadFile)]
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Không có file được upload")
    if len(files) > UPLOAD_MAX_FILES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MSG_TOO_MANY_FILES)
    field, upload = files[0]
    # one byte past the limit is enough to reject oversized files
    content = await upload.read(get_settings().upload_max_bytes + 1)
    try:
        path, filename = storage.save_image(
            kind, content, upload.content_type, upload.filename, field=field
        )
    except storage.UploadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    replaced = form.get("replace")
    if isinstance(replaced, str):
        storage.delete_old_image(replaced)
    return {"path": path, "filename": filename}
