import uuid

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from core.config import settings
from schemas.upload import Base64UploadIn, UploadOut
from security.admin import require_admin
from services.storage import (
    ALLOWED_EXTENSIONS,
    ImageStorageService,
    decode_base64_image,
    extension_from_filename,
    get_image_storage,
    sniff_image_extension,
)

router = APIRouter(prefix="/upload", tags=["upload"], dependencies=[Depends(require_admin)])


@router.post("/image", response_model=UploadOut)
async def upload_image(file: UploadFile = File(...), storage: ImageStorageService = Depends(get_image_storage)):
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")

    extension = extension_from_filename(file.filename) or sniff_image_extension(data)
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail="File type not allowed")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    ok, url, error = storage.save(data, f"{uuid.uuid4()}.{extension}")
    if not ok:
        raise HTTPException(status_code=500, detail=error)
    return UploadOut(url=url)


@router.post("/base64", response_model=UploadOut)
def upload_base64(data: Base64UploadIn, storage: ImageStorageService = Depends(get_image_storage)):
    if not data.base64:
        raise HTTPException(status_code=400, detail="base64 data required")
    try:
        content, extension = decode_base64_image(data.base64)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    ok, url, error = storage.save(content, data.filename or f"{uuid.uuid4()}.{extension}")
    if not ok:
        raise HTTPException(status_code=500, detail=error)
    return UploadOut(url=url)
