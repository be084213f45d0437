# routes/images.py

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

import schemas
from cloudinary_service import CloudinaryService, ImageFile
from deps import get_image_service
from errors import PartialUploadFailure

router = APIRouter(
    prefix="/api/images",
    tags=["Images"],
)


@router.post("/", response_model=schemas.ImageUploadResponse)
def upload_images(files: List[UploadFile] = File(...),
                  service: CloudinaryService = Depends(get_image_service)):
    """
    Upload files in waves of three. URLs come back in upload order; files that
    failed are listed separately. Fails only when no file could be uploaded.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded.")
    images = [
        ImageFile(filename=f.filename or f"image-{i}", content=f.file.read(),
                  content_type=f.content_type or "application/octet-stream")
        for i, f in enumerate(files)
    ]
    report = service.upload_many(images)
    if report.failed and not report.urls:
        raise PartialUploadFailure(report.failed, report.total)
    warning = str(PartialUploadFailure(report.failed, report.total)) if report.failed else None
    return {"urls": report.urls, "failed": report.failed, "warning": warning}


@router.delete("/", response_model=schemas.ImageDeleteResponse)
def delete_image(url: str = Query(...), service: CloudinaryService = Depends(get_image_service)):
    """
    Ask the image host to delete `url`. `deleted` is false when the host did not
    confirm; the caller carries on either way.
    """
    return {"url": url, "deleted": service.delete_image(url)}
