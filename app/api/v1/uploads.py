import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from app.api.deps import CurrentUserDep, EntityServiceDep
from app.api.v1.schemas import ImageDeleteResponse, ImageUrlRequest, UploadedFile, UploadResponse
from app.core.exceptions import UploadRejectedError
from app.core.metrics import record_image_upload
from app.core.settings import settings
from app.services.media import get_media_store, validate_image_upload


logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


def _upload_failure(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": 0, "message": message})


@router.post("/upload-image", response_model=UploadResponse)
def upload_image(image: UploadFile | None = File(default=None), user=CurrentUserDep):
    if image is None:
        record_image_upload("missing")
        return _upload_failure("No file uploaded")

    image_bytes = image.file.read(settings.upload_max_bytes + 1)
    try:
        validate_image_upload(image.filename, image.content_type, len(image_bytes), settings.upload_max_bytes)
    except UploadRejectedError as exc:
        record_image_upload("rejected")
        logger.info(
            "image_upload_rejected",
            extra={"upload_name": image.filename, "content_type": image.content_type, "reason": exc.detail},
        )
        return _upload_failure(exc.detail, exc.status_code)

    _, url = get_media_store().save_image_bytes(image_bytes, image.content_type or "application/octet-stream")
    record_image_upload("stored")
    logger.info("image_uploaded", extra={"url": url, "bytes": len(image_bytes)})
    return UploadResponse(file=UploadedFile(url=url))


@router.post("/upload-image-by-url", response_model=UploadResponse)
def upload_image_by_url(payload: ImageUrlRequest, user=CurrentUserDep):
    if not payload.url:
        return _upload_failure("No URL provided")
    return UploadResponse(file=UploadedFile(url=payload.url))


@router.delete("/delete-image", response_model=ImageDeleteResponse)
def delete_image(payload: ImageUrlRequest, service=EntityServiceDep):
    if not payload.url:
        return _upload_failure("No URL provided")
    deleted = service.delete_owned_image(payload.url)
    logger.info("image_deleted", extra={"url": payload.url, "deleted": deleted})
    return ImageDeleteResponse(deleted=deleted)
