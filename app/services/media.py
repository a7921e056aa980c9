import logging
import os
import re
import uuid
from pathlib import Path
from urllib.parse import urlparse

import httpx

from app.core.exceptions import ConfigurationError, MediaStorageError, UploadRejectedError
from app.core.settings import settings


logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"jpeg", "jpg", "png", "gif", "webp"}


def _ext_from_mime(mime_type: str) -> str:
    mime = (mime_type or "").lower()
    if mime == "image/png":
        return ".png"
    if mime in {"image/jpeg", "image/jpg"}:
        return ".jpg"
    if mime == "image/webp":
        return ".webp"
    if mime == "image/gif":
        return ".gif"
    return ".bin"


def validate_image_upload(filename: str | None, content_type: str | None, size: int, max_bytes: int) -> None:
    """Reject anything whose extension or MIME type is not an allowed image type."""
    extension = Path(filename or "").suffix.lower().lstrip(".")
    mime = (content_type or "").lower()
    mime_major, _, mime_minor = mime.partition("/")
    if extension not in ALLOWED_IMAGE_TYPES or mime_major != "image" or mime_minor not in ALLOWED_IMAGE_TYPES:
        raise UploadRejectedError("Only image files are allowed")
    if size > max_bytes:
        raise UploadRejectedError(f"File exceeds the {max_bytes} byte limit", status_code=413)


class LocalMediaStore:
    def __init__(self, root_dir: str, url_prefix: str):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")

    def save_image_bytes(self, image_bytes: bytes, mime_type: str) -> tuple[str, str]:
        os.makedirs(self.root_dir, exist_ok=True)

        file_id = str(uuid.uuid4())
        ext = _ext_from_mime(mime_type)
        filename = f"{file_id}{ext}"
        file_path = os.path.join(self.root_dir, filename)

        with open(file_path, "wb") as f:
            f.write(image_bytes)

        url = f"{self.url_prefix}/{filename}"
        return file_path, url

    def _path_for(self, url: str) -> Path | None:
        path = urlparse(url).path
        if not path.startswith(f"{self.url_prefix}/"):
            return None
        name = path[len(self.url_prefix) + 1:]
        root = Path(self.root_dir).resolve()
        candidate = (root / name).resolve()
        if root not in candidate.parents:
            return None
        return candidate

    def delete_image(self, url: str) -> bool:
        """Remove a file this store served; URLs from elsewhere are ignored."""
        file_path = self._path_for(url)
        if file_path is None or not file_path.exists():
            return False
        try:
            file_path.unlink()
        except OSError as exc:
            raise MediaStorageError(f"could not delete {file_path}: {exc}") from exc
        return True


class ObjectStorageMediaStore:
    """Bucket store speaking the Supabase storage REST API."""

    def __init__(self, base_url: str, api_key: str, bucket: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self.timeout = timeout
        self._public_re = re.compile(rf"/storage/v1/object/public/{re.escape(bucket)}/(.+)$")

    def _headers(self, **extra: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "apikey": self.api_key, **extra}

    def public_url(self, object_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_path}"

    def save_image_bytes(self, image_bytes: bytes, mime_type: str) -> tuple[str, str]:
        object_path = f"uploads/{uuid.uuid4()}{_ext_from_mime(mime_type)}"
        try:
            resp = httpx.post(
                f"{self.base_url}/storage/v1/object/{self.bucket}/{object_path}",
                content=image_bytes,
                headers=self._headers(**{"Content-Type": mime_type, "x-upsert": "false"}),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise MediaStorageError(f"upload to bucket {self.bucket} failed: {exc}", detail="Failed to upload image") from exc
        return object_path, self.public_url(object_path)

    def object_path(self, url: str) -> str | None:
        match = self._public_re.search(urlparse(url).path)
        return match.group(1) if match else None

    def delete_image(self, url: str) -> bool:
        object_path = self.object_path(url)
        if object_path is None:
            return False
        try:
            resp = httpx.request(
                "DELETE",
                f"{self.base_url}/storage/v1/object/{self.bucket}",
                json={"prefixes": [object_path]},
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise MediaStorageError(f"delete of {object_path} failed: {exc}") from exc
        return True


def get_media_store() -> LocalMediaStore | ObjectStorageMediaStore:
    if settings.media_backend == "object":
        if not settings.object_storage_url or not settings.object_storage_api_key:
            raise ConfigurationError("object storage is not configured", detail="Image storage not configured")
        return ObjectStorageMediaStore(
            base_url=settings.object_storage_url,
            api_key=settings.object_storage_api_key,
            bucket=settings.object_storage_bucket,
            timeout=settings.object_storage_timeout_seconds,
        )
    if settings.media_backend != "local":
        raise ConfigurationError(f"unknown media backend {settings.media_backend!r}")
    return LocalMediaStore(root_dir=settings.media_root, url_prefix=settings.media_url_prefix)
