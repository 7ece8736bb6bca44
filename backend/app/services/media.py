"""Media store: pushes question images to Cloudinary and returns their URLs."""

import io
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import cloudinary
import cloudinary.uploader
from starlette.datastructures import FormData, UploadFile

from app.core.app_exceptions import InvalidUpload, MediaUploadError
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

TITLE_FOLDER = "questions/title"
OPTIONS_FOLDER = "questions/options"
EXPLANATION_FOLDER = "questions/explanation"

# Multipart field names that may carry images, in upload order
TITLE_IMAGE_FIELD = "titleImage"
OPTION_IMAGE_FIELDS = tuple(f"optionImage{i}" for i in range(4))
EXPLANATION_IMAGE_FIELD = "explanationImage"
IMAGE_FIELDS = (TITLE_IMAGE_FIELD, *OPTION_IMAGE_FIELDS, EXPLANATION_IMAGE_FIELD)


@dataclass(frozen=True)
class UploadedImage:
    """An image attachment read into memory."""

    field: str
    filename: str
    content_type: str
    data: bytes


class MediaStore(Protocol):
    def upload(self, data: bytes, folder: str) -> str:
        """Store bytes under folder and return a stable public URL."""
        ...


class CloudinaryMediaStore:
    """Cloudinary-backed media store."""

    def __init__(self, root_folder: str | None = None):
        self.root_folder = (root_folder or settings.MEDIA_ROOT_FOLDER).strip("/")
        if settings.cloudinary_configured:
            cloudinary.config(
                cloud_name=settings.CLOUDINARY_CLOUD_NAME,
                api_key=settings.CLOUDINARY_API_KEY,
                api_secret=settings.CLOUDINARY_API_SECRET,
                secure=True,
            )
            self.is_configured = True
            logger.info("Cloudinary configured")
        else:
            self.is_configured = False
            logger.warning("Cloudinary not configured - image uploads will fail")

    def _folder(self, folder: str) -> str:
        if not self.root_folder:
            return folder
        return f"{self.root_folder}/{folder}"

    def upload(self, data: bytes, folder: str) -> str:
        if not self.is_configured:
            raise MediaUploadError("Media store is not configured")

        target = self._folder(folder)
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=target,
                resource_type="image",
            )
        except Exception as e:
            logger.error(
                "media_upload_failed",
                extra={"folder": target, "error": str(e)},
            )
            raise MediaUploadError("Image upload failed", {"folder": target}) from e

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise MediaUploadError("Image upload returned no URL", {"folder": target})

        logger.info("media_uploaded", extra={"folder": target, "public_id": result.get("public_id")})
        return url


@lru_cache(maxsize=1)
def _default_media_store() -> CloudinaryMediaStore:
    return CloudinaryMediaStore()


def get_media_store() -> MediaStore:
    """Dependency returning the process-wide media store."""
    return _default_media_store()


async def collect_image_uploads(
    form: FormData, max_bytes: int | None = None
) -> dict[str, UploadedImage]:
    """Read image attachments from a multipart form.

    Only the known image fields are considered. Empty file parts (a form
    submitted with no file chosen) are ignored.
    """
    limit = max_bytes or settings.MAX_UPLOAD_BYTES
    uploads: dict[str, UploadedImage] = {}

    for key, value in form.multi_items():
        if not isinstance(value, UploadFile) or key not in IMAGE_FIELDS:
            continue
        data = await value.read()
        if not data and not value.filename:
            continue

        content_type = value.content_type or ""
        if not content_type.startswith("image/"):
            raise InvalidUpload(
                "Only image files are allowed",
                {"field": key, "content_type": content_type},
            )
        if len(data) > limit:
            raise InvalidUpload(
                f"Image exceeds the {limit // (1024 * 1024)}MB limit",
                {"field": key, "size": len(data)},
            )

        uploads[key] = UploadedImage(
            field=key,
            filename=value.filename or "",
            content_type=content_type,
            data=data,
        )

    return uploads
