"""
================================================================================
GATORHUB COMMUNITY - MEDIA STORAGE
================================================================================

@file        media.py
@description Blob store, upload validation and Pillow thumbnails
@version     1.0.0

MODULE PURPOSE
================================================================================
Uploaded images are written through ``BlobStore``, a small wrapper around a
Django storage backend (local ``MEDIA_ROOT`` in development, Cloudinary in
production through ``cloudinary_storage``). Every upload gets a fresh
uuid file name, and every image except registration ID pictures gets a
thumbnail resized to fit inside a per-resource box:

    profile / group pictures    60 x 60
    listing photos             150 x 150
    thread images              250 x 250

Thumbnails are stored next to the full image with a ``tn-`` prefix:

    listing_photos/3f2b...e1.png
    listing_photos/tn-3f2b...e1.png

ERROR HANDLING
================================================================================
- ``save`` propagates storage errors; callers compensate
- ``delete`` is best-effort: failures are logged and reported as False
- ``stage_image`` removes the full image if its thumbnail cannot be stored

================================================================================
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from PIL import Image


logger = logging.getLogger(__name__)

# Pillow format -> extension used for stored names
ACCEPTED_IMAGE_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
    "GIF": ".gif",
    "AVIF": ".avif",
}

GROUP_PICTURES = "group_pictures"
LISTING_PHOTOS = "listing_photos"
PROFILE_PICTURES = "profile_pictures"
THREAD_IMAGES = "thread_images"
SFSU_ID_PICTURES = "private/sfsu_id_pictures"


# ============================================================================
# UPLOAD VALIDATION
# ============================================================================

def validate_image_upload(upload):
    """
    Form field validator for uploaded images.

    Runs after ``forms.ImageField`` has confirmed that Pillow can read the
    file, so ``upload.image`` holds the decoded image.

    Raises:
        django.core.exceptions.ValidationError: unsupported type or too large
    """
    if upload.size > settings.MAX_IMAGE_UPLOAD_SIZE:
        limit_mb = settings.MAX_IMAGE_UPLOAD_SIZE // (1024 * 1024)
        raise ValidationError(f"Your image must be at most {limit_mb} MB.", code="file_too_large")

    image = getattr(upload, "image", None)
    if image is None or image.format not in ACCEPTED_IMAGE_FORMATS:
        raise ValidationError(
            "Your image must be a JPEG, PNG, WebP, GIF or AVIF file.",
            code="invalid_image_type",
        )


def make_thumbnail(content: bytes, size: Tuple[int, int]) -> bytes:
    """Resize image bytes to fit inside ``size``, keeping the aspect ratio."""
    with Image.open(io.BytesIO(content)) as image:
        image_format = image.format or "PNG"
        image.thumbnail(size)
        if image_format == "JPEG" and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        output = io.BytesIO()
        image.save(output, format=image_format)
    return output.getvalue()


def _extension_for(upload) -> str:
    image = getattr(upload, "image", None)
    if image is not None and image.format in ACCEPTED_IMAGE_FORMATS:
        return ACCEPTED_IMAGE_FORMATS[image.format]
    return os.path.splitext(upload.name or "")[1].lower() or ".png"


# ============================================================================
# BLOB STORE
# ============================================================================

@dataclass(frozen=True)
class StagedImage:
    """Blobs written for one upload, before the owning record exists."""

    path: str
    thumbnail_path: Optional[str]
    original_name: str
    token: str

    @property
    def paths(self) -> List[str]:
        return [p for p in (self.path, self.thumbnail_path) if p]


class BlobStore:
    """
    Save and delete image blobs through a Django storage backend.

    Args:
        storage: Storage backend, ``default_storage`` when omitted

    Example:
        blobs = BlobStore()
        staged = blobs.stage_image(request.FILES["image"], LISTING_PHOTOS, (150, 150))
        ...
        blobs.delete_all(staged.paths)
    """

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        return self._storage if self._storage is not None else default_storage

    def save(self, content: bytes, destination_hint: str) -> str:
        return self.storage.save(destination_hint, ContentFile(content))

    def delete(self, path: str) -> bool:
        if not path:
            return True
        try:
            self.storage.delete(path)
            return True
        except Exception as e:
            logger.warning(f"Could not delete blob {path}: {str(e)}")
            return False

    def delete_all(self, paths) -> bool:
        results = [self.delete(path) for path in paths]
        return all(results)

    def stage_image(self, upload, folder: str, thumbnail_size: Optional[Tuple[int, int]] = None) -> StagedImage:
        token = uuid.uuid4().hex
        extension = _extension_for(upload)

        upload.seek(0)
        content = upload.read()
        path = self.save(content, f"{folder}/{token}{extension}")

        thumbnail_path = None
        if thumbnail_size:
            try:
                thumbnail = make_thumbnail(content, thumbnail_size)
                thumbnail_path = self.save(thumbnail, f"{folder}/tn-{token}{extension}")
            except Exception:
                self.delete(path)
                raise

        return StagedImage(
            path=path,
            thumbnail_path=thumbnail_path,
            original_name=os.path.basename(upload.name or ""),
            token=token,
        )
