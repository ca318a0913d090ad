import re
from collections.abc import Sequence
from dataclasses import dataclass

from diaries.application.rendering import render_diary, to_data_uri
from diaries.application.store import DiaryStore
from diaries.domain.entities import Diary, DiaryEntry, DiaryUpload, ImageBlob
from shared.config import Settings
from shared.exceptions import ValidationError

DEFAULT_PARTNER1 = "Partner 1"
DEFAULT_PARTNER2 = "Partner 2"

_IMAGE_MIME_RE = re.compile(r"image/[a-z0-9.+-]+", re.IGNORECASE)


@dataclass(frozen=True)
class UploadLimits:
    min_images: int = 2
    max_images: int = 10
    max_image_bytes: int = 10 * 1024 * 1024

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadLimits":
        return cls(
            min_images=settings.MIN_IMAGES,
            max_images=settings.MAX_IMAGES,
            max_image_bytes=settings.MAX_IMAGE_BYTES,
        )


def build_upload(
    partner1: str | None,
    partner2: str | None,
    images: Sequence[ImageBlob],
    limits: UploadLimits,
) -> DiaryUpload:
    if len(images) < limits.min_images:
        raise ValidationError(f"At least {limits.min_images} images are required")
    if len(images) > limits.max_images:
        raise ValidationError(f"At most {limits.max_images} images are allowed")

    for image in images:
        if not _IMAGE_MIME_RE.fullmatch(image.content_type):
            raise ValidationError(f"Only image files are allowed: {image.filename}")
        if not image.data:
            raise ValidationError(f"Image is empty: {image.filename}")
        if len(image.data) > limits.max_image_bytes:
            raise ValidationError(f"Image is too large: {image.filename}")

    return DiaryUpload(
        partner1=(partner1 or "").strip() or DEFAULT_PARTNER1,
        partner2=(partner2 or "").strip() or DEFAULT_PARTNER2,
        images=tuple(images),
    )


async def generate_diary(store: DiaryStore, template: str, upload: DiaryUpload) -> DiaryEntry:
    image_urls = [to_data_uri(image.content_type, image.data) for image in upload.images]
    page = render_diary(template, upload.partner1, upload.partner2, image_urls)
    return await store.create(upload.partner1, upload.partner2, page.encode("utf-8"))


async def get_diary(store: DiaryStore, slug: str) -> Diary:
    return await store.resolve(slug)
