from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, HTMLResponse

from diaries.application.rendering import UPLOAD_FORM
from diaries.application.services import UploadLimits, build_upload, generate_diary, get_diary
from diaries.application.store import DiaryStore
from diaries.domain.entities import ImageBlob
from diaries.interfaces.schemas import DiaryResponse, GenerateDiaryResponse
from shared.dependencies import get_diary_store, get_diary_template, get_upload_limits
from shared.exceptions import ValidationError

router = APIRouter(tags=["diaries"])


def _diary_url(slug: str) -> str:
    return f"/generated-diaries/{slug}"


@router.get("/", include_in_schema=False)
async def upload_form():
    return FileResponse(UPLOAD_FORM)


@router.post("/generate", response_model=GenerateDiaryResponse, status_code=201)
async def generate(
    images: list[UploadFile] = File(default=[]),
    partner1: str = Form(""),
    partner2: str = Form(""),
    store: DiaryStore = Depends(get_diary_store),
    template: str = Depends(get_diary_template),
    limits: UploadLimits = Depends(get_upload_limits),
):
    blobs = []
    for image in images:
        if image.size is not None and image.size > limits.max_image_bytes:
            raise ValidationError(f"Image is too large: {image.filename}")
        # One byte past the limit is enough for build_upload to reject it
        data = await image.read(limits.max_image_bytes + 1)
        blobs.append(
            ImageBlob(
                filename=image.filename or "",
                content_type=image.content_type or "",
                data=data,
            )
        )
    upload = build_upload(partner1, partner2, blobs, limits)
    entry = await generate_diary(store, template, upload)
    return GenerateDiaryResponse(slug=entry.slug, url=_diary_url(entry.slug))


@router.get("/generated-diaries/{slug}", response_class=HTMLResponse)
async def view(slug: str, store: DiaryStore = Depends(get_diary_store)):
    diary = await get_diary(store, slug.removesuffix(".html"))
    return HTMLResponse(content=diary.content)


@router.get("/api/diaries/{slug}", response_model=DiaryResponse)
async def metadata(slug: str, store: DiaryStore = Depends(get_diary_store)):
    diary = await get_diary(store, slug)
    return DiaryResponse(
        slug=diary.entry.slug,
        partner1=diary.entry.partner1,
        partner2=diary.entry.partner2,
        created_at=diary.entry.created_at,
        url=_diary_url(diary.entry.slug),
    )
