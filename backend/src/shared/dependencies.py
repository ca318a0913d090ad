from functools import lru_cache

from diaries.application.rendering import load_template
from diaries.application.services import UploadLimits
from diaries.application.store import DiaryStore, StoreConfig
from diaries.infrastructure.factory import build_backing_medium
from shared.config import settings


@lru_cache
def get_diary_store() -> DiaryStore:
    return DiaryStore(build_backing_medium(settings), StoreConfig.from_settings(settings))


@lru_cache
def get_diary_template() -> str:
    return load_template(settings.TEMPLATE_PATH)


def get_upload_limits() -> UploadLimits:
    return UploadLimits.from_settings(settings)


async def close_diary_store() -> None:
    if get_diary_store.cache_info().currsize:
        await get_diary_store().close()
        get_diary_store.cache_clear()
