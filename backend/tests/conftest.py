import pytest
from httpx import ASGITransport, AsyncClient

from diaries.application.rendering import load_template
from diaries.application.services import UploadLimits
from diaries.application.store import DiaryStore, StoreConfig
from diaries.domain.entities import ImageBlob
from diaries.infrastructure.memory_medium import InMemoryBackingMedium
from main import app
from shared.dependencies import get_diary_store, get_diary_template, get_upload_limits

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def make_image(name: str = "photo.png", content_type: str = "image/png", data: bytes = PNG_BYTES) -> ImageBlob:
    return ImageBlob(filename=name, content_type=content_type, data=data)


@pytest.fixture
def medium():
    return InMemoryBackingMedium()


@pytest.fixture
def store(medium):
    return DiaryStore(medium, StoreConfig(payload_prefix="diaries", max_index_attempts=3))


@pytest.fixture
def template():
    return load_template()


@pytest.fixture
def limits():
    return UploadLimits(min_images=2, max_images=4, max_image_bytes=1024)


@pytest.fixture(autouse=True)
def override_dependencies(store, template, limits):
    app.dependency_overrides[get_diary_store] = lambda: store
    app.dependency_overrides[get_diary_template] = lambda: template
    app.dependency_overrides[get_upload_limits] = lambda: limits
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
