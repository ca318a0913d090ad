from diaries.domain.repository import BackingMedium
from diaries.infrastructure.filesystem_medium import FileSystemBackingMedium
from diaries.infrastructure.github_medium import GitHubBackingMedium, GitHubConfig
from diaries.infrastructure.memory_medium import InMemoryBackingMedium
from diaries.infrastructure.sql_medium import SqlBackingMedium
from shared.config import Settings


def build_backing_medium(settings: Settings) -> BackingMedium:
    backend = settings.STORAGE_BACKEND
    if backend == "memory":
        return InMemoryBackingMedium()
    if backend == "filesystem":
        return FileSystemBackingMedium(settings.DATA_DIR, index_key=settings.INDEX_KEY)
    if backend == "tempdir":
        return FileSystemBackingMedium.ephemeral(index_key=settings.INDEX_KEY)
    if backend == "database":
        return SqlBackingMedium.from_url(settings.DATABASE_URL)
    if backend == "github":
        return GitHubBackingMedium(GitHubConfig.from_settings(settings))
    raise ValueError(f"Unknown storage backend: {backend}")
