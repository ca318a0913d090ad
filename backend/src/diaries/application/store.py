import asyncio
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from diaries.domain.entities import Diary, DiaryEntry
from diaries.domain.repository import BackingMedium
from diaries.domain.slugs import derive_base_slug, next_available_slug
from shared.config import Settings
from shared.exceptions import (
    BackingMediumUnavailableError,
    ConflictError,
    InconsistentIndexError,
    NotFoundError,
)
from shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    payload_prefix: str = "diaries"
    max_index_attempts: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoreConfig":
        return cls(
            payload_prefix=settings.PAYLOAD_PREFIX,
            max_index_attempts=settings.MAX_INDEX_ATTEMPTS,
        )

    def payload_key(self, slug: str) -> str:
        # Fresh nonce per attempt: a writer that loses the index race never
        # overwrites a payload another writer already committed.
        return f"{self.payload_prefix}/{slug}.{secrets.token_hex(6)}.html"


class DiaryStore:
    """Slug-indexed document store over a backing medium.

    Creates within one process go through a single lock; across processes
    each index write is a compare-and-swap on the medium's revision token,
    retried with a freshly computed slug when another writer got there first.
    """

    def __init__(self, medium: BackingMedium, config: StoreConfig | None = None):
        self.medium = medium
        self.config = config or StoreConfig()
        self._writer = asyncio.Lock()

    async def open(self) -> None:
        await self.medium.open()

    async def close(self) -> None:
        await self.medium.close()

    async def create(self, partner1: str, partner2: str, payload: bytes) -> DiaryEntry:
        base_slug = derive_base_slug(partner1, partner2)
        async with self._writer:
            for attempt in range(1, self.config.max_index_attempts + 1):
                snapshot = await self.medium.fetch_index()
                slug = next_available_slug(base_slug, snapshot.entries)
                entry = DiaryEntry(
                    slug=slug,
                    partner1=partner1,
                    partner2=partner2,
                    created_at=datetime.now(timezone.utc),
                    payload_key=self.config.payload_key(slug),
                )
                await self.medium.write_payload(entry.payload_key, payload)
                try:
                    await self.medium.write_index(
                        snapshot.with_entry(entry), snapshot.revision
                    )
                except ConflictError:
                    logger.warning(
                        "Index revision %s went stale while claiming %s (attempt %d)",
                        snapshot.revision,
                        slug,
                        attempt,
                    )
                    continue
                logger.info("Created diary %s (attempt %d)", slug, attempt)
                return entry

        raise ConflictError(
            f"Could not claim a slug for {base_slug} after "
            f"{self.config.max_index_attempts} attempts"
        )

    async def resolve(self, slug: str) -> Diary:
        try:
            return await self._load(slug)
        except InconsistentIndexError as exc:
            logger.error(exc.message)
            raise NotFoundError("Diary", slug) from exc
        except BackingMediumUnavailableError as exc:
            logger.warning("Could not resolve %s: %s", slug, exc.message)
            raise NotFoundError("Diary", slug) from exc

    async def _load(self, slug: str) -> Diary:
        snapshot = await self.medium.fetch_index()
        entry = snapshot.entries.get(slug)
        if entry is None:
            raise NotFoundError("Diary", slug)

        content = await self.medium.fetch_payload(entry.payload_key)
        if content is None:
            raise InconsistentIndexError(slug, entry.payload_key)
        return Diary(entry=entry, content=content)
