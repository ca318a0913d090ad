from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class DiaryEntry:
    slug: str
    partner1: str
    partner2: str
    created_at: datetime
    payload_key: str


@dataclass(frozen=True)
class Diary:
    entry: DiaryEntry
    content: bytes

    @property
    def slug(self) -> str:
        return self.entry.slug


@dataclass(frozen=True)
class IndexSnapshot:
    """The slug index as read from a backing medium.

    ``revision`` is the medium's opaque version token, or ``None`` when no
    index has been written yet. It is handed back on the next write so the
    medium can reject stale updates.
    """

    entries: dict[str, DiaryEntry] = field(default_factory=dict)
    revision: str | None = None

    def with_entry(self, entry: DiaryEntry) -> dict[str, DiaryEntry]:
        return {**self.entries, entry.slug: entry}


@dataclass(frozen=True)
class ImageBlob:
    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class DiaryUpload:
    partner1: str
    partner2: str
    images: tuple[ImageBlob, ...]
