from diaries.domain.entities import DiaryEntry, IndexSnapshot
from shared.exceptions import ConflictError


class InMemoryBackingMedium:
    """Process-local medium; the revision is a write counter."""

    def __init__(self):
        self.entries: dict[str, DiaryEntry] = {}
        self.payloads: dict[str, bytes] = {}
        self.version = 0

    @property
    def revision(self) -> str | None:
        return str(self.version) if self.version else None

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def fetch_index(self) -> IndexSnapshot:
        return IndexSnapshot(entries=dict(self.entries), revision=self.revision)

    async def write_index(
        self, entries: dict[str, DiaryEntry], previous_revision: str | None
    ) -> str:
        if previous_revision != self.revision:
            raise ConflictError(
                f"Index revision {previous_revision} is stale (current {self.revision})"
            )
        self.entries = dict(entries)
        self.version += 1
        return str(self.version)

    async def write_payload(self, key: str, data: bytes) -> None:
        self.payloads[key] = bytes(data)

    async def fetch_payload(self, key: str) -> bytes | None:
        return self.payloads.get(key)
