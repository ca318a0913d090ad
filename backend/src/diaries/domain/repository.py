from typing import Protocol

from diaries.domain.entities import DiaryEntry, IndexSnapshot


class BackingMedium(Protocol):
    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def fetch_index(self) -> IndexSnapshot: ...

    async def write_index(
        self, entries: dict[str, DiaryEntry], previous_revision: str | None
    ) -> str: ...

    async def write_payload(self, key: str, data: bytes) -> None: ...

    async def fetch_payload(self, key: str) -> bytes | None: ...
