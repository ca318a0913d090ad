import asyncio
import hashlib
import os
import shutil
import tempfile
from pathlib import Path

from diaries.domain.entities import DiaryEntry, IndexSnapshot
from diaries.infrastructure.index_codec import decode_index, encode_index
from shared.exceptions import BackingMediumUnavailableError, ConflictError
from shared.logging import get_logger

logger = get_logger(__name__)


class FileSystemBackingMedium:
    """Stores the index and payloads under a local directory.

    The revision token is the SHA-256 of the index file. The compare and the
    replace happen under a lock, which only covers writers in this process.
    """

    def __init__(self, root: Path, index_key: str = "index.json", owns_root: bool = False):
        self.root = Path(root)
        self.owns_root = owns_root
        self.index_path = self.root / index_key
        self._lock = asyncio.Lock()

    @classmethod
    def ephemeral(cls, index_key: str = "index.json") -> "FileSystemBackingMedium":
        root = Path(tempfile.mkdtemp(prefix="diaries-"))
        logger.info("Using ephemeral diary storage at %s", root)
        return cls(root, index_key=index_key, owns_root=True)

    async def open(self) -> None:
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise BackingMediumUnavailableError(f"Cannot create {self.root}: {exc}") from exc

    async def close(self) -> None:
        # Ephemeral storage goes away with the medium
        if self.owns_root:
            await asyncio.to_thread(shutil.rmtree, self.root, ignore_errors=True)

    async def fetch_index(self) -> IndexSnapshot:
        raw = await self._read(self.index_path)
        if raw is None:
            return IndexSnapshot()
        return IndexSnapshot(entries=decode_index(raw), revision=_digest(raw))

    async def write_index(
        self, entries: dict[str, DiaryEntry], previous_revision: str | None
    ) -> str:
        data = encode_index(entries)
        async with self._lock:
            current = await self._read(self.index_path)
            current_revision = _digest(current) if current is not None else None
            if current_revision != previous_revision:
                raise ConflictError(
                    f"Index revision {previous_revision} is stale (current {current_revision})"
                )
            await self._write(self.index_path, data)
        return _digest(data)

    async def write_payload(self, key: str, data: bytes) -> None:
        await self._write(self.root / key, data)

    async def fetch_payload(self, key: str) -> bytes | None:
        return await self._read(self.root / key)

    async def _read(self, path: Path) -> bytes | None:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise BackingMediumUnavailableError(f"Cannot read {path}: {exc}") from exc

    async def _write(self, path: Path, data: bytes) -> None:
        try:
            await asyncio.to_thread(_atomic_write, path, data)
        except OSError as exc:
            raise BackingMediumUnavailableError(f"Cannot write {path}: {exc}") from exc


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
