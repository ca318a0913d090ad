from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from diaries.domain.entities import DiaryEntry, IndexSnapshot
from diaries.infrastructure.index_codec import decode_index, encode_index
from diaries.infrastructure.models import INDEX_ROW_ID, DiaryIndexModel, DiaryPayloadModel
from shared.exceptions import BackingMediumUnavailableError, ConflictError
from shared.infrastructure.database import Base, create_engine, create_session_factory


class SqlBackingMedium:
    """Keeps the whole index in one versioned row; payloads get their own table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlBackingMedium":
        return cls(create_engine(database_url))

    async def open(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            raise BackingMediumUnavailableError(f"Cannot prepare schema: {exc}") from exc

    async def close(self) -> None:
        await self.engine.dispose()

    async def fetch_index(self) -> IndexSnapshot:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(DiaryIndexModel).where(DiaryIndexModel.id == INDEX_ROW_ID)
                )
                model = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise BackingMediumUnavailableError(f"Cannot read index: {exc}") from exc

        if model is None:
            return IndexSnapshot()
        return IndexSnapshot(entries=decode_index(model.entries), revision=str(model.version))

    async def write_index(
        self, entries: dict[str, DiaryEntry], previous_revision: str | None
    ) -> str:
        data = encode_index(entries).decode("utf-8")
        try:
            async with self.session_factory() as session:
                if previous_revision is None:
                    session.add(DiaryIndexModel(id=INDEX_ROW_ID, entries=data, version=1))
                    await session.commit()
                    return "1"

                expected_version = int(previous_revision)
                result = await session.execute(
                    update(DiaryIndexModel)
                    .where(
                        DiaryIndexModel.id == INDEX_ROW_ID,
                        DiaryIndexModel.version == expected_version,
                    )
                    .values(entries=data, version=expected_version + 1)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    raise ConflictError(f"Index revision {previous_revision} is stale")
                await session.commit()
                return str(expected_version + 1)
        except IntegrityError as exc:
            raise ConflictError("Index was created by another writer") from exc
        except (SQLAlchemyError, OSError) as exc:
            raise BackingMediumUnavailableError(f"Cannot write index: {exc}") from exc

    async def write_payload(self, key: str, data: bytes) -> None:
        try:
            async with self.session_factory() as session:
                await session.merge(DiaryPayloadModel(key=key, content=data))
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise BackingMediumUnavailableError(f"Cannot write payload {key}: {exc}") from exc

    async def fetch_payload(self, key: str) -> bytes | None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(DiaryPayloadModel.content).where(DiaryPayloadModel.key == key)
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise BackingMediumUnavailableError(f"Cannot read payload {key}: {exc}") from exc
