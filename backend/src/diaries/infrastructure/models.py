from datetime import datetime

from sqlalchemy import Integer, LargeBinary, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shared.infrastructure.database import Base

INDEX_ROW_ID = 1


class DiaryIndexModel(Base):
    __tablename__ = "diary_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    entries: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class DiaryPayloadModel(Base):
    __tablename__ = "diary_payloads"

    key: Mapped[str] = mapped_column(String(500), primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
