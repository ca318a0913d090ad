from datetime import datetime

from pydantic import BaseModel


class GenerateDiaryResponse(BaseModel):
    success: bool = True
    slug: str
    url: str


class DiaryResponse(BaseModel):
    slug: str
    partner1: str
    partner2: str
    created_at: datetime
    url: str
