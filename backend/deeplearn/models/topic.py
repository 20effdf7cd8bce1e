from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class TopicBase(BaseModel):
    query: str = Field(..., min_length=1)


class TopicCreate(TopicBase):
    user_id: UUID


class Topic(TopicBase):
    id: UUID
    user_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True
