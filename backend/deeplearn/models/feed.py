from __future__ import annotations

from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel, Field

from deeplearn.models.thread import Thread
from deeplearn.models.topic import Topic


class FeedGenerateRequest(BaseModel):
    topic: str = ""


class FeedGenerateResponse(BaseModel):
    topic_id: UUID
    thread_ids: List[UUID] = Field(default_factory=list)
    threads: List[Thread] = Field(default_factory=list)


class FeedResponse(BaseModel):
    topics: List[Topic] = Field(default_factory=list)
    threads_by_topic: Dict[str, List[Thread]] = Field(default_factory=dict)
