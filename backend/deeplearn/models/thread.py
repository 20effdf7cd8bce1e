from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Iterable, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class OriginalReply(BaseModel):
    """A reply produced when the thread was generated."""

    kind: Literal["original"] = "original"
    content: str


class ExchangeReply(BaseModel):
    """One half of a follow-up exchange spliced into the thread."""

    kind: Literal["user", "ai"]
    content: str


Reply = Annotated[Union[OriginalReply, ExchangeReply], Field(discriminator="kind")]


def reply_from_storage(value: Any) -> Optional[Union[OriginalReply, ExchangeReply]]:
    """Decode one element of the ``threads.replies`` column.

    Generated replies are stored as bare strings; follow-up exchanges as
    ``{"type": "user" | "ai", "content": ...}``.
    """

    if isinstance(value, (OriginalReply, ExchangeReply)):
        return value
    if isinstance(value, str):
        return OriginalReply(content=value)
    if isinstance(value, dict):
        kind = value.get("type", value.get("kind"))
        content = value.get("content")
        content = content if isinstance(content, str) else str(content or "")
        if kind in ("user", "ai"):
            return ExchangeReply(kind=kind, content=content)
        if kind == "original":
            return OriginalReply(content=content)
    return None


def replies_from_storage(values: Any) -> List[Union[OriginalReply, ExchangeReply]]:
    if not isinstance(values, list):
        return []
    decoded = (reply_from_storage(value) for value in values)
    return [reply for reply in decoded if reply is not None]


def reply_to_storage(reply: Union[OriginalReply, ExchangeReply]) -> Union[str, dict[str, str]]:
    if isinstance(reply, OriginalReply):
        return reply.content
    return {"type": reply.kind, "content": reply.content}


def replies_to_storage(
    replies: Iterable[Union[OriginalReply, ExchangeReply]],
) -> List[Union[str, dict[str, str]]]:
    return [reply_to_storage(reply) for reply in replies]


class ThreadBase(BaseModel):
    main_post: str = Field(..., min_length=1)
    replies: List[Reply] = Field(default_factory=list)

    @field_validator("replies", mode="before")
    @classmethod
    def _decode_replies(cls, value: Any) -> Any:
        if value is None:
            return []
        return replies_from_storage(value)


class ThreadCreate(ThreadBase):
    topic_id: UUID


class Thread(ThreadBase):
    id: UUID
    topic_id: UUID
    created_at: datetime

    class Config:
        from_attributes = True


class AskThreadRequest(BaseModel):
    question: str = ""
    reply_context: Optional[str] = None
    reply_index: Optional[int] = None


class AskThreadResponse(BaseModel):
    answer: str


class ThreadFromSuggestionRequest(BaseModel):
    suggestion: str = ""


class ThreadFromSuggestionResponse(BaseModel):
    thread_id: UUID


class ThreadListResponse(BaseModel):
    threads: List[Thread] = Field(default_factory=list)
