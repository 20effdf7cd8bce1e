from __future__ import annotations

from typing import List, Optional, Sequence, Union
from uuid import UUID

from deeplearn.db.pool import get_pool
from deeplearn.models.thread import (
    ExchangeReply,
    OriginalReply,
    Thread,
    ThreadCreate,
    replies_to_storage,
)
from deeplearn.services.topics import get_topic


THREAD_COLUMNS = "id, topic_id, main_post, replies, created_at"

ReplyItem = Union[OriginalReply, ExchangeReply]


class ThreadNotFoundError(LookupError):
    """Raised when a thread does not exist."""


class ThreadAccessDeniedError(PermissionError):
    """Raised when a thread belongs to a topic owned by another user."""


async def create_threads(drafts: Sequence[ThreadCreate]) -> List[Thread]:
    if not drafts:
        return []
    pool = get_pool()
    created: List[Thread] = []
    async with pool.acquire() as conn:
        async with conn.transaction():
            for draft in drafts:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO threads (topic_id, main_post, replies)
                    VALUES ($1, $2, $3)
                    RETURNING {THREAD_COLUMNS}
                    """,
                    draft.topic_id,
                    draft.main_post,
                    replies_to_storage(draft.replies),
                )
                created.append(Thread(**dict(row)))
    return created


async def create_thread(draft: ThreadCreate) -> Thread:
    created = await create_threads([draft])
    return created[0]


async def get_thread(thread_id: UUID) -> Optional[Thread]:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"SELECT {THREAD_COLUMNS} FROM threads WHERE id=$1",
            thread_id,
        )
    return Thread(**dict(row)) if row else None


async def list_threads(topic_ids: Sequence[UUID], *, newest_first: bool = False) -> List[Thread]:
    if not topic_ids:
        return []
    direction = "DESC" if newest_first else "ASC"
    pool = get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {THREAD_COLUMNS}
            FROM threads
            WHERE topic_id = ANY($1::uuid[])
            ORDER BY created_at {direction}
            """,
            list(topic_ids),
        )
    return [Thread(**dict(row)) for row in rows]


async def replace_replies(thread_id: UUID, replies: Sequence[ReplyItem]) -> None:
    """Overwrite the whole ``replies`` column; concurrent writers race, last one wins."""

    pool = get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            "UPDATE threads SET replies=$2 WHERE id=$1",
            thread_id,
            replies_to_storage(replies),
        )


async def get_owned_thread(thread_id: UUID, user_id: UUID) -> Thread:
    thread = await get_thread(thread_id)
    if thread is None:
        raise ThreadNotFoundError(f"Thread {thread_id} not found")
    topic = await get_topic(thread.topic_id)
    if topic is None or topic.user_id != user_id:
        raise ThreadAccessDeniedError(f"Thread {thread_id} is not owned by the caller")
    return thread


def splice_exchange(
    replies: Sequence[ReplyItem],
    question: str,
    answer: str,
    reply_index: Optional[int] = None,
) -> List[ReplyItem]:
    """Insert a user question and its AI answer as an adjacent pair.

    With no ``reply_index`` the pair goes to the end; otherwise it goes right
    after ``replies[reply_index]``. Existing replies keep their relative order.
    """

    existing = list(replies)
    if reply_index is None or reply_index < 0:
        insert_at = len(existing)
    else:
        insert_at = min(reply_index + 1, len(existing))
    exchange: List[ReplyItem] = [
        ExchangeReply(kind="user", content=question),
        ExchangeReply(kind="ai", content=answer),
    ]
    return existing[:insert_at] + exchange + existing[insert_at:]
