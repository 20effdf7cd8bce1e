from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from deeplearn.core.config import HOME_TOPIC_QUERY
from deeplearn.db.pool import get_pool
from deeplearn.models.topic import Topic, TopicCreate


TOPIC_COLUMNS = "id, user_id, query, created_at"


async def create_topic(data: TopicCreate) -> Topic:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"""
            INSERT INTO topics (user_id, query)
            VALUES ($1, $2)
            RETURNING {TOPIC_COLUMNS}
            """,
            data.user_id,
            data.query,
        )
    return Topic(**dict(row))


async def get_topic(topic_id: UUID) -> Optional[Topic]:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"SELECT {TOPIC_COLUMNS} FROM topics WHERE id=$1",
            topic_id,
        )
    return Topic(**dict(row)) if row else None


async def list_topics(user_id: UUID) -> List[Topic]:
    pool = get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"SELECT {TOPIC_COLUMNS} FROM topics WHERE user_id=$1 ORDER BY created_at DESC",
            user_id,
        )
    return [Topic(**dict(row)) for row in rows]


async def find_home_topic(user_id: UUID) -> Optional[Topic]:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            f"""
            SELECT {TOPIC_COLUMNS}
            FROM topics
            WHERE user_id=$1 AND query=$2
            ORDER BY created_at
            LIMIT 1
            """,
            user_id,
            HOME_TOPIC_QUERY,
        )
    return Topic(**dict(row)) if row else None


async def get_or_create_home_topic(user_id: UUID) -> Topic:
    existing = await find_home_topic(user_id)
    if existing is not None:
        return existing
    return await create_topic(TopicCreate(user_id=user_id, query=HOME_TOPIC_QUERY))
