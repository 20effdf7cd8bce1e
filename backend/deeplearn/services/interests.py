from __future__ import annotations

import logging
from typing import Any, List, Sequence
from uuid import UUID

from deeplearn.core.config import settings
from deeplearn.db.pool import get_pool
from deeplearn.services import suggestions
from deeplearn.services.storage import storage_errors
from deeplearn.utils.text_sanitize import sanitize_tag


logger = logging.getLogger(__name__)


def normalize_tags(raw_tags: Any, *, max_count: int | None = None) -> List[str]:
    """Sanitize, de-duplicate (case-insensitively) and cap a list of interest tags."""

    if not isinstance(raw_tags, (list, tuple)):
        return []
    limit = settings.max_tags_count if max_count is None else max_count

    tags: List[str] = []
    seen: set[str] = set()
    for raw in raw_tags:
        tag = sanitize_tag(raw).strip()
        if not tag:
            continue
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
        if len(tags) >= limit:
            break
    return tags


async def get_interests(user_id: UUID) -> List[str]:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "SELECT tags FROM user_interests WHERE user_id=$1",
            user_id,
        )
    if not row or not row["tags"]:
        return []
    return [tag for tag in row["tags"] if isinstance(tag, str)]


async def save_interests(user_id: UUID, tags: Sequence[str]) -> None:
    pool = get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            INSERT INTO user_interests (user_id, tags)
            VALUES ($1, $2)
            ON CONFLICT (user_id) DO UPDATE SET tags = EXCLUDED.tags
            """,
            user_id,
            list(tags),
        )


async def load_interests(user_id: UUID) -> List[str]:
    with storage_errors("Failed to load interests"):
        return await get_interests(user_id)


async def update_interests(user_id: UUID, raw_tags: Any) -> List[str]:
    """Replace the user's tags wholesale; stored Home suggestions reset when they change."""

    tags = normalize_tags(raw_tags)
    with storage_errors("Failed to save interests"):
        previous = await get_interests(user_id)
        await save_interests(user_id, tags)
        if {tag.lower() for tag in previous} != {tag.lower() for tag in tags}:
            await suggestions.clear_suggestions(user_id)
            logger.info("[interests] interests changed for %s, suggestions reset", user_id)
    return tags
