from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from deeplearn.db.pool import get_pool


def merge_suggestions(
    stored: Iterable[str],
    new: Iterable[str],
    *,
    max_stored: Optional[int] = None,
) -> List[str]:
    """Order-preserving union of ``stored`` then ``new``; blanks and repeats are dropped.

    When ``max_stored`` is set only the most recent entries are kept.
    """

    merged: List[str] = []
    seen: set[str] = set()
    for item in [*stored, *new]:
        if not isinstance(item, str) or not item.strip() or item in seen:
            continue
        seen.add(item)
        merged.append(item)
    if max_stored is not None and max_stored >= 0 and len(merged) > max_stored:
        merged = merged[len(merged) - max_stored :]
    return merged


async def get_suggestions(user_id: UUID) -> List[str]:
    pool = get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "SELECT suggestions FROM user_home_suggestions WHERE user_id=$1",
            user_id,
        )
    if not row or not row["suggestions"]:
        return []
    return [item for item in row["suggestions"] if isinstance(item, str)]


async def save_suggestions(user_id: UUID, suggestions: List[str]) -> None:
    pool = get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            INSERT INTO user_home_suggestions (user_id, suggestions)
            VALUES ($1, $2)
            ON CONFLICT (user_id) DO UPDATE SET suggestions = EXCLUDED.suggestions
            """,
            user_id,
            list(suggestions),
        )


async def clear_suggestions(user_id: UUID) -> None:
    pool = get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            "DELETE FROM user_home_suggestions WHERE user_id=$1",
            user_id,
        )
