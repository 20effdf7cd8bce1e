from __future__ import annotations

import json
import logging
from typing import Optional

import asyncpg

from deeplearn.core.config import settings


logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None


async def _init_connection(conn: asyncpg.Connection) -> None:
    # threads.replies is jsonb; hand Python lists/dicts in and out.
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


async def init_pool() -> None:
    global _pool
    if _pool is None:
        logger.info("Creating database pool...")
        _pool = await asyncpg.create_pool(
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.postgres_db,
            user=settings.postgres_user,
            password=settings.postgres_password,
            min_size=settings.postgres_pool_min_size,
            max_size=settings.postgres_pool_max_size,
            init=_init_connection,
        )
        logger.info("Database pool created")
    else:
        logger.info("Database pool already exists")


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool
