from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import asyncpg


logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a database read or write fails; the message is user facing."""


@contextmanager
def storage_errors(message: str) -> Iterator[None]:
    """Log database failures raised inside the block and re-raise them as ``StorageError``."""

    try:
        yield
    except StorageError:
        raise
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        logger.error("[storage] %s: %r", message, exc)
        raise StorageError(message) from exc
