"""Utilities for cleaning user text before it reaches a prompt or the database."""

from __future__ import annotations

import re
from typing import Any

NEWLINE_RE = re.compile(r"\r\n|\r|\n")
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
WHITESPACE_RE = re.compile(r"\s+")
UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

TAG_MAX_LEN = 80
TAG_SAFE_RE = re.compile(r"^[a-zA-Z0-9\s\-_,.']+$")
TAG_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9\s\-_,.']")


def sanitize_for_prompt(value: Any, max_len: int) -> str:
    """Flatten ``value`` into a single line that is safe to interpolate into a prompt.

    Newlines become spaces so the user cannot forge section delimiters such as
    ``---END TOPIC---`` on their own line; remaining control characters are
    dropped, whitespace is collapsed and the result is truncated to ``max_len``.
    """

    if not isinstance(value, str) or max_len < 1:
        return ""

    cleaned = NEWLINE_RE.sub(" ", value)
    cleaned = CONTROL_CHARS_RE.sub("", cleaned)
    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:max_len]


def sanitize_for_db(value: Any, max_len: int) -> str:
    """Replace control characters with spaces and truncate ``value`` for storage."""

    if not isinstance(value, str) or max_len < 1:
        return ""

    cleaned = CONTROL_CHARS_RE.sub(" ", value)
    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:max_len]


def sanitize_tag(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    trimmed = tag.strip()[:TAG_MAX_LEN]
    if TAG_SAFE_RE.fullmatch(trimmed):
        return trimmed
    return TAG_UNSAFE_CHARS_RE.sub("", trimmed)


def validate_uuid(value: Any) -> bool:
    return isinstance(value, str) and UUID_RE.fullmatch(value) is not None
