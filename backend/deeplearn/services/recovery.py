"""Best-effort recovery of JSON payloads from free-text model replies.

Model output is supposed to be JSON but routinely arrives wrapped in code
fences, surrounded by commentary, with trailing commas or cut short. Every
function here degrades to an empty result instead of raising; callers decide
what an empty result means.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from json_repair import repair_json


logger = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
FENCE_CLOSE_RE = re.compile(r"\n?\s*```\s*$", re.IGNORECASE)
TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")

Shape = Literal["object", "array"]
_DELIMITERS: dict[str, tuple[str, str]] = {
    "object": ("{", "}"),
    "array": ("[", "]"),
}


@dataclass
class ThreadDraft:
    main: str
    replies: list[str] = field(default_factory=list)


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = FENCE_OPEN_RE.sub("", cleaned)
    cleaned = FENCE_CLOSE_RE.sub("", cleaned)
    return cleaned.strip()


def extract_outer_span(text: str, shape: Shape) -> str:
    """Slice ``text`` to the first opening and last closing delimiter of ``shape``."""

    opening, closing = _DELIMITERS[shape]
    start = text.find(opening)
    end = text.rfind(closing)
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def strip_trailing_commas(text: str) -> str:
    return TRAILING_COMMA_RE.sub(r"\1", text)


def clean_model_json(raw: str, shape: Shape) -> str:
    cleaned = strip_code_fences(raw)
    cleaned = extract_outer_span(cleaned, shape)
    return strip_trailing_commas(cleaned)


def _loads_with_repair(cleaned: str) -> Any:
    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError):
        pass

    try:
        repaired = repair_json(cleaned)
        if not isinstance(repaired, str):
            return None
        return json.loads(strip_trailing_commas(repaired))
    except Exception as exc:  # noqa: BLE001 - recovery never raises
        logger.debug("[recovery] repair pass failed: %s", exc)
        return None


def load_json_object(raw: Any) -> Optional[dict[str, Any]]:
    """Return the JSON object embedded in ``raw`` or ``None``."""

    if not isinstance(raw, str) or not raw.strip():
        return None
    parsed = _loads_with_repair(clean_model_json(raw, "object"))
    return parsed if isinstance(parsed, dict) else None


def load_json_array(raw: Any) -> list[Any]:
    """Return the JSON array embedded in ``raw`` or an empty list."""

    if not isinstance(raw, str) or not raw.strip():
        return []
    parsed = _loads_with_repair(clean_model_json(raw, "array"))
    return parsed if isinstance(parsed, list) else []


def _strings(values: Any, limit: int) -> list[str]:
    if not isinstance(values, list) or limit < 1:
        return []
    kept = [value for value in values if isinstance(value, str) and value.strip()]
    return kept[:limit]


def parse_string_array(raw: Any, max_items: int) -> list[str]:
    return _strings(load_json_array(raw), max_items)


def parse_replies(raw: Any, max_replies: int) -> list[str]:
    """Parse ``{"replies": [...]}`` into at most ``max_replies`` strings."""

    payload = load_json_object(raw)
    if payload is None:
        return []
    return _strings(payload.get("replies"), max_replies)


def parse_thread_batch(raw: Any, max_threads: int, max_replies: int) -> list[ThreadDraft]:
    """Parse ``{"threads": [{"main": ..., "replies": [...]}, ...]}``.

    Threads without a usable ``main`` string are dropped; replies are filtered
    to strings before being capped to ``max_replies``.
    """

    payload = load_json_object(raw)
    if payload is None:
        return []
    threads = payload.get("threads")
    if not isinstance(threads, list) or max_threads < 1:
        return []

    drafts: list[ThreadDraft] = []
    for entry in threads:
        if not isinstance(entry, dict):
            continue
        main = entry.get("main")
        if not isinstance(main, str) or not main.strip():
            continue
        drafts.append(
            ThreadDraft(main=main, replies=_strings(entry.get("replies"), max_replies))
        )
        if len(drafts) >= max_threads:
            break
    return drafts
