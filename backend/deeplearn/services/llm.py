from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import httpx

from deeplearn.core.config import settings


logger = logging.getLogger(__name__)

ERROR_BODY_SNIPPET_CHARS = 300
GROUNDING_REPLY_PREFIX = "YES"


class LLMServiceError(RuntimeError):
    """Raised when the completion endpoint cannot produce a reply."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body_snippet: str = "",
    ) -> None:
        self.status_code = status_code
        self.body_snippet = body_snippet[:ERROR_BODY_SNIPPET_CHARS]
        super().__init__(message)


class LLMConfigurationError(RuntimeError):
    """Raised when no API key is configured for the completion endpoint."""


@dataclass
class CompletionUsage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["CompletionUsage"]:
        if not isinstance(payload, Mapping):
            return None

        def _as_int(value: Any) -> Optional[int]:
            return value if isinstance(value, int) and not isinstance(value, bool) else None

        return cls(
            prompt_tokens=_as_int(payload.get("prompt_tokens")),
            completion_tokens=_as_int(payload.get("completion_tokens")),
            total_tokens=_as_int(payload.get("total_tokens")),
        )


@dataclass
class CompletionResult:
    content: str
    usage: Optional[CompletionUsage] = None
    model: Optional[str] = None


@dataclass
class CompletionClient:
    """Thin wrapper around an OpenAI-compatible ``/chat/completions`` endpoint."""

    api_key: str
    base_url: str = "https://api.groq.com/openai/v1"
    completion_path: str = "/chat/completions"
    timeout_seconds: float = 60.0
    extra_headers: dict[str, str] = field(default_factory=dict)
    transport: Optional[httpx.AsyncBaseTransport] = None

    @property
    def url(self) -> str:
        base = self.base_url.rstrip("/")
        path = self.completion_path.lstrip("/")
        return f"{base}/{path}" if path else base

    async def complete(
        self,
        *,
        model: str,
        messages: Sequence[Mapping[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> CompletionResult:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [dict(message) for message in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            **self.extra_headers,
        }

        timeout = httpx.Timeout(float(self.timeout_seconds or 60.0))
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.url, json=payload, headers=headers)
            except httpx.HTTPError as exc:
                raise LLMServiceError(f"Completion request failed: {exc}") from exc

        if not response.is_success:
            raise LLMServiceError(
                f"Completion endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                body_snippet=response.text,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMServiceError(
                f"Unexpected completion response format: {exc}",
                status_code=response.status_code,
                body_snippet=response.text,
            ) from exc

        return CompletionResult(
            content=content.strip() if isinstance(content, str) else "",
            usage=CompletionUsage.from_payload(data.get("usage")),
            model=data.get("model") if isinstance(data.get("model"), str) else model,
        )


def get_completion_client() -> CompletionClient:
    if not settings.groq_api_key:
        raise LLMConfigurationError("LLM API key is not configured")
    return CompletionClient(
        api_key=settings.groq_api_key,
        base_url=settings.llm_base_url,
        completion_path=settings.llm_completion_path,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def select_model(use_web_grounding: bool) -> str:
    return settings.llm_grounded_model if use_web_grounding else settings.llm_default_model


async def classify_needs_web_grounding(client: CompletionClient, prompt: str) -> bool:
    """Ask the classifier model a YES/NO question; any failure means ``False``."""

    model = settings.llm_classifier_model
    try:
        result = await client.complete(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=settings.llm_classifier_max_tokens,
        )
        reply = (result.content or "").strip().upper()
    except Exception as exc:  # noqa: BLE001
        logger.warning("[classifier] classification failed, defaulting to no web: %s", exc)
        return False

    use_web = reply.startswith(GROUNDING_REPLY_PREFIX)
    logger.info(
        "[classifier] model=%s response=%r use_web=%s", model, reply[:20], use_web
    )
    return use_web


def _preview(value: Any, limit: int) -> str:
    if value is None:
        return ""
    try:
        text = value if isinstance(value, str) else json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = str(value)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... ({len(text)} chars)"


def log_ai(
    fn: str,
    *,
    model: str,
    result: Optional[CompletionResult] = None,
    error: Optional[BaseException] = None,
) -> None:
    """Log one AI call with a bounded preview of the raw reply or error."""

    limit = max(1, settings.llm_log_preview_chars)
    if error is not None:
        snippet = getattr(error, "body_snippet", "")
        logger.error(
            "[%s] AI call failed model=%s error=%s body=%s",
            fn,
            model,
            error,
            _preview(snippet, limit),
        )
        return

    usage = result.usage if result is not None else None
    logger.info(
        "[%s] AI call model=%s usage=%s raw=%s",
        fn,
        model,
        _preview(usage.__dict__ if usage else None, limit),
        _preview(result.content if result is not None else None, limit),
    )
