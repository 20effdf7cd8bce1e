"""Async HTTP client for the DeepLearn API.

AI-backed endpoints are retried once after a short fixed delay when the
server answers 5xx or the connection fails. Reads and interest updates are
not retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
from uuid import UUID

import httpx


logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0

T = TypeVar("T")


class DeepLearnAPIError(RuntimeError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)


def _should_retry(exc: BaseException) -> bool:
    # 4xx answers (bad input, auth, ownership) are never retried.
    if isinstance(exc, DeepLearnAPIError):
        return exc.status_code >= 500
    return isinstance(exc, httpx.TransportError)


async def with_one_retry(
    call: Callable[[], Awaitable[T]],
    *,
    delay: float = RETRY_DELAY_SECONDS,
) -> T:
    try:
        return await call()
    except (DeepLearnAPIError, httpx.TransportError) as exc:
        if not _should_retry(exc):
            raise
        logger.warning("Request failed, retrying once in %.1fs: %s", delay, exc)
        await asyncio.sleep(delay)
        return await call()


class DeepLearnClient:
    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        api_prefix: str = "/api",
        timeout_seconds: float = 120.0,
        retry_delay: float = RETRY_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.retry_delay = retry_delay
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/" + api_prefix.strip("/"),
            timeout=timeout_seconds,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )

    async def __aenter__(self) -> "DeepLearnClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.client.request(method, path, **kwargs)
        if response.is_success:
            return response.json()
        message = f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            message = body["error"]
        raise DeepLearnAPIError(response.status_code, message)

    async def _retried(self, method: str, path: str, **kwargs: Any) -> Any:
        return await with_one_retry(
            lambda: self._request(method, path, **kwargs),
            delay=self.retry_delay,
        )

    async def generate_feed(self, topic: str) -> Dict[str, Any]:
        return await self._retried("POST", "/feed/generate", json={"topic": topic})

    async def get_feed(self) -> Dict[str, Any]:
        return await self._request("GET", "/feed")

    async def get_thread(self, thread_id: UUID | str) -> Dict[str, Any]:
        return await self._request("GET", f"/threads/{thread_id}")

    async def ask(
        self,
        thread_id: UUID | str,
        question: str,
        *,
        reply_context: Optional[str] = None,
        reply_index: Optional[int] = None,
    ) -> str:
        payload: Dict[str, Any] = {"question": question}
        if reply_context is not None:
            payload["reply_context"] = reply_context
        if reply_index is not None:
            payload["reply_index"] = reply_index
        data = await self._retried("POST", f"/threads/{thread_id}/ask", json=payload)
        return data["answer"]

    async def thread_from_suggestion(self, suggestion: str) -> str:
        data = await self._retried(
            "POST", "/threads/from-suggestion", json={"suggestion": suggestion}
        )
        return data["thread_id"]

    async def home_threads(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/home/threads")
        return data.get("threads", [])

    async def home_suggestions(self) -> List[str]:
        data = await self._retried("POST", "/home/suggestions")
        return data.get("suggestions", [])

    async def get_interests(self) -> List[str]:
        data = await self._request("GET", "/interests")
        return data.get("tags", [])

    async def set_interests(self, tags: List[str]) -> List[str]:
        data = await self._request("POST", "/interests", json={"tags": tags})
        return data.get("tags", [])
