from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from deeplearn.client import DeepLearnAPIError, DeepLearnClient


def _client(handler) -> DeepLearnClient:  # noqa: ANN001
    return DeepLearnClient(
        "https://deeplearn.test",
        "token-123",
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


def test_ai_calls_retry_once_then_succeed() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502, json={"error": "No threads generated. Please try again."})
        return httpx.Response(200, json={"topic_id": "t", "thread_ids": [], "threads": []})

    async def run() -> dict:
        async with _client(handler) as client:
            return await client.generate_feed("Photosynthesis")

    data = asyncio.run(run())

    assert data["topic_id"] == "t"
    assert len(calls) == 2
    assert str(calls[0].url) == "https://deeplearn.test/api/feed/generate"
    assert calls[0].headers["Authorization"] == "Bearer token-123"
    assert json.loads(calls[1].content) == {"topic": "Photosynthesis"}


def test_ai_calls_give_up_after_second_failure() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502, json={"error": "AI service error"})

    async def run() -> None:
        async with _client(handler) as client:
            await client.ask("abc", "Why?", reply_index=1)

    with pytest.raises(DeepLearnAPIError) as excinfo:
        asyncio.run(run())

    assert excinfo.value.status_code == 502
    assert str(excinfo.value) == "AI service error"
    assert len(calls) == 2
    assert json.loads(calls[0].content) == {"question": "Why?", "reply_index": 1}


def test_reads_are_not_retried() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"error": "Thread not found"})

    async def run() -> None:
        async with _client(handler) as client:
            await client.get_thread("abc")

    with pytest.raises(DeepLearnAPIError, match="Thread not found"):
        asyncio.run(run())
    assert len(calls) == 1


def test_interests_round_trip() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/interests"
        if request.method == "POST":
            return httpx.Response(200, json=json.loads(request.content))
        return httpx.Response(200, json={"tags": ["Space"]})

    async def run() -> tuple[list[str], list[str]]:
        async with _client(handler) as client:
            return await client.set_interests(["Space", "Sea"]), await client.get_interests()

    assert asyncio.run(run()) == (["Space", "Sea"], ["Space"])


def test_client_errors_are_not_retried() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"error": "Missing or empty topic"})

    async def run() -> None:
        async with _client(handler) as client:
            await client.generate_feed("")

    with pytest.raises(DeepLearnAPIError) as excinfo:
        asyncio.run(run())

    assert excinfo.value.status_code == 400
    assert len(calls) == 1


def test_transport_errors_are_retried_once() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json={"suggestions": ["Why whales sing."]})

    async def run() -> list[str]:
        async with _client(handler) as client:
            return await client.home_suggestions()

    assert asyncio.run(run()) == ["Why whales sing."]
    assert len(calls) == 2
