from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID, uuid4

import pytest

from deeplearn.core.config import settings
from deeplearn.core.security import Identity
from deeplearn.models.thread import Thread, ThreadCreate, replies_to_storage
from deeplearn.models.topic import Topic, TopicCreate
from deeplearn.services.llm import CompletionResult, CompletionUsage


class InMemoryDataStore:
    def __init__(self) -> None:
        self._topics: Dict[UUID, Dict[str, Any]] = {}
        self._threads: Dict[UUID, Dict[str, Any]] = {}
        self._interests: Dict[UUID, List[str]] = {}
        self._suggestions: Dict[UUID, List[str]] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        # Strictly increasing so ordering by created_at is deterministic.
        self._clock += timedelta(seconds=1)
        return self._clock

    async def create_topic(self, data: TopicCreate) -> Topic:
        record = {
            "id": uuid4(),
            "user_id": data.user_id,
            "query": data.query,
            "created_at": self._now(),
        }
        self._topics[record["id"]] = record
        return Topic(**record)

    async def get_topic(self, topic_id: UUID) -> Optional[Topic]:
        record = self._topics.get(topic_id)
        return Topic(**record) if record else None

    async def list_topics(self, user_id: UUID) -> List[Topic]:
        records = [rec for rec in self._topics.values() if rec["user_id"] == user_id]
        records.sort(key=lambda rec: rec["created_at"], reverse=True)
        return [Topic(**rec) for rec in records]

    async def find_home_topic(self, user_id: UUID) -> Optional[Topic]:
        records = [
            rec
            for rec in self._topics.values()
            if rec["user_id"] == user_id and rec["query"] == "Home"
        ]
        records.sort(key=lambda rec: rec["created_at"])
        return Topic(**records[0]) if records else None

    async def create_threads(self, drafts: Sequence[ThreadCreate]) -> List[Thread]:
        created: List[Thread] = []
        for draft in drafts:
            record = {
                "id": uuid4(),
                "topic_id": draft.topic_id,
                "main_post": draft.main_post,
                "replies": replies_to_storage(draft.replies),
                "created_at": self._now(),
            }
            self._threads[record["id"]] = record
            created.append(Thread(**record))
        return created

    async def get_thread(self, thread_id: UUID) -> Optional[Thread]:
        record = self._threads.get(thread_id)
        return Thread(**record) if record else None

    async def list_threads(
        self, topic_ids: Sequence[UUID], *, newest_first: bool = False
    ) -> List[Thread]:
        wanted = set(topic_ids)
        records = [rec for rec in self._threads.values() if rec["topic_id"] in wanted]
        records.sort(key=lambda rec: rec["created_at"], reverse=newest_first)
        return [Thread(**rec) for rec in records]

    async def replace_replies(self, thread_id: UUID, replies: Sequence[Any]) -> None:
        self._threads[thread_id]["replies"] = replies_to_storage(replies)

    def stored_replies(self, thread_id: UUID) -> List[Any]:
        return list(self._threads[thread_id]["replies"])

    def topics_for(self, user_id: UUID) -> List[Dict[str, Any]]:
        return [rec for rec in self._topics.values() if rec["user_id"] == user_id]

    def threads_for(self, topic_id: UUID) -> List[Dict[str, Any]]:
        return [rec for rec in self._threads.values() if rec["topic_id"] == topic_id]

    async def get_interests(self, user_id: UUID) -> List[str]:
        return list(self._interests.get(user_id, []))

    async def save_interests(self, user_id: UUID, tags: Sequence[str]) -> None:
        self._interests[user_id] = list(tags)

    async def get_suggestions(self, user_id: UUID) -> List[str]:
        return list(self._suggestions.get(user_id, []))

    async def save_suggestions(self, user_id: UUID, suggestions: List[str]) -> None:
        self._suggestions[user_id] = list(suggestions)

    async def clear_suggestions(self, user_id: UUID) -> None:
        self._suggestions.pop(user_id, None)


class ScriptedCompletionClient:
    """Stands in for ``CompletionClient``; classifier calls get ``classifier_reply``."""

    def __init__(
        self,
        replies: Sequence[Any] = (),
        *,
        classifier_reply: Any = "NO",
    ) -> None:
        self.replies = list(replies)
        self.classifier_reply = classifier_reply
        self.calls: List[Dict[str, Any]] = []

    @property
    def generation_calls(self) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["model"] != settings.llm_classifier_model]

    async def complete(
        self,
        *,
        model: str,
        messages: Sequence[Mapping[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> CompletionResult:
        self.calls.append(
            {
                "model": model,
                "prompt": messages[-1]["content"],
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if model == settings.llm_classifier_model:
            reply = self.classifier_reply
        else:
            if not self.replies:
                raise AssertionError("unexpected completion call")
            reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return CompletionResult(
            content=reply.strip(),
            usage=CompletionUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
            model=model,
        )


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id=uuid4())


@pytest.fixture
def datastore(monkeypatch: pytest.MonkeyPatch) -> InMemoryDataStore:
    store = InMemoryDataStore()

    monkeypatch.setattr("deeplearn.services.topics.create_topic", store.create_topic)
    monkeypatch.setattr("deeplearn.services.topics.get_topic", store.get_topic)
    monkeypatch.setattr("deeplearn.services.topics.list_topics", store.list_topics)
    monkeypatch.setattr("deeplearn.services.topics.find_home_topic", store.find_home_topic)

    monkeypatch.setattr("deeplearn.services.threads.create_threads", store.create_threads)
    monkeypatch.setattr("deeplearn.services.threads.get_thread", store.get_thread)
    monkeypatch.setattr("deeplearn.services.threads.list_threads", store.list_threads)
    monkeypatch.setattr("deeplearn.services.threads.replace_replies", store.replace_replies)
    monkeypatch.setattr("deeplearn.services.threads.get_topic", store.get_topic)

    monkeypatch.setattr("deeplearn.services.interests.get_interests", store.get_interests)
    monkeypatch.setattr("deeplearn.services.interests.save_interests", store.save_interests)

    monkeypatch.setattr("deeplearn.services.suggestions.get_suggestions", store.get_suggestions)
    monkeypatch.setattr("deeplearn.services.suggestions.save_suggestions", store.save_suggestions)
    monkeypatch.setattr(
        "deeplearn.services.suggestions.clear_suggestions", store.clear_suggestions
    )

    # Patch API module aliases to ensure they use the in-memory implementations
    monkeypatch.setattr("deeplearn.api.feed.list_topics", store.list_topics)
    monkeypatch.setattr("deeplearn.api.feed.list_threads", store.list_threads)
    monkeypatch.setattr("deeplearn.api.home.find_home_topic", store.find_home_topic)
    monkeypatch.setattr("deeplearn.api.home.list_threads", store.list_threads)

    return store


@pytest.fixture
def fake_llm(monkeypatch: pytest.MonkeyPatch) -> ScriptedCompletionClient:
    client = ScriptedCompletionClient()
    monkeypatch.setattr("deeplearn.services.generation.get_completion_client", lambda: client)
    return client


