from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from deeplearn.core.security import Identity, get_identity
from deeplearn.models.feed import FeedGenerateRequest, FeedGenerateResponse, FeedResponse
from deeplearn.services.generation import GenerationError, InvalidInputError, generate_feed
from deeplearn.services.llm import LLMConfigurationError
from deeplearn.services.storage import StorageError, storage_errors
from deeplearn.services.threads import list_threads
from deeplearn.services.topics import list_topics


router = APIRouter(prefix="/feed", tags=["feed"])


@router.post("/generate", response_model=FeedGenerateResponse)
async def api_generate_feed(
    data: FeedGenerateRequest,
    identity: Identity = Depends(get_identity),
) -> FeedGenerateResponse:
    try:
        return await generate_feed(identity, data.topic)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LLMConfigurationError as exc:
        raise HTTPException(status_code=500, detail="Server configuration error") from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("", response_model=FeedResponse)
async def api_get_feed(identity: Identity = Depends(get_identity)) -> FeedResponse:
    try:
        with storage_errors("Failed to load feed"):
            topics = await list_topics(identity.user_id)
        if not topics:
            return FeedResponse()
        with storage_errors("Failed to load threads"):
            threads = await list_threads([topic.id for topic in topics])
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    threads_by_topic = {str(topic.id): [] for topic in topics}
    for thread in threads:
        bucket = threads_by_topic.get(str(thread.topic_id))
        if bucket is not None:
            bucket.append(thread)
    return FeedResponse(topics=topics, threads_by_topic=threads_by_topic)
