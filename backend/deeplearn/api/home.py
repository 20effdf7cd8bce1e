from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from deeplearn.core.security import Identity, get_identity
from deeplearn.models.home import SuggestionsResponse
from deeplearn.models.thread import ThreadListResponse
from deeplearn.services.generation import GenerationError, generate_home_suggestions
from deeplearn.services.llm import LLMConfigurationError
from deeplearn.services.storage import StorageError, storage_errors
from deeplearn.services.threads import list_threads
from deeplearn.services.topics import find_home_topic


router = APIRouter(prefix="/home", tags=["home"])


@router.get("/threads", response_model=ThreadListResponse)
async def api_home_threads(identity: Identity = Depends(get_identity)) -> ThreadListResponse:
    try:
        with storage_errors("Failed to load threads"):
            topic = await find_home_topic(identity.user_id)
            if topic is None:
                return ThreadListResponse()
            threads = await list_threads([topic.id], newest_first=True)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ThreadListResponse(threads=threads)


@router.post("/suggestions", response_model=SuggestionsResponse)
async def api_home_suggestions(identity: Identity = Depends(get_identity)) -> SuggestionsResponse:
    try:
        suggestions = await generate_home_suggestions(identity)
    except LLMConfigurationError as exc:
        raise HTTPException(status_code=500, detail="Server configuration error") from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return SuggestionsResponse(suggestions=suggestions)
