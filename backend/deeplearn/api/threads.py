from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from deeplearn.core.security import Identity, get_identity
from deeplearn.models.thread import (
    AskThreadRequest,
    AskThreadResponse,
    Thread,
    ThreadFromSuggestionRequest,
    ThreadFromSuggestionResponse,
)
from deeplearn.services.generation import (
    GenerationError,
    InvalidInputError,
    answer_follow_up,
    expand_suggestion,
)
from deeplearn.services.llm import LLMConfigurationError
from deeplearn.services.storage import StorageError, storage_errors
from deeplearn.services.threads import (
    ThreadAccessDeniedError,
    ThreadNotFoundError,
    get_owned_thread,
)
from deeplearn.utils.text_sanitize import validate_uuid


router = APIRouter(prefix="/threads", tags=["threads"])


def _parse_thread_id(thread_id: str) -> UUID:
    if not validate_uuid(thread_id):
        raise HTTPException(status_code=400, detail="Invalid thread")
    return UUID(thread_id)


@router.post("/from-suggestion", response_model=ThreadFromSuggestionResponse)
async def api_thread_from_suggestion(
    data: ThreadFromSuggestionRequest,
    identity: Identity = Depends(get_identity),
) -> ThreadFromSuggestionResponse:
    try:
        thread_id = await expand_suggestion(identity, data.suggestion)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LLMConfigurationError as exc:
        raise HTTPException(status_code=500, detail="Server configuration error") from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ThreadFromSuggestionResponse(thread_id=thread_id)


@router.get("/{thread_id}", response_model=Thread)
async def api_get_thread(
    thread_id: str,
    identity: Identity = Depends(get_identity),
) -> Thread:
    parsed_id = _parse_thread_id(thread_id)
    try:
        with storage_errors("Failed to load thread"):
            return await get_owned_thread(parsed_id, identity.user_id)
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Thread not found") from exc
    except ThreadAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail="Forbidden") from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/{thread_id}/ask", response_model=AskThreadResponse)
async def api_ask_thread(
    thread_id: str,
    data: AskThreadRequest,
    identity: Identity = Depends(get_identity),
) -> AskThreadResponse:
    parsed_id = _parse_thread_id(thread_id)
    try:
        answer = await answer_follow_up(
            identity,
            parsed_id,
            data.question,
            reply_context=data.reply_context,
            reply_index=data.reply_index,
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ThreadNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Thread not found") from exc
    except ThreadAccessDeniedError as exc:
        raise HTTPException(status_code=403, detail="Forbidden") from exc
    except LLMConfigurationError as exc:
        raise HTTPException(status_code=500, detail="Server configuration error") from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return AskThreadResponse(answer=answer)
