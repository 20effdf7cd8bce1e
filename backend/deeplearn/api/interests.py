from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from deeplearn.core.security import Identity, get_identity
from deeplearn.models.home import InterestsResponse, InterestsUpdateRequest
from deeplearn.services.interests import load_interests, update_interests
from deeplearn.services.storage import StorageError


router = APIRouter(prefix="/interests", tags=["interests"])


@router.get("", response_model=InterestsResponse)
async def api_get_interests(identity: Identity = Depends(get_identity)) -> InterestsResponse:
    try:
        tags = await load_interests(identity.user_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return InterestsResponse(tags=tags)


@router.post("", response_model=InterestsResponse)
async def api_update_interests(
    data: InterestsUpdateRequest,
    identity: Identity = Depends(get_identity),
) -> InterestsResponse:
    try:
        tags = await update_interests(identity.user_id, data.tags)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return InterestsResponse(tags=tags)
