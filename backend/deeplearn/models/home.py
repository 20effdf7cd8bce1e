from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field


class InterestsUpdateRequest(BaseModel):
    # Non-string entries are dropped by the service rather than rejected.
    tags: List[Any] = Field(default_factory=list)


class InterestsResponse(BaseModel):
    tags: List[str] = Field(default_factory=list)


class SuggestionsResponse(BaseModel):
    suggestions: List[str] = Field(default_factory=list)
