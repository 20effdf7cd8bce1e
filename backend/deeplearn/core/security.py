from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from deeplearn.core.config import settings


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, passed explicitly to every service call."""

    user_id: UUID


class AuthenticationError(ValueError):
    """Raised when a bearer token is missing, malformed or fails verification."""


class AuthConfigurationError(RuntimeError):
    """Raised when no token verification secret is configured."""


def decode_access_token(token: str) -> Identity:
    secret = settings.auth_jwt_secret
    if not secret:
        raise AuthConfigurationError("Token verification secret is not configured")

    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except JWTError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from exc

    subject = claims.get("sub")
    try:
        return Identity(user_id=UUID(str(subject)))
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Token subject is not a user id") from exc


def identity_from_header(authorization: Optional[str]) -> Identity:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Missing bearer token")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    return decode_access_token(token)


async def get_identity(authorization: Optional[str] = Header(default=None)) -> Identity:
    """FastAPI dependency resolving the caller from the ``Authorization`` header."""

    try:
        return identity_from_header(authorization)
    except AuthConfigurationError as exc:
        logger.error("[auth] %s", exc)
        raise HTTPException(status_code=500, detail="Server configuration error") from exc
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc
