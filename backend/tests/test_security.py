from __future__ import annotations

import asyncio
import time
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt

from deeplearn.core.config import settings
from deeplearn.core.security import (
    AuthConfigurationError,
    AuthenticationError,
    decode_access_token,
    get_identity,
    identity_from_header,
)


SECRET = "unit-test-secret"


@pytest.fixture(autouse=True)
def jwt_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "auth_jwt_secret", SECRET)
    monkeypatch.setattr(settings, "auth_jwt_algorithm", "HS256")
    monkeypatch.setattr(settings, "auth_jwt_audience", "authenticated")


def _token(**overrides) -> str:  # noqa: ANN003
    claims = {
        "sub": str(uuid4()),
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, SECRET, algorithm="HS256")


def test_decode_access_token_returns_subject() -> None:
    user_id = uuid4()
    identity = decode_access_token(_token(sub=str(user_id)))
    assert identity.user_id == user_id


def test_decode_access_token_rejects_bad_tokens() -> None:
    with pytest.raises(AuthenticationError):
        decode_access_token(
            jwt.encode({"sub": str(uuid4()), "aud": "authenticated"}, "other", algorithm="HS256")
        )
    with pytest.raises(AuthenticationError):
        decode_access_token(_token(exp=int(time.time()) - 10))
    with pytest.raises(AuthenticationError):
        decode_access_token(_token(aud="someone-else"))
    with pytest.raises(AuthenticationError):
        decode_access_token(_token(sub="not-a-uuid"))
    with pytest.raises(AuthenticationError):
        decode_access_token("garbage")


def test_identity_from_header_requires_bearer() -> None:
    with pytest.raises(AuthenticationError):
        identity_from_header(None)
    with pytest.raises(AuthenticationError):
        identity_from_header("Basic abc")
    with pytest.raises(AuthenticationError):
        identity_from_header("Bearer   ")


def test_missing_secret_is_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    token = _token()
    monkeypatch.setattr(settings, "auth_jwt_secret", None)
    with pytest.raises(AuthConfigurationError):
        decode_access_token(token)


def test_get_identity_maps_errors_to_http(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(get_identity(authorization=None))
    assert excinfo.value.status_code == 401

    token = _token()
    identity = asyncio.run(get_identity(authorization=f"Bearer {token}"))
    assert str(identity.user_id) == jwt.get_unverified_claims(token)["sub"]

    monkeypatch.setattr(settings, "auth_jwt_secret", "")
    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(get_identity(authorization=f"Bearer {token}"))
    assert excinfo.value.status_code == 500
    assert excinfo.value.detail == "Server configuration error"
