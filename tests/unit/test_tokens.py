import pytest
from datetime import timedelta
from types import SimpleNamespace
from jose import jwt
from core.config import settings
from core.exceptions import (
    BadSignatureError, InvalidTokenTypeError, MalformedTokenError, TokenExpiredError,
)
from services.token_service import TokenService, ACCESS, REFRESH

USER = SimpleNamespace(id=1, email="user@example.com", role="user")


def test_access_token_creation(token_service):
    test_token = token_service.create_token(USER, ACCESS)
    assert test_token

    payload = jwt.decode(test_token, key=settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["sub"] == "user@example.com"
    assert payload["id"] == 1
    assert payload["role"] == "user"
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == 15 * 60


def test_refresh_token_lifetime(token_service):
    test_token = token_service.create_token(USER, REFRESH)

    payload = jwt.decode(test_token, key=settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["type"] == "refresh"
    assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60


def test_issue_pair_tokens_are_distinct(token_service):
    first = token_service.issue_pair(USER)
    second = token_service.issue_pair(USER)

    assert first["token_type"] == "bearer"
    assert first["access_token"] != first["refresh_token"]
    assert first["access_token"] != second["access_token"]


def test_verify_returns_claims(token_service):
    token = token_service.create_token(USER, ACCESS)
    claims = token_service.verify(token, ACCESS)

    assert claims.user_id == 1
    assert claims.email == "user@example.com"
    assert claims.role == "user"
    assert claims.type == ACCESS
    assert claims.expires_at > claims.issued_at


def test_verify_rejects_wrong_type(token_service):
    refresh_token = token_service.create_token(USER, REFRESH)

    with pytest.raises(InvalidTokenTypeError) as exc_info:
        token_service.verify(refresh_token, ACCESS)

    assert exc_info.value.status_code == 401


def test_verify_rejects_expired_token(token_service):
    expired = token_service.create_token(USER, ACCESS, expires_delta=timedelta(seconds=-10))

    with pytest.raises(TokenExpiredError):
        token_service.verify(expired, ACCESS)


def test_verify_rejects_foreign_signature(token_service):
    forged = jwt.encode(
        {"sub": USER.email, "id": USER.id, "role": "admin", "type": "access", "exp": 9999999999},
        "some-other-secret",
        algorithm="HS256",
    )

    with pytest.raises(BadSignatureError):
        token_service.verify(forged, ACCESS)


@pytest.mark.parametrize("garbage", ["invalid_token_format", "a.b.c", ""])
def test_verify_rejects_malformed_token(token_service, garbage):
    with pytest.raises(MalformedTokenError):
        token_service.verify(garbage, ACCESS)


def test_unknown_token_type_is_rejected(token_service):
    with pytest.raises(ValueError):
        token_service.create_token(USER, "session")


def test_service_uses_injected_settings():
    other = settings.model_copy(update={"ACCESS_TOKEN_EXPIRE_MINUTES": 1})
    token = TokenService(other).create_token(USER, ACCESS)

    payload = jwt.decode(token, key=settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["exp"] - payload["iat"] == 60
