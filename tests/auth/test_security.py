"""Tests for access token handling."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from edustore.auth.permissions import UserRole
from edustore.auth.security import create_access_token, decode_access_token
from edustore.config import get_settings


def _claims(**overrides) -> dict:
    claims = {
        "sub": str(uuid4()),
        "email": "learner@example.com",
        "role": UserRole.STUDENT.value,
    }
    claims.update(overrides)
    return claims


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_round_trip(self) -> None:
        """Decoded payload carries identity and token type."""
        claims = _claims()

        payload = decode_access_token(create_access_token(claims))

        assert payload["sub"] == claims["sub"]
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token(self) -> None:
        token = create_access_token(_claims(), expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_type(self) -> None:
        """Refresh or other token types are refused."""
        settings = get_settings()
        token = jwt.encode(
            {**_claims(), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_missing_claims(self) -> None:
        token = create_access_token({"sub": str(uuid4())})

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_foreign_signature(self) -> None:
        """Tokens signed with another key are refused."""
        token = jwt.encode(
            {**_claims(), "type": "access"},
            "some-other-signing-key-of-sufficient-length",
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            decode_access_token(token)
