"""Tests for session token issuance and validation."""

import uuid
from datetime import timedelta

import jwt
import pytest

from models.users_models import User
from services.errors import ConfigurationError, InvalidTokenError
from services.tokens_service import TokenService

_TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105


def _user() -> User:
    return User(id=uuid.UUID("00000000-0000-0000-0000-000000000001"), name="Jane", email="jane@x.com")


class TestCreateSessionToken:
    def test_embeds_identity_claims(self):
        token = TokenService(secret=_TEST_SECRET).create_session_token(_user())
        payload = jwt.decode(token, _TEST_SECRET, algorithms=["HS256"])

        assert payload["sub"] == "00000000-0000-0000-0000-000000000001"
        assert payload["email"] == "jane@x.com"
        assert payload["name"] == "Jane"
        assert payload["type"] == "access"
        for claim in ("exp", "iat", "jti"):
            assert claim in payload, f"Missing claim: {claim}"

    def test_tokens_are_unique(self):
        service = TokenService(secret=_TEST_SECRET)
        assert service.create_session_token(_user()) != service.create_session_token(_user())

    def test_missing_secret_fails_fast(self):
        with pytest.raises(ConfigurationError):
            TokenService(secret="").create_session_token(_user())


class TestValidateAccessToken:
    def test_round_trip(self):
        service = TokenService(secret=_TEST_SECRET)
        payload = service.validate_access_token(service.create_session_token(_user()))
        assert payload["sub"] == "00000000-0000-0000-0000-000000000001"

    def test_wrong_secret(self):
        token = TokenService(secret=_TEST_SECRET).create_session_token(_user())
        with pytest.raises(InvalidTokenError):
            TokenService(secret="another-secret-that-is-long-enough-too").validate_access_token(token)

    def test_expired(self):
        service = TokenService(secret=_TEST_SECRET)
        token = service.create_access_token({"sub": "x"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(InvalidTokenError):
            service.validate_access_token(token)

    def test_wrong_type(self):
        token = jwt.encode({"sub": "x", "type": "refresh"}, _TEST_SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            TokenService(secret=_TEST_SECRET).validate_access_token(token)
