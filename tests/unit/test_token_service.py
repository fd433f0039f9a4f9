"""Unit tests for TokenService."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from review_api.errors import AuthError, AuthErrorCode
from review_api.services.token_service import JWT_ALGORITHM, TokenService


@pytest.fixture
def tokens():
    return TokenService(secret="test-secret", lifetime=timedelta(hours=2))


class TestIssue:
    """Tests for TokenService.issue."""

    def test_token_has_three_segments(self, tokens):
        issued = tokens.issue(user_id=uuid4(), email="a@x.io", is_admin=False)

        assert issued.token.count(".") == 2

    def test_expiry_matches_lifetime(self, tokens):
        now = datetime.now(timezone.utc).replace(microsecond=0)

        issued = tokens.issue(user_id=uuid4(), email="a@x.io", is_admin=False, now=now)

        assert issued.expires_at == now + timedelta(hours=2)
        payload = jwt.decode(issued.token, "test-secret", algorithms=[JWT_ALGORITHM])
        assert payload["exp"] == int(issued.expires_at.timestamp())

    def test_claims_use_camel_case(self, tokens):
        user_id = uuid4()

        issued = tokens.issue(user_id=user_id, email="a@x.io", is_admin=True)

        payload = jwt.decode(issued.token, "test-secret", algorithms=[JWT_ALGORITHM])
        assert payload["userId"] == str(user_id)
        assert payload["email"] == "a@x.io"
        assert payload["isAdmin"] is True

    def test_same_second_tokens_differ(self, tokens):
        user_id = uuid4()
        now = datetime.now(timezone.utc)

        first = tokens.issue(user_id=user_id, email="a@x.io", is_admin=False, now=now)
        second = tokens.issue(user_id=user_id, email="a@x.io", is_admin=False, now=now)

        assert first.token != second.token


class TestVerify:
    """Tests for TokenService.verify."""

    def test_round_trip_claims(self, tokens):
        user_id = uuid4()
        issued = tokens.issue(user_id=user_id, email="a@x.io", is_admin=False)

        claims = tokens.verify(issued.token)

        assert claims.user_id == user_id
        assert claims.email == "a@x.io"
        assert claims.is_admin is False

    def test_expired_token(self, tokens):
        past = datetime.now(timezone.utc) - timedelta(hours=3)
        issued = tokens.issue(user_id=uuid4(), email="a@x.io", is_admin=False, now=past)

        with pytest.raises(AuthError) as exc_info:
            tokens.verify(issued.token)

        assert exc_info.value.code is AuthErrorCode.TOKEN_EXPIRED

    def test_wrong_secret_is_invalid(self, tokens):
        other = TokenService(secret="other-secret", lifetime=timedelta(hours=2))
        issued = other.issue(user_id=uuid4(), email="a@x.io", is_admin=False)

        with pytest.raises(AuthError) as exc_info:
            tokens.verify(issued.token)

        assert exc_info.value.code is AuthErrorCode.INVALID_TOKEN

    def test_garbage_is_invalid(self, tokens):
        with pytest.raises(AuthError) as exc_info:
            tokens.verify("not.a.jwt")

        assert exc_info.value.code is AuthErrorCode.INVALID_TOKEN

    def test_missing_claims_is_invalid(self, tokens):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"email": "a@x.io", "iat": now, "exp": now + timedelta(hours=1)},
            "test-secret",
            algorithm=JWT_ALGORITHM,
        )

        with pytest.raises(AuthError) as exc_info:
            tokens.verify(token)

        assert exc_info.value.code is AuthErrorCode.INVALID_TOKEN

    def test_token_without_exp_is_invalid(self, tokens):
        token = jwt.encode(
            {"userId": str(uuid4()), "email": "a@x.io", "isAdmin": False, "jti": "x"},
            "test-secret",
            algorithm=JWT_ALGORITHM,
        )

        with pytest.raises(AuthError) as exc_info:
            tokens.verify(token)

        assert exc_info.value.code is AuthErrorCode.INVALID_TOKEN
