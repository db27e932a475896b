"""
Tests for the token codec.
"""

from datetime import timedelta

import jwt
import pytest

from classroom.auth.tokens import (
    TokenExpiredError,
    TokenInvalidError,
    TokenKind,
    TokenWrongKindError,
)


class TestIssueAndVerify:
    def test_access_token_roundtrip(self, codec):
        token = codec.issue("user_1", TokenKind.ACCESS)

        payload = codec.verify(token, TokenKind.ACCESS)

        assert payload.sub == "user_1"
        assert payload.type == TokenKind.ACCESS
        assert payload.exp > payload.iat

    def test_no_role_claims(self, codec, settings):
        token = codec.issue("user_1", TokenKind.ACCESS)

        claims = jwt.decode(token, settings.jwt_access_secret, algorithms=["HS256"])

        assert set(claims) == {"sub", "iat", "exp", "type", "jti"}

    def test_pair_lifetimes(self, codec, settings):
        pair = codec.issue_pair("user_1")

        assert pair.expires_in == settings.access_token_expire_minutes * 60
        assert pair.refresh_expires_in == settings.refresh_token_expire_days * 86400
        assert codec.verify(pair.refresh_token, TokenKind.REFRESH).sub == "user_1"

    def test_tokens_are_unique(self, codec):
        first = codec.issue("user_1", TokenKind.REFRESH)
        second = codec.issue("user_1", TokenKind.REFRESH)

        assert first != second


class TestVerifyErrors:
    def test_expired(self, codec):
        token = codec.issue("user_1", TokenKind.ACCESS, ttl=timedelta(seconds=-5))

        with pytest.raises(TokenExpiredError):
            codec.verify(token, TokenKind.ACCESS)

    def test_garbage(self, codec):
        with pytest.raises(TokenInvalidError):
            codec.verify("not.a.token", TokenKind.ACCESS)

    def test_empty(self, codec):
        with pytest.raises(TokenInvalidError):
            codec.verify("", TokenKind.ACCESS)

    def test_forged_signature(self, codec):
        forged = jwt.encode(
            {"sub": "user_1", "iat": 0, "exp": 4_000_000_000, "type": "access", "jti": "x"},
            "attacker-secret-0123456789abcdef0123",
            algorithm="HS256",
        )

        with pytest.raises(TokenInvalidError) as exc:
            codec.verify(forged, TokenKind.ACCESS)
        assert not isinstance(exc.value, TokenWrongKindError)

    def test_refresh_token_as_access(self, codec):
        token = codec.issue("user_1", TokenKind.REFRESH)

        with pytest.raises(TokenWrongKindError):
            codec.verify(token, TokenKind.ACCESS)

    def test_access_token_as_refresh(self, codec):
        token = codec.issue("user_1", TokenKind.ACCESS)

        with pytest.raises(TokenWrongKindError):
            codec.verify(token, TokenKind.REFRESH)

    def test_reset_token_as_access(self, codec):
        token = codec.issue("user_1", TokenKind.RESET)

        with pytest.raises(TokenWrongKindError):
            codec.verify(token, TokenKind.ACCESS)

    def test_missing_claims(self, codec, settings):
        token = jwt.encode({"sub": "user_1"}, settings.jwt_access_secret, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            codec.verify(token, TokenKind.ACCESS)
