"""Unit tests for session token issuance and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config import JWTSettings
from errors import AuthenticationError
from services.token_service import TokenService


@pytest.fixture
def tokens():
    return TokenService(JWTSettings(jwt_secret="unit-test-secret"))


class TestTokenService:
    def test_requires_secret_without_rs256(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.delenv("JWT_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)
        with pytest.raises(RuntimeError):
            TokenService(JWTSettings())

    def test_round_trip_claims(self, tokens):
        token = tokens.issue_access_token("507f1f77bcf86cd799439011")
        claims = tokens.verify_access_token(token)
        assert claims["sub"] == "507f1f77bcf86cd799439011"
        assert claims["amr"] == ["otp"]
        assert claims["iss"] == "game-accounts"
        assert claims["exp"] - claims["iat"] == 2592000

    def test_expired_token_rejected(self, tokens):
        issued = datetime.now(timezone.utc) - timedelta(days=31)
        token = tokens.issue_access_token("u1", now=issued)
        with pytest.raises(AuthenticationError, match="expired"):
            tokens.verify_access_token(token)

    def test_foreign_signature_rejected(self, tokens):
        other = TokenService(JWTSettings(jwt_secret="someone-else"))
        with pytest.raises(AuthenticationError):
            tokens.verify_access_token(other.issue_access_token("u1"))

    def test_garbage_rejected(self, tokens):
        with pytest.raises(AuthenticationError):
            tokens.verify_access_token("not.a.jwt")

    def test_hs256_algorithm(self, tokens):
        header = jwt.get_unverified_header(tokens.issue_access_token("u1"))
        assert header["alg"] == "HS256"

    def test_naive_now_treated_as_utc(self, tokens):
        aware = datetime.now(timezone.utc).replace(microsecond=0)
        naive = aware.replace(tzinfo=None)
        assert tokens.issue_access_token("u1", now=naive) == tokens.issue_access_token(
            "u1", now=aware
        )
