"""Unit tests for request and response DTOs."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.dto.requests.auth import (
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    VerifyCodeRequest,
)
from schemas.dto.responses.auth import UserProfileResponse
from schemas.models.user import LoginEvent, ProfileStats, UserDoc


# ── Requests ──────────────────────────────────────────────────────────────────


class TestRegisterRequest:
    def test_valid(self):
        req = RegisterRequest(email="a@x.io", username="  player ", password="secret1")
        assert req.username == "player"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "nope", "username": "p", "password": "secret1"},
            {"email": "a@x.io", "username": "   ", "password": "secret1"},
            {"email": "a@x.io", "username": "p", "password": "short"},
        ],
        ids=["bad_email", "blank_username", "short_password"],
    )
    def test_invalid(self, body):
        with pytest.raises(ValidationError):
            RegisterRequest(**body)


class TestLoginRequest:
    def test_password_required(self):
        with pytest.raises(ValidationError):
            LoginRequest(email="a@x.io", password="")


class TestVerifyCodeRequest:
    def test_code_stripped(self):
        assert VerifyCodeRequest(email="a@x.io", code=" 123456 ").code == "123456"

    def test_code_too_long(self):
        with pytest.raises(ValidationError):
            VerifyCodeRequest(email="a@x.io", code="1" * 13)


class TestUpdateDetailsRequest:
    @pytest.mark.parametrize("key", ["profileUrl", "steamUrl", "profile_url"])
    def test_profile_url_aliases(self, key):
        req = UpdateDetailsRequest.model_validate({key: "https://steamcommunity.com/id/x"})
        assert req.profile_url == "https://steamcommunity.com/id/x"
        assert "profile_url" in req.model_fields_set

    def test_omitted_profile_url_not_in_fields_set(self):
        req = UpdateDetailsRequest.model_validate({"username": "renamed"})
        assert "profile_url" not in req.model_fields_set

    def test_empty_profile_url_kept(self):
        req = UpdateDetailsRequest.model_validate({"profileUrl": ""})
        assert req.profile_url == ""
        assert "profile_url" in req.model_fields_set


# ── Responses ─────────────────────────────────────────────────────────────────


class TestUserProfileResponse:
    def test_from_user_hides_secrets(self):
        user = UserDoc(
            id=ObjectId(),
            email="a@x.io",
            username="player",
            password_hash="$argon2id$...",
            is_verified=True,
            verification_code="123456",
            profile_stats=ProfileStats(
                total_games=2, last_sync=datetime(2026, 1, 1, tzinfo=timezone.utc)
            ),
            login_history=[
                LoginEvent(ip="1.2.3.4", browser="b", os="o", device="d", date="x")
            ],
        )

        dumped = UserProfileResponse.from_user(user).model_dump()

        assert dumped["id"] == str(user.id)
        assert dumped["is_verified"] is True
        assert dumped["profile_stats"]["total_games"] == 2
        assert dumped["login_history"][0]["ip"] == "1.2.3.4"
        assert "password_hash" not in dumped
        assert "verification_code" not in dumped

    def test_from_user_without_stats(self):
        user = UserDoc(id=ObjectId(), email="a@x.io")
        assert UserProfileResponse.from_user(user).profile_stats is None
