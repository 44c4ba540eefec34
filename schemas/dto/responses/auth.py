"""
Response DTOs for authentication endpoints.

ChallengeResponse      — POST /auth/register (201), POST /auth/login (200)
VerifyCodeResponse     — POST /auth/verify (200)
MessageResponse        — POST /auth/resend (200)
UserProfileResponse    — user shape inside MeResponse / UpdateDetailsResponse
MeResponse             — GET  /auth/me (200)
UpdateDetailsResponse  — PUT  /auth/updatedetails (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class ChallengeResponse(BaseModel):
    """A verification code was sent to ``email``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    email: str
    message: str = "Verification code sent"


class VerifyCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str


class LoginEventResponse(BaseModel):
    ip: str
    browser: str
    os: str
    device: str
    location: str
    timezone: str
    date: str


class ProfileStatsResponse(BaseModel):
    total_games: int
    total_playtime_hours: int
    total_achievements: int
    is_private: bool
    last_sync: Optional[datetime] = None


class UserProfileResponse(BaseModel):
    """Public view of a UserDoc; never includes the password hash or pending code."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: Optional[str] = None
    avatar: Optional[str] = None
    banner: Optional[str] = None
    is_verified: bool
    game_limit: int
    subscription_expiry: Optional[datetime] = None
    profile_url: Optional[str] = None
    profile_stats: Optional[ProfileStatsResponse] = None
    login_history: list[LoginEventResponse] = []

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        stats = user.profile_stats
        return cls(
            id=str(user.id),
            email=user.email,
            username=user.username,
            avatar=user.avatar,
            banner=user.banner,
            is_verified=user.is_verified,
            game_limit=user.game_limit,
            subscription_expiry=user.subscription_expiry,
            profile_url=user.profile_url,
            profile_stats=(
                ProfileStatsResponse(**stats.model_dump()) if stats is not None else None
            ),
            login_history=[
                LoginEventResponse(**event.model_dump()) for event in user.login_history
            ],
        )


class MeResponse(BaseModel):
    success: bool = True
    data: UserProfileResponse


class UpdateDetailsResponse(BaseModel):
    success: bool = True
    data: UserProfileResponse
    # Present when the Steam lookup failed; the other fields were still saved
    enrichment_error: Optional[dict[str, Any]] = None
