"""
User document model.

Maps to the `users` MongoDB collection. Storage keys are camelCase (the
aliases below); Python code uses the snake_case attribute names.

A document is in exactly one of two states:
- pending verification: is_verified False, verification_code and
  unverified_expire set (the TTL index reaps it once unverified_expire passes)
- verified: is_verified True, unverified_expire cleared; verification_code is
  only present transiently while a login challenge is outstanding
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel


class LoginEvent(BaseModel):
    """One successful sign-in, embedded most-recent-first in login_history."""

    model_config = ConfigDict(frozen=True)

    ip: str
    browser: str
    os: str
    device: str
    location: str = "Unknown"
    timezone: str = "UTC"
    date: str


class ProfileStats(BaseModel):
    """Steam library summary. Always replaced wholesale, never patched."""

    model_config = ConfigDict(populate_by_name=True)

    total_games: int = Field(default=0, alias="totalGames")
    total_playtime_hours: int = Field(default=0, alias="totalPlaytimeHours")
    total_achievements: int = Field(default=0, alias="totalAchievements")
    is_private: bool = Field(default=False, alias="isPrivate")
    last_sync: Optional[datetime] = Field(default=None, alias="lastSync")


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    email: str
    username: Optional[str] = None
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")
    avatar: Optional[str] = None
    banner: Optional[str] = None

    is_verified: bool = Field(default=False, alias="isVerified")
    verification_code: Optional[str] = Field(default=None, alias="verificationCode")
    verification_code_expire: Optional[datetime] = Field(
        default=None, alias="verificationCodeExpire"
    )
    unverified_expire: Optional[datetime] = Field(default=None, alias="unverifiedExpire")
    last_verification_sent: Optional[datetime] = Field(
        default=None, alias="lastVerificationSent"
    )

    login_history: list[LoginEvent] = Field(default_factory=list, alias="loginHistory")

    game_limit: int = Field(default=5, alias="gameLimit")
    subscription_expiry: Optional[datetime] = Field(
        default=None, alias="subscriptionExpiry"
    )

    profile_url: Optional[str] = Field(default=None, alias="profileUrl")
    profile_stats: Optional[ProfileStats] = Field(default=None, alias="profileStats")

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
