"""
Request DTOs for authentication endpoints.

RegisterRequest        — POST /api/v1/auth/register
LoginRequest           — POST /api/v1/auth/login
VerifyCodeRequest      — POST /api/v1/auth/verify
ResendCodeRequest      — POST /api/v1/auth/resend
UpdateDetailsRequest   — PUT  /api/v1/auth/updatedetails
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=1)


class VerifyCodeRequest(BaseModel):
    """Request body for POST /auth/verify.

    ``code`` is the numeric OTP from the verification email.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    code: str = Field(min_length=1, max_length=12)

    @field_validator("code")
    @classmethod
    def _strip_code(cls, v: str) -> str:
        return v.strip()


class ResendCodeRequest(BaseModel):
    """Request body for POST /auth/resend."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class UpdateDetailsRequest(BaseModel):
    """Request body for PUT /auth/updatedetails.

    Omitting ``profileUrl`` leaves the Steam link alone; sending an empty
    string clears it.
    """

    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = Field(default=None, max_length=50)
    avatar: Optional[str] = None
    banner: Optional[str] = None
    profile_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("profileUrl", "steamUrl", "profile_url"),
    )
