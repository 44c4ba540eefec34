"""
Authentication and profile endpoints.

POST /api/v1/auth/register       — start signup, email a verification code
POST /api/v1/auth/login          — check password, email a login code
POST /api/v1/auth/verify         — redeem a code, returns a session token
POST /api/v1/auth/resend         — email a fresh code (shared cooldown)
GET  /api/v1/auth/me             — current user
PUT  /api/v1/auth/updatedetails  — profile fields + Steam stats refresh
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from dependencies import (
    get_auth_service,
    get_current_user_id,
    get_profile_service,
)
from schemas.dto.requests.auth import (
    LoginRequest,
    RegisterRequest,
    ResendCodeRequest,
    UpdateDetailsRequest,
    VerifyCodeRequest,
)
from schemas.dto.responses.auth import (
    ChallengeResponse,
    MeResponse,
    MessageResponse,
    UpdateDetailsResponse,
    UserProfileResponse,
    VerifyCodeResponse,
)
from services.auth_service import AuthService
from services.profile_service import UNSET, ProfileService
from shared.ip_utils import get_client_ip

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=201, response_model=ChallengeResponse)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> ChallengeResponse:
    email = await auth.begin_registration(body.email, body.username, body.password)
    return ChallengeResponse(email=email)


@router.post("/login", response_model=ChallengeResponse)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> ChallengeResponse:
    email = await auth.begin_login_challenge(body.email, body.password)
    return ChallengeResponse(email=email)


@router.post("/verify", response_model=VerifyCodeResponse)
async def verify(
    body: VerifyCodeRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> VerifyCodeResponse:
    session = await auth.consume_code(
        body.email,
        body.code,
        user_agent=request.headers.get("User-Agent"),
        address=get_client_ip(request),
    )
    return VerifyCodeResponse(token=session.token)


@router.post("/resend", response_model=MessageResponse)
async def resend(
    body: ResendCodeRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.resend_code(body.email)
    return MessageResponse(message="Verification code sent")


@router.get("/me", response_model=MeResponse)
async def me(
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
) -> MeResponse:
    user = await profiles.get_profile(user_id)
    return MeResponse(data=UserProfileResponse.from_user(user))


@router.put("/updatedetails", response_model=UpdateDetailsResponse)
async def update_details(
    body: UpdateDetailsRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
) -> UpdateDetailsResponse:
    profile_url = body.profile_url if "profile_url" in body.model_fields_set else UNSET
    result = await profiles.update_details(
        user_id,
        username=body.username,
        avatar=body.avatar,
        banner=body.banner,
        profile_url=profile_url,
    )
    return UpdateDetailsResponse(
        data=UserProfileResponse.from_user(result.user),
        enrichment_error=(
            result.enrichment_error.to_dict() if result.enrichment_error else None
        ),
    )
