"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan and
stored on app.state; they hold no per-request state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from errors import AuthenticationError
from services.auth_service import AuthService
from services.profile_service import ProfileService
from services.token_service import TokenService

_bearer = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Resolve the caller's user id from ``Authorization: Bearer <jwt>``."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized to access this route")
    claims = tokens.verify_access_token(credentials.credentials)
    return claims["sub"]
