"""
Session credentials: signed JWT access tokens.

RS256 when a key pair is configured, HS256 with ``JWT_SECRET`` otherwise.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from config import JWTSettings
from errors import AuthenticationError
from shared.datetime_utils import ensure_utc, utc_now


class TokenService:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings
        if settings.use_rs256:
            # Keys may arrive via env with literal \n sequences
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._signing_key = self._verify_key = settings.jwt_secret
            self._algorithm = "HS256"

    def issue_access_token(
        self, user_id: str, auth_method: str = "otp", now: Optional[datetime] = None
    ) -> str:
        now = ensure_utc(now) if now else utc_now()
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.access_token_ttl_seconds)).timestamp()
            ),
            "amr": [auth_method],
        }
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> dict:
        """Decode *token*; raises AuthenticationError when invalid or expired."""
        try:
            return jwt.decode(
                token,
                self._verify_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Session expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid session token")
