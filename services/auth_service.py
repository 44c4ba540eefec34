"""
OTP verification engine: registration, login challenge, code redemption
and resend.

Account states:
    no account → pending verification → verified
A verified account may hold a transient login code; is_verified never flips
back to False.

Every code-issuing path (register, login, resend) goes through the same
cooldown check on lastVerificationSent and the same issuance policy. When the
email cannot be dispatched, no code the user cannot know is left valid:
- fresh registration: the just-created account is deleted
- pending account updated in place, login challenge: pending code cleared
- explicit resend: the account is already durable, the new code is kept
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from pymongo.errors import DuplicateKeyError

from config import VerificationSettings
from errors import (
    AlreadyExistsError,
    DispatchFailedError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    NotFoundError,
    ThrottledError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.otp import IssuedCode, check_cooldown, issue_code
from services.session_context import SessionContextResolver, build_login_event
from services.token_service import TokenService
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import utc_now
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


@dataclass(frozen=True)
class VerifiedSession:
    token: str
    user: UserDoc


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        email_provider: EmailProvider,
        session_resolver: SessionContextResolver,
        tokens: TokenService,
        settings: VerificationSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._users = users
        self._email = email_provider
        self._sessions = session_resolver
        self._tokens = tokens
        self._settings = settings
        self._clock = clock

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _enforce_cooldown(self, user: Optional[UserDoc], now: datetime, purpose: str) -> None:
        last_sent = user.last_verification_sent if user is not None else None
        result = check_cooldown(last_sent, now, self._settings.resend_cooldown_seconds)
        if not result.allowed:
            log.info(
                "otp_throttled",
                email=user.email if user is not None else None,
                purpose=purpose,
                seconds_remaining=result.seconds_remaining,
            )
            raise ThrottledError(result.seconds_remaining)

    def _issue(self, now: datetime) -> IssuedCode:
        return issue_code(now, self._settings.otp_ttl_seconds, self._settings.otp_length)

    @staticmethod
    def _pending_fields(issued: IssuedCode, mirror_unverified: bool) -> dict:
        fields = {
            "verificationCode": issued.code,
            "verificationCodeExpire": issued.expires_at,
            "lastVerificationSent": issued.sent_at,
        }
        if mirror_unverified:
            fields["unverifiedExpire"] = issued.expires_at
        return fields

    async def _dispatch(
        self, email: str, user_name: Optional[str], code: str, purpose: str
    ) -> bool:
        ttl_minutes = max(1, self._settings.otp_ttl_seconds // 60)
        try:
            sent = await self._email.send_verification_email(
                email, user_name, code, ttl_minutes
            )
        except Exception as e:
            log.error(
                "otp_dispatch_error",
                email=email,
                purpose=purpose,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if sent:
            log.info("otp_issued", email=email, purpose=purpose)
        else:
            log.error("otp_dispatch_failed", email=email, purpose=purpose)
        return sent

    # ── Operations ───────────────────────────────────────────────────────────

    async def begin_registration(self, email: str, username: str, password: str) -> str:
        now = self._clock()
        existing = await self._users.find_by_email(email)
        if existing is not None and existing.is_verified:
            raise AlreadyExistsError("User already exists", field="email")

        self._enforce_cooldown(existing, now, purpose="register")
        issued = self._issue(now)
        pending = self._pending_fields(issued, mirror_unverified=True)
        password_hash = hash_password(password)

        if existing is None:
            user = UserDoc(
                email=email,
                username=username,
                password_hash=password_hash,
                is_verified=False,
                verification_code=issued.code,
                verification_code_expire=issued.expires_at,
                unverified_expire=issued.expires_at,
                last_verification_sent=issued.sent_at,
                created_at=now,
            )
            try:
                user_id = await self._users.insert(user)
            except DuplicateKeyError:
                # Another request created the account between our read and insert
                raise AlreadyExistsError("User already exists", field="email")
            created = True
        else:
            await self._users.update_fields(
                existing.id,
                {"username": username, "passwordHash": password_hash, **pending},
            )
            user_id = existing.id
            created = False

        if not await self._dispatch(email, username, issued.code, purpose="register"):
            if created:
                await self._users.delete_by_id(user_id)
            else:
                await self._users.clear_pending_code(user_id)
            raise DispatchFailedError("Verification email could not be sent")

        return email

    async def begin_login_challenge(self, email: str, password: str) -> str:
        now = self._clock()
        user = await self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            log.info("login_rejected", email=email)
            raise InvalidCredentialsError()

        self._enforce_cooldown(user, now, purpose="login")
        issued = self._issue(now)
        await self._users.update_fields(
            user.id, self._pending_fields(issued, mirror_unverified=not user.is_verified)
        )

        if not await self._dispatch(email, user.username, issued.code, purpose="login"):
            await self._users.clear_pending_code(user.id)
            raise DispatchFailedError("Verification email could not be sent")

        return email

    async def consume_code(
        self,
        email: str,
        code: str,
        user_agent: Optional[str] = None,
        address: Optional[str] = None,
    ) -> VerifiedSession:
        now = self._clock()
        if not code or not code.isdigit():
            raise InvalidOrExpiredCodeError()

        context = await self._sessions.resolve(user_agent, address)
        event = build_login_event(context, now)

        user = await self._users.consume_verification_code(
            email, code, now, event, self._settings.login_history_limit
        )
        if user is None:
            log.info("otp_rejected", email=email)
            raise InvalidOrExpiredCodeError()

        log.info(
            "otp_verified",
            email=email,
            user_id=str(user.id),
            ip=hash_ip(event.ip),
            location=event.location,
        )
        token = self._tokens.issue_access_token(str(user.id), now=now)
        return VerifiedSession(token=token, user=user)

    async def resend_code(self, email: str) -> None:
        now = self._clock()
        user = await self._users.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found", field="email")

        self._enforce_cooldown(user, now, purpose="resend")
        issued = self._issue(now)
        await self._users.update_fields(
            user.id, self._pending_fields(issued, mirror_unverified=not user.is_verified)
        )

        if not await self._dispatch(email, user.username, issued.code, purpose="resend"):
            raise DispatchFailedError("Verification email could not be sent")
