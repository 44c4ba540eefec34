"""
Verification code policy: pure functions shared by every code-issuing path.

Registration, login challenge and explicit resend all gate on the same
``lastVerificationSent`` timestamp through ``check_cooldown`` and mint codes
through ``issue_code``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from shared.datetime_utils import ensure_utc
from shared.generators import generate_otp_code


@dataclass(frozen=True)
class CooldownResult:
    allowed: bool
    seconds_remaining: int = 0


@dataclass(frozen=True)
class IssuedCode:
    code: str
    expires_at: datetime
    sent_at: datetime


def check_cooldown(
    last_sent: Optional[datetime], now: datetime, window_seconds: int
) -> CooldownResult:
    """Decide whether a new code may be issued.

    Issuable again the instant ``now - last_sent >= window``. While throttled,
    ``seconds_remaining`` is the whole seconds left, rounded up, so it never
    reports 0 for a request that is still refused.
    """
    if last_sent is None:
        return CooldownResult(allowed=True)

    elapsed = (ensure_utc(now) - ensure_utc(last_sent)).total_seconds()
    if elapsed >= window_seconds:
        return CooldownResult(allowed=True)

    remaining = min(window_seconds, math.ceil(window_seconds - elapsed))
    return CooldownResult(allowed=False, seconds_remaining=remaining)


def issue_code(now: datetime, ttl_seconds: int, length: int = 6) -> IssuedCode:
    return IssuedCode(
        code=generate_otp_code(length),
        expires_at=now + timedelta(seconds=ttl_seconds),
        sent_at=now,
    )
