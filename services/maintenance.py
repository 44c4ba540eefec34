"""
Account lifecycle maintenance.

- sweep_abandoned_signups: deletes unverified accounts whose unverifiedExpire
  is strictly before now. Mirrors the TTL index for deployments (or tests)
  where the store-native sweep is unavailable or too coarse.
- grant_subscription / reset_usage_counter / backfill_defaults: one-off
  administrative batch updates. Every write sets an absolute value, so a run
  interrupted part-way can simply be repeated.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from errors import NotFoundError
from repositories.user_repository import UserRepository
from shared.datetime_utils import utc_now
from shared.logging import get_logger

log = get_logger(__name__)


class MaintenanceService:
    def __init__(
        self,
        users: UserRepository,
        default_game_limit: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._users = users
        self._default_backfill: dict[str, Any] = {
            "subscriptionExpiry": None,
            "gameLimit": default_game_limit,
        }
        self._clock = clock

    async def sweep_abandoned_signups(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        deleted = await self._users.delete_expired_unverified(now)
        if deleted:
            log.info("abandoned_signups_swept", deleted=deleted)
        return deleted

    async def grant_subscription(self, email: str, duration_minutes: int) -> datetime:
        expiry = self._clock() + timedelta(minutes=duration_minutes)
        if not await self._users.set_field_by_email(email, "subscriptionExpiry", expiry):
            raise NotFoundError(f"User not found: {email}", field="email")
        log.info("subscription_granted", email=email, expires_at=expiry.isoformat())
        return expiry

    async def reset_usage_counter(self, field_name: str = "gameLimit", value: int = 0) -> int:
        modified = await self._users.set_field_on_all(field_name, value)
        log.info("usage_counter_reset", field=field_name, value=value, modified=modified)
        return modified

    async def backfill_defaults(
        self, field_defaults: Optional[Mapping[str, Any]] = None
    ) -> dict[str, int]:
        """Set each missing field to its default; existing values are left alone."""
        defaults = self._default_backfill if field_defaults is None else field_defaults
        results: dict[str, int] = {}
        for field, value in defaults.items():
            results[field] = await self._users.set_field_where_missing(field, value)
        log.info("defaults_backfilled", modified=results)
        return results
