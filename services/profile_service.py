"""
Profile reads and the details-update flow that applies Steam enrichment.

Enrichment is best-effort with respect to the rest of the update: when the
Steam lookup fails the plain field changes still commit, the stored
profileStats are left as they were, and the failure is returned to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from errors import EnrichmentFailedError, NotFoundError
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.steam_stats import EMPTY_SUMMARY, SteamStatsAggregator
from shared.datetime_utils import utc_now
from shared.logging import get_logger

log = get_logger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class UpdateDetailsResult:
    user: UserDoc
    enrichment_error: Optional[EnrichmentFailedError] = None


class ProfileService:
    def __init__(
        self,
        users: UserRepository,
        steam: SteamStatsAggregator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._users = users
        self._steam = steam
        self._clock = clock

    async def get_profile(self, user_id: str) -> UserDoc:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_details(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        avatar: Optional[str] = None,
        banner: Optional[str] = None,
        profile_url: Any = UNSET,
    ) -> UpdateDetailsResult:
        """Apply a partial profile update.

        ``profile_url`` semantics:
        - UNSET: link and stats untouched
        - "" / None: link cleared, stats reset to an empty summary
        - URL or id: stats replaced wholesale when the identity resolves; an
          unresolvable link is stored but the previous stats are kept
        """
        fields: dict[str, Any] = {}
        if username:
            fields["username"] = username
        if avatar:
            fields["avatar"] = avatar
        if banner:
            fields["banner"] = banner

        enrichment_error: Optional[EnrichmentFailedError] = None
        if profile_url is not UNSET:
            fields["profileUrl"] = profile_url or None
            if profile_url:
                try:
                    stats = await self._fetch_stats(profile_url)
                except EnrichmentFailedError as e:
                    log.warning(
                        "profile_enrichment_failed", user_id=user_id, error=e.message
                    )
                    enrichment_error = e
                else:
                    if stats is not None:
                        fields["profileStats"] = stats
            else:
                fields["profileStats"] = EMPTY_SUMMARY.to_profile_stats(
                    self._clock()
                ).model_dump(by_alias=True)

        if fields:
            user = await self._users.update_fields(user_id, fields)
        else:
            user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        return UpdateDetailsResult(user=user, enrichment_error=enrichment_error)

    async def _fetch_stats(self, profile_url: str) -> Optional[dict]:
        steam_id = await self._steam.resolve_identity(profile_url)
        if steam_id is None:
            log.info("steam_identity_unresolved", profile_url=profile_url)
            return None
        summary = await self._steam.fetch_summary(steam_id)
        return summary.to_profile_stats(self._clock()).model_dump(by_alias=True)
