"""
Steam library statistics for a user profile.

Flow for one profile:
1. player summary      — missing profile → zeroed summary
2. visibility check    — not public (communityvisibilitystate != 3) → private
                         summary, no further calls
3. owned games         — game count + total playtime (rounded to hours once)
4. top-N most played   — achievement lists fetched concurrently, each with a
                         short deadline; a failed title counts as 0

Steps 1–3 are load-bearing and raise EnrichmentFailedError. Step 4 never
fails the aggregate.
"""

from __future__ import annotations

import asyncio
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from config import SteamSettings
from errors import EnrichmentFailedError, UpstreamTimeoutError
from infrastructure.steam import SteamClient
from schemas.models.user import ProfileStats
from shared.logging import get_logger

log = get_logger(__name__)

# SteamID64: 17 digits, individual accounts all start with 7656119
STEAM_ID64_PATTERN = re.compile(r"(?<!\d)7656119\d{10}(?!\d)")
VANITY_PATH_PATTERN = re.compile(r"/id/([^/?#]+)")
PUBLIC_VISIBILITY_STATE = 3


@dataclass(frozen=True)
class SteamSummary:
    total_games: int = 0
    total_playtime_hours: int = 0
    total_achievements: int = 0
    is_private: bool = False

    def to_profile_stats(self, synced_at: datetime) -> ProfileStats:
        return ProfileStats(
            total_games=self.total_games,
            total_playtime_hours=self.total_playtime_hours,
            total_achievements=self.total_achievements,
            is_private=self.is_private,
            last_sync=synced_at,
        )


EMPTY_SUMMARY = SteamSummary()
PRIVATE_SUMMARY = SteamSummary(is_private=True)


def minutes_to_hours(total_minutes: int) -> int:
    """Round half up, so 150 minutes is 3 hours (Python's round() would give 2)."""
    return int(math.floor(total_minutes / 60 + 0.5))


class SteamStatsAggregator:
    def __init__(self, client: SteamClient, settings: SteamSettings) -> None:
        self._client = client
        self._sample_size = settings.steam_achievement_sample_size
        self._achievement_timeout = settings.steam_achievement_timeout_seconds

    async def resolve_identity(self, profile_url_or_id: Optional[str]) -> Optional[str]:
        """Return the SteamID64 behind a profile URL or raw id, or None.

        Raw ids and /profiles/<id> URLs resolve without a network call; /id/<name>
        URLs go through the vanity resolver.
        """
        if not profile_url_or_id:
            return None

        match = STEAM_ID64_PATTERN.search(profile_url_or_id)
        if match:
            return match.group(0)

        vanity = VANITY_PATH_PATTERN.search(profile_url_or_id)
        if not vanity:
            return None

        try:
            return await self._client.resolve_vanity_url(vanity.group(1))
        except (httpx.HTTPError, ValueError) as e:
            log.error(
                "steam_vanity_resolution_failed",
                vanity=vanity.group(1),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EnrichmentFailedError("Could not resolve Steam profile") from e

    async def fetch_summary(self, steam_id: str) -> SteamSummary:
        try:
            profile = await self._client.get_player_summary(steam_id)
            if profile is None:
                return EMPTY_SUMMARY
            if profile.get("communityvisibilitystate") != PUBLIC_VISIBILITY_STATE:
                return PRIVATE_SUMMARY
            owned = await self._client.get_owned_games(steam_id)

            games: list[dict] = owned.get("games") or []
            total_games = int(owned.get("game_count") or 0)
            playtimes = [int(g.get("playtime_forever") or 0) for g in games]
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            log.error(
                "steam_profile_fetch_failed",
                steam_id=steam_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EnrichmentFailedError("Could not fetch Steam profile data") from e

        ranked = sorted(zip(playtimes, games), key=lambda pair: pair[0], reverse=True)
        top_games = [game for _, game in ranked[: self._sample_size]]
        counts = await asyncio.gather(
            *(self._count_achievements(steam_id, g) for g in top_games)
        )

        summary = SteamSummary(
            total_games=total_games,
            total_playtime_hours=minutes_to_hours(sum(playtimes)),
            total_achievements=sum(counts),
            is_private=False,
        )
        log.info(
            "steam_summary_fetched",
            steam_id=steam_id,
            total_games=summary.total_games,
            sampled_titles=len(top_games),
            total_achievements=summary.total_achievements,
        )
        return summary

    async def _fetch_achievements(self, steam_id: str, app_id: int) -> list[dict]:
        try:
            return await asyncio.wait_for(
                self._client.get_user_stats_for_game(
                    steam_id, app_id, timeout=self._achievement_timeout
                ),
                timeout=self._achievement_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(f"Achievements for app {app_id} timed out") from e

    async def _count_achievements(self, steam_id: str, game: dict) -> int:
        app_id = game.get("appid")
        if app_id is None:
            return 0
        try:
            achievements = await self._fetch_achievements(steam_id, app_id)
            return sum(
                1
                for a in achievements
                if isinstance(a, dict) and a.get("achieved") == 1
            )
        except Exception as e:
            # Titles without stats or with stats disallowed fail here routinely
            log.debug(
                "steam_achievements_unavailable",
                steam_id=steam_id,
                app_id=app_id,
                error_type=type(e).__name__,
            )
            return 0
