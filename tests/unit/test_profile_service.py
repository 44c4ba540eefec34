"""Unit tests for profile reads and the details-update flow."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from config import SteamSettings
from errors import EnrichmentFailedError, NotFoundError
from infrastructure.steam import SteamClient
from schemas.models.user import ProfileStats, UserDoc
from services.profile_service import ProfileService
from services.steam_stats import SteamStatsAggregator, SteamSummary

STEAM_ID = "76561198000000001"


@pytest.fixture
def steam():
    agg = MagicMock(spec=SteamStatsAggregator)
    agg.resolve_identity = AsyncMock(return_value=STEAM_ID)
    agg.fetch_summary = AsyncMock(return_value=SteamSummary(4, 30, 12, False))
    return agg


@pytest.fixture
def profiles(user_repo, steam, clock):
    return ProfileService(user_repo, steam, clock=clock)


@pytest.fixture
async def user_id(user_repo, clock):
    return await user_repo.insert(
        UserDoc(
            email="player@example.com",
            username="player",
            is_verified=True,
            profile_url="https://steamcommunity.com/id/old",
            profile_stats=ProfileStats(
                total_games=1, total_playtime_hours=2, total_achievements=3
            ),
            created_at=clock.now,
        )
    )


class TestGetProfile:
    async def test_returns_user(self, profiles, user_id):
        user = await profiles.get_profile(str(user_id))
        assert user.email == "player@example.com"

    @pytest.mark.parametrize("bad_id", ["not-an-object-id", "507f1f77bcf86cd799439011"])
    async def test_unknown_user(self, profiles, bad_id):
        with pytest.raises(NotFoundError):
            await profiles.get_profile(bad_id)


class TestUpdateDetails:
    async def test_plain_fields_without_profile_url(self, profiles, user_id, steam):
        result = await profiles.update_details(
            str(user_id), username="renamed", avatar="a.png", banner="b.png"
        )

        assert result.user.username == "renamed"
        assert result.user.avatar == "a.png"
        assert result.user.banner == "b.png"
        assert result.user.profile_stats.total_games == 1
        assert result.enrichment_error is None
        steam.resolve_identity.assert_not_awaited()

    async def test_empty_values_do_not_overwrite(self, profiles, user_id):
        result = await profiles.update_details(str(user_id), username="", avatar=None)
        assert result.user.username == "player"

    async def test_stats_replaced_on_resolved_link(
        self, profiles, user_id, steam, clock
    ):
        url = f"https://steamcommunity.com/profiles/{STEAM_ID}"
        result = await profiles.update_details(str(user_id), profile_url=url)

        stats = result.user.profile_stats
        assert result.user.profile_url == url
        assert (stats.total_games, stats.total_playtime_hours, stats.total_achievements) == (
            4,
            30,
            12,
        )
        assert stats.last_sync == clock.now
        steam.fetch_summary.assert_awaited_once_with(STEAM_ID)

    async def test_private_profile_stored(self, profiles, user_id, steam):
        steam.fetch_summary.return_value = SteamSummary(is_private=True)
        result = await profiles.update_details(str(user_id), profile_url=STEAM_ID)
        assert result.user.profile_stats.is_private is True
        assert result.user.profile_stats.total_games == 0

    async def test_unresolved_link_keeps_previous_stats(
        self, profiles, user_id, steam
    ):
        steam.resolve_identity.return_value = None
        result = await profiles.update_details(
            str(user_id), profile_url="https://example.com/not-steam"
        )

        assert result.user.profile_url == "https://example.com/not-steam"
        assert result.user.profile_stats.total_games == 1
        steam.fetch_summary.assert_not_awaited()

    async def test_empty_link_resets_stats(self, profiles, user_id, steam, clock):
        result = await profiles.update_details(str(user_id), profile_url="")

        stats = result.user.profile_stats
        assert result.user.profile_url is None
        assert stats.total_games == 0
        assert stats.total_achievements == 0
        assert stats.last_sync == clock.now
        steam.resolve_identity.assert_not_awaited()

    async def test_enrichment_failure_still_commits_other_fields(
        self, profiles, user_id, steam
    ):
        steam.fetch_summary.side_effect = EnrichmentFailedError("steam down")

        result = await profiles.update_details(
            str(user_id), username="renamed", profile_url=STEAM_ID
        )

        assert result.user.username == "renamed"
        assert result.user.profile_stats.total_games == 1
        assert isinstance(result.enrichment_error, EnrichmentFailedError)

    async def test_malformed_steam_payload_still_commits_other_fields(
        self, user_repo, user_id, clock
    ):
        client = MagicMock(spec=SteamClient)
        client.get_player_summary = AsyncMock(
            return_value={"steamid": STEAM_ID, "communityvisibilitystate": 3}
        )
        client.get_owned_games = AsyncMock(
            return_value={"game_count": 1, "games": [{"appid": 1, "playtime_forever": "n/a"}]}
        )
        aggregator = SteamStatsAggregator(client, SteamSettings())
        profiles = ProfileService(user_repo, aggregator, clock=clock)

        result = await profiles.update_details(
            str(user_id), username="renamed", profile_url=STEAM_ID
        )

        assert result.user.username == "renamed"
        assert result.user.profile_stats.total_games == 1
        assert isinstance(result.enrichment_error, EnrichmentFailedError)

    async def test_unknown_user(self, profiles):
        with pytest.raises(NotFoundError):
            await profiles.update_details("507f1f77bcf86cd799439011", username="x")

    async def test_no_changes_returns_current_user(self, profiles, user_id):
        result = await profiles.update_details(str(user_id))
        assert result.user.username == "player"
