"""Steam Web API client: the read-only profile data source.

Thin async wrapper over the four endpoints the stats aggregator needs.
Non-2xx responses raise ``httpx.HTTPStatusError``; transport problems raise
the usual ``httpx.RequestError`` subclasses (``httpx.TimeoutException`` for
timeouts). Callers decide which failures are fatal.
"""

from typing import Any, Optional

from config import SteamSettings
from infrastructure.http_client import HttpClient


class SteamClient:
    def __init__(self, settings: SteamSettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client
        self._base_url = settings.steam_api_base_url.rstrip("/")

    async def _get_json(
        self, path: str, params: dict[str, Any], timeout: Optional[float] = None
    ) -> dict:
        kwargs: dict[str, Any] = {
            "params": {"key": self._settings.steam_api_key, **params}
        }
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self._http.get(f"{self._base_url}/{path}", **kwargs)
        response.raise_for_status()
        return response.json()

    async def resolve_vanity_url(self, vanity_name: str) -> Optional[str]:
        """Return the SteamID64 for a custom profile name, or None when unknown."""
        data = await self._get_json(
            "ISteamUser/ResolveVanityURL/v0001/", {"vanityurl": vanity_name}
        )
        body = data.get("response") or {}
        if body.get("success") == 1:
            return body.get("steamid")
        return None

    async def get_player_summary(self, steam_id: str) -> Optional[dict]:
        data = await self._get_json(
            "ISteamUser/GetPlayerSummaries/v0002/", {"steamids": steam_id}
        )
        players = (data.get("response") or {}).get("players") or []
        return players[0] if players else None

    async def get_owned_games(self, steam_id: str) -> dict:
        """Return the ``response`` body: ``{"game_count": int, "games": [...]}``."""
        data = await self._get_json(
            "IPlayerService/GetOwnedGames/v0001/",
            {"steamid": steam_id, "include_appinfo": "true", "format": "json"},
        )
        return data.get("response") or {}

    async def get_user_stats_for_game(
        self, steam_id: str, app_id: int, timeout: Optional[float] = None
    ) -> list[dict]:
        """Return the achievement entries of one title (may be empty)."""
        data = await self._get_json(
            "ISteamUserStats/GetUserStatsForGame/v0002/",
            {"steamid": steam_id, "appid": app_id},
            timeout=timeout,
        )
        return (data.get("playerstats") or {}).get("achievements") or []
