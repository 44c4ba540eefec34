"""
Resolves who/where a sign-in came from: user agent → browser/OS/device and
client address → "city, country" + timezone.

Both lookups are local (ua-parser regexes, GeoLite2 database) and
best-effort: missing data yields "Other"/"Unknown"/"UTC", never an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ua_parser import parse

from infrastructure.geoip import GeoIPService
from schemas.models.user import LoginEvent
from shared.datetime_utils import format_in_timezone
from shared.ip_utils import resolve_lookup_address

UNKNOWN_LOCATION = "Unknown"
DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class SessionContext:
    ip: str
    browser: str
    os: str
    device: str
    location: str = UNKNOWN_LOCATION
    timezone: str = DEFAULT_TIMEZONE


def _versioned(family: Optional[str], *parts: Optional[str]) -> str:
    if not family:
        return "Other"
    version = ".".join(p for p in parts if p)
    return f"{family} {version}" if version else family


def describe_user_agent(raw_user_agent: Optional[str]) -> tuple[str, str, str]:
    """Return ``(browser, os, device)`` strings for a User-Agent header."""
    if not raw_user_agent:
        return "Other", "Other", "Other"

    result = parse(raw_user_agent)
    ua, os_, device = result.user_agent, result.os, result.device

    browser = _versioned(ua.family, ua.major, ua.minor, ua.patch) if ua else "Other"
    os_name = _versioned(os_.family, os_.major, os_.minor, os_.patch) if os_ else "Other"
    device_name = device.family if device and device.family else "Other"
    return browser, os_name, device_name


class SessionContextResolver:
    def __init__(self, geoip: GeoIPService, loopback_fallback_ip: str) -> None:
        self._geoip = geoip
        self._loopback_fallback_ip = loopback_fallback_ip

    async def resolve(
        self, raw_user_agent: Optional[str], raw_address: Optional[str]
    ) -> SessionContext:
        ip = resolve_lookup_address(raw_address or "", self._loopback_fallback_ip)
        browser, os_name, device = describe_user_agent(raw_user_agent)

        geo = await self._geoip.lookup(ip)
        location = UNKNOWN_LOCATION
        tz_name = DEFAULT_TIMEZONE
        if geo is not None:
            location = ", ".join(p for p in (geo.city, geo.country) if p) or UNKNOWN_LOCATION
            tz_name = geo.timezone or DEFAULT_TIMEZONE

        return SessionContext(
            ip=ip,
            browser=browser,
            os=os_name,
            device=device,
            location=location,
            timezone=tz_name,
        )


def build_login_event(context: SessionContext, now: datetime) -> LoginEvent:
    return LoginEvent(
        ip=context.ip,
        browser=context.browser,
        os=context.os,
        device=context.device,
        location=context.location,
        timezone=context.timezone,
        date=format_in_timezone(now, context.timezone),
    )
