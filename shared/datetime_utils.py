"""
Date/time helpers: framework-agnostic.

MongoDB hands back naive datetimes unless the client is ``tz_aware``; every
comparison in the services goes through ``ensure_utc`` so both shapes work.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# dd.mm.YYYY HH:MM:SS, 24-hour clock
LOGIN_TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M:%S"


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_in_timezone(moment: datetime, tz_name: Optional[str]) -> str:
    """Format *moment* as local wall-clock time in the IANA zone *tz_name*.

    Unknown or missing zone names fall back to UTC.
    """
    try:
        tz = ZoneInfo(tz_name) if tz_name else timezone.utc
    except (ZoneInfoNotFoundError, ValueError):
        tz = timezone.utc
    return ensure_utc(moment).astimezone(tz).strftime(LOGIN_TIMESTAMP_FORMAT)
