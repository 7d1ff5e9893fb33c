"""Local wall-clock helpers for the daily reset boundary and route labels."""
from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def local_zone(tz_name: Optional[str] = None) -> Optional[tzinfo]:
    """Resolve the configured zone.

    When *tz_name* is empty the host's local zone is used (returns ``None``
    and callers fall back to ``datetime.astimezone()``).
    """
    if tz_name is None:
        from habitumap.config import settings

        tz_name = settings.timezone
    if not tz_name:
        return None
    return ZoneInfo(tz_name)


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Timezone-aware "now" in the configured local zone."""
    tz = local_zone(tz_name)
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def date_string(dt: datetime) -> str:
    """Calendar date of *dt* as ``YYYY-MM-DD`` (no zone conversion)."""
    return dt.strftime("%Y-%m-%d")


def next_local_midnight(now: datetime) -> datetime:
    """Midnight that starts the calendar day after *now*, in *now*'s zone."""
    tomorrow = (now + timedelta(days=1)).date()
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=now.tzinfo)
