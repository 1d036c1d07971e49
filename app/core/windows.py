"""
Local-calendar window arithmetic for ledger stats.

Windows are aligned to civil days in the ledger time zone, because recording
happens across one organization's working day. created_at is stored as naive
UTC and set_date as naive local time, so each window is expressed in both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tzlocal import get_localzone

from app.constants.events import StatsWindow

logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """
    ZoneInfo for a configured name. An unset or unknown name falls back to the
    host's zone, looked up by name so DST changes still apply.
    """
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown ledger time zone %r, using the host zone", name)
    return get_localzone()


@dataclass(frozen=True)
class WindowBounds:
    """Half-open [start, end) range in local civil time and in UTC."""

    local_start: datetime
    local_end: datetime
    utc_start: datetime
    utc_end: datetime


def _local_midnight(day, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def window_bounds(window: StatsWindow, now: datetime, tz: tzinfo) -> WindowBounds:
    """
    Compute the bounds of a window containing `now`.

    All windows end at the next local midnight so that business dates later
    today still count. `now` may be naive (interpreted as UTC) or aware.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(tz).date()
    if window == StatsWindow.TODAY:
        first_day = today
    elif window == StatsWindow.TRAILING_7_DAYS:
        first_day = today - timedelta(days=6)
    elif window == StatsWindow.MONTH_TO_DATE:
        first_day = today.replace(day=1)
    else:
        raise ValueError(f"Unknown stats window: {window}")

    start = _local_midnight(first_day, tz)
    end = _local_midnight(today + timedelta(days=1), tz)
    return WindowBounds(
        local_start=start.replace(tzinfo=None),
        local_end=end.replace(tzinfo=None),
        utc_start=_naive_utc(start),
        utc_end=_naive_utc(end),
    )
