"""Time helpers anchored to the trading-calendar timezone."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Kolkata"


def to_local(now: datetime, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return now.astimezone(ZoneInfo(timezone))


def trading_day_for(timestamp: datetime | date, timezone: str = DEFAULT_TIMEZONE) -> date:
    if not isinstance(timestamp, datetime):
        return timestamp
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone(ZoneInfo(timezone)).date()


def minutes_of_day(now: datetime, timezone: str = DEFAULT_TIMEZONE) -> int:
    local = to_local(now, timezone)
    return local.hour * 60 + local.minute
