"""Shared trading-calendar helpers."""

from swingtrack.market.calendar import MarketSession, TradingCalendar, build_calendar
from swingtrack.market.time import DEFAULT_TIMEZONE, to_local, trading_day_for
from swingtrack.market.timeframes import is_stale, timeframe_delta, timeframe_minutes

__all__ = [
    "DEFAULT_TIMEZONE",
    "MarketSession",
    "TradingCalendar",
    "build_calendar",
    "is_stale",
    "timeframe_delta",
    "timeframe_minutes",
    "to_local",
    "trading_day_for",
]
