"""Trading calendar: trading days, sessions and market hours."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from swingtrack.market.time import DEFAULT_TIMEZONE, minutes_of_day, trading_day_for


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class MarketSession:
    session: str  # "closed", "pre-market", "regular" or "post-market"
    reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.session != "closed"


@dataclass(frozen=True)
class TradingCalendar:
    timezone: str = DEFAULT_TIMEZONE
    pre_open: time = time(9, 0)
    regular_open: time = time(9, 15)
    regular_close: time = time(15, 30)
    post_close: time = time(16, 0)
    holidays: frozenset[date] = field(default_factory=frozenset)

    def is_trading_day(self, day: date | datetime) -> bool:
        day = trading_day_for(day, self.timezone)
        if day.weekday() >= 5:
            return False
        return day not in self.holidays

    def trading_date(self, now: datetime) -> date:
        return trading_day_for(now, self.timezone)

    def session_for(self, now: datetime) -> MarketSession:
        if not self.is_trading_day(now):
            return MarketSession("closed", "non-trading day")

        current = minutes_of_day(now, self.timezone)
        if current < _minutes(self.pre_open):
            return MarketSession("closed", "before market hours")
        if current < _minutes(self.regular_open):
            return MarketSession("pre-market")
        if current < _minutes(self.regular_close):
            return MarketSession("regular")
        if current < _minutes(self.post_close):
            return MarketSession("post-market")
        return MarketSession("closed", "after market hours")

    def is_open(self, now: datetime) -> bool:
        return self.session_for(now).is_open

    def missing_trading_days(self, start: date, end: date) -> list[date]:
        """Trading days strictly between ``start`` and ``end``."""
        missing: list[date] = []
        cursor = start + timedelta(days=1)
        while cursor < end:
            if self.is_trading_day(cursor):
                missing.append(cursor)
            cursor += timedelta(days=1)
        return missing


def build_calendar(
    timezone: str = DEFAULT_TIMEZONE,
    holidays: Iterable[date] = (),
    **hours: time,
) -> TradingCalendar:
    return TradingCalendar(timezone=timezone, holidays=frozenset(holidays), **hours)
